"""Interfaces the publish workflow talks to.

Concrete implementations live next to this module (git, jira, github);
tests substitute in-memory fakes.
"""

from abc import ABC, abstractmethod
from typing import Optional

from autopr.models import ChangeDescriptor, CreatedIssue, IssueRequest, PullRequest, Sprint


class LocalRepository(ABC):
    """Local version control operations."""

    @abstractmethod
    def read_change(self) -> ChangeDescriptor:
        """Describe the HEAD commit of a clean working tree."""
        raise NotImplementedError

    @abstractmethod
    def amend_message(self, message: str) -> None:
        """Replace the HEAD commit message."""
        raise NotImplementedError

    @abstractmethod
    def force_push(self, branch: str) -> None:
        """Push ``branch`` to the remote, overwriting it."""
        raise NotImplementedError


class IssueTracker(ABC):
    """Issue tracker operations."""

    @abstractmethod
    def find_active_sprint(self, board_id: int) -> Optional[Sprint]:
        """Return the active sprint of a board, or None."""
        raise NotImplementedError

    @abstractmethod
    def create_issue(self, request: IssueRequest) -> CreatedIssue:
        """Create an issue and return its key."""
        raise NotImplementedError


class CodeHost(ABC):
    """Code hosting operations."""

    @abstractmethod
    def create_pull_request(self, change: ChangeDescriptor) -> PullRequest:
        """Open a pull request for the pushed branch."""
        raise NotImplementedError
