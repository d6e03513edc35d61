"""Local git repository access through the git CLI."""

from pathlib import Path
from typing import List, Optional, Union

from autopr.errors import AutoPRError
from autopr.integrations.base import LocalRepository
from autopr.models import ChangeDescriptor
from autopr.utils.logger import get_logger
from autopr.utils.shell import ShellError, ShellResult, run_command

logger = get_logger(__name__)


class GitError(AutoPRError):
    """Git command error."""
    pass


class DirtyWorkingTreeError(GitError):
    """Working tree has uncommitted changes."""

    def __init__(self, changes: str):
        super().__init__(f"Git tree dirty! Changes: \n\n{changes}")
        self.changes = changes


class GitRepository(LocalRepository):
    """Git repository driven through the git CLI."""

    def __init__(self, remote: str = "origin", cwd: Optional[Union[str, Path]] = None):
        """Initialize git repository access.

        Args:
            remote: Remote that branches are pushed to
            cwd: Repository working directory (current directory if None)
        """
        self.remote = remote
        self.cwd = cwd

    def _git(self, args: List[str]) -> ShellResult:
        """Run a git command, raising GitError on failure."""
        try:
            return run_command(["git", *args], cwd=self.cwd, check=True)
        except ShellError as e:
            raise GitError(str(e)) from e

    def diff_stat(self) -> str:
        """Summary of uncommitted changes, staged or not, against HEAD."""
        return self._git(["diff", "--stat", "HEAD"]).output.strip()

    def current_branch(self) -> str:
        """Name of the checked out branch."""
        return self._git(["rev-parse", "--abbrev-ref", "HEAD"]).stdout.strip()

    def last_commit_message(self) -> str:
        """Raw message of the HEAD commit."""
        return self._git(["log", "-1", "--pretty=%B"]).stdout

    def read_change(self) -> ChangeDescriptor:
        """Describe the HEAD commit.

        Raises:
            DirtyWorkingTreeError: If there are uncommitted changes
            GitError: If a git command fails
        """
        changes = self.diff_stat()
        if changes:
            raise DirtyWorkingTreeError(changes)

        branch = self.current_branch()
        change = ChangeDescriptor.from_commit_message(branch, self.last_commit_message())
        logger.debug(f"Read commit on {branch}: {change.title}")
        return change

    def amend_message(self, message: str) -> None:
        """Rewrite the HEAD commit message in place."""
        logger.info("Amending commit message")
        self._git(["commit", "--amend", "-m", message])

    def force_push(self, branch: str) -> None:
        """Force-push ``branch``, replacing the remote branch of the same name."""
        logger.info(f"Force-pushing {branch} to {self.remote}")
        self._git(["push", self.remote, branch, "-f"])
