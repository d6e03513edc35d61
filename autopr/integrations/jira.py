"""Jira integration via the jira REST client."""

from typing import Optional

from jira import JIRA
from jira.exceptions import JIRAError

from autopr.errors import AutoPRError
from autopr.integrations.base import IssueTracker
from autopr.models import CreatedIssue, IssueRequest, JiraConfig, Sprint
from autopr.utils.logger import get_logger

logger = get_logger(__name__)


class JiraIntegrationError(AutoPRError):
    """Jira integration error."""
    pass


class JiraIntegration(IssueTracker):
    """Issue tracker backed by Jira."""

    def __init__(self, config: JiraConfig, client: Optional[JIRA] = None):
        """Initialize Jira integration.

        The client connects on first use, so constructing the integration
        never touches the network. Every request is sent
        exactly once.

        Args:
            config: Jira settings
            client: Pre-built client (built from config if None)
        """
        self.config = config
        self._client = client

    @property
    def client(self) -> JIRA:
        """Connected Jira client."""
        if self._client is None:
            logger.debug(f"Connecting to Jira at {self.config.url} as {self.config.username}")
            try:
                self._client = JIRA(
                    server=self.config.url,
                    basic_auth=(self.config.username, self.config.token),
                    max_retries=0,
                )
            except JIRAError as e:
                raise JiraIntegrationError(f"Failed to connect to Jira: {_describe(e)}") from e
        return self._client

    def find_active_sprint(self, board_id: int) -> Optional[Sprint]:
        """Return the first active sprint on ``board_id``, or None."""
        try:
            sprints = self.client.sprints(board_id, state="active")
        except JIRAError as e:
            raise JiraIntegrationError(
                f"Failed to list sprints of board {board_id}: {_describe(e)}"
            ) from e

        if not sprints:
            return None

        sprint = sprints[0]
        return Sprint(
            id=sprint.id,
            name=getattr(sprint, "name", ""),
            state=getattr(sprint, "state", "active"),
        )

    def create_issue(self, request: IssueRequest) -> CreatedIssue:
        """Create the requested issue."""
        try:
            issue = self.client.create_issue(fields=request.to_fields())
        except JIRAError as e:
            raise JiraIntegrationError(f"Failed to create issue: {_describe(e)}") from e

        url = f"{self.config.url.rstrip('/')}/browse/{issue.key}" if self.config.url else None
        logger.info(f"Created Jira issue {issue.key}")
        return CreatedIssue(key=issue.key, url=url)


def _describe(error: JIRAError) -> str:
    """Short description of a Jira API error."""
    if error.status_code:
        return f"HTTP {error.status_code}: {error.text}"
    return str(error.text or error)
