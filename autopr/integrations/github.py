"""GitHub integration via PyGithub."""

from typing import Optional

from github import Auth, Github, GithubException

from autopr.errors import AutoPRError
from autopr.integrations.base import CodeHost
from autopr.models import ChangeDescriptor, GitHubConfig, PullRequest
from autopr.utils.logger import get_logger

logger = get_logger(__name__)


class GitHubIntegrationError(AutoPRError):
    """GitHub integration error."""
    pass


class GitHubIntegration(CodeHost):
    """Code host backed by the GitHub REST API."""

    def __init__(self, config: GitHubConfig, client: Optional[Github] = None):
        """Initialize GitHub integration.

        Args:
            config: GitHub settings
            client: Pre-built client (built from the token if None)
        """
        self.config = config
        # Every request is sent exactly once
        self.client = client or Github(auth=Auth.Token(config.token), retry=None)

    def head_ref(self, branch: str) -> str:
        """Cross-repository head reference for ``branch``."""
        return f"{self.config.source_org}:{branch}"

    def create_pull_request(self, change: ChangeDescriptor) -> PullRequest:
        """Open a pull request from the pushed branch into the target branch.

        Raises:
            GitHubIntegrationError: If the repository cannot be read or the
                pull request cannot be created
        """
        head = self.head_ref(change.branch)
        base = self.config.target_branch
        logger.info(f"Opening pull request {head} -> {self.config.repo_full_name}:{base}")

        try:
            repo = self.client.get_repo(self.config.repo_full_name)
            pr = repo.create_pull(title=change.title, body=change.body, head=head, base=base)
        except GithubException as e:
            message = e.data.get("message") if isinstance(e.data, dict) else None
            raise GitHubIntegrationError(
                f"Failed to create pull request in {self.config.repo_full_name}: "
                f"HTTP {e.status}: {message or e.data}"
            ) from e

        logger.info(f"Created pull request #{pr.number}")
        return PullRequest(
            number=pr.number,
            title=change.title,
            body=change.body,
            head=head,
            base=base,
            url=pr.html_url,
        )
