"""Data models for the autopr tool."""

import re
from typing import Any

from pydantic import BaseModel, Field, field_validator


def issue_key_pattern(project: str) -> re.Pattern:
    """Pattern matching a title that starts with a ``<PROJECT>-<digits>`` key."""
    return re.compile(rf"^{re.escape(project)}-\d+")


class ChangeDescriptor(BaseModel):
    """Branch, title and body of the commit being published."""

    branch: str = Field(description="Current branch name")
    title: str = Field(description="First line of the commit message")
    body: str = Field(default="", description="Commit message after the title")

    @classmethod
    def from_commit_message(cls, branch: str, message: str) -> "ChangeDescriptor":
        """Split a raw commit message into title and body.

        The title is the first line; the body is everything after it with the
        separating blank lines dropped.
        """
        lines = message.strip().splitlines()
        title = lines[0].strip() if lines else ""
        body_lines = lines[1:]
        while body_lines and not body_lines[0].strip():
            body_lines.pop(0)
        return cls(branch=branch, title=title, body="\n".join(body_lines))

    def has_issue_key(self, project: str) -> bool:
        """Check whether the title already starts with a key of ``project``."""
        return issue_key_pattern(project).match(self.title) is not None

    def prefix_issue_key(self, issue_key: str) -> None:
        """Prepend ``<issue_key>: `` to the title."""
        self.title = f"{issue_key}: {self.title}"

    @property
    def commit_message(self) -> str:
        """Full commit message for the current title and body."""
        if not self.body:
            return self.title
        return f"{self.title}\n\n{self.body}"


class IssueRequest(BaseModel):
    """Issue to be created in the tracker."""

    project: str = Field(description="Tracker project key")
    summary: str = Field(description="Issue summary")
    description: str = Field(default="", description="Issue description")
    issue_type: str = Field(description="Issue type name")
    account_id: str = Field(description="Assignee and reporter account id")
    extra_fields: dict[str, Any] = Field(
        default_factory=dict, description="Custom fields, e.g. the sprint field"
    )

    def to_fields(self) -> dict[str, Any]:
        """Render the request as a Jira REST ``fields`` mapping."""
        fields: dict[str, Any] = {
            "project": {"key": self.project},
            "summary": self.summary,
            "description": self.description,
            "issuetype": {"name": self.issue_type},
            "assignee": {"accountId": self.account_id},
            "reporter": {"accountId": self.account_id},
        }
        fields.update(self.extra_fields)
        return fields


class Sprint(BaseModel):
    """Tracker sprint."""

    id: int = Field(description="Sprint id")
    name: str = Field(default="", description="Sprint name")
    state: str = Field(default="active", description="Sprint state")


class CreatedIssue(BaseModel):
    """Issue created in the tracker."""

    key: str = Field(description="Issue key (e.g., 'ABC-123')")
    url: str | None = Field(default=None, description="Browse URL")


class PullRequest(BaseModel):
    """Pull request opened on the code host."""

    number: int = Field(description="PR number")
    title: str = Field(description="PR title")
    body: str = Field(default="", description="PR body")
    head: str = Field(description="Head reference, '<org>:<branch>'")
    base: str = Field(description="Base branch")
    url: str = Field(description="PR web URL")


class PublishResult(BaseModel):
    """Outcome of one publish run."""

    change: ChangeDescriptor
    issue: CreatedIssue | None = Field(
        default=None, description="Created issue, None when the commit already had a key"
    )
    pull_request: PullRequest


class GitHubConfig(BaseModel):
    """GitHub configuration settings."""

    token: str | None = Field(default=None, description="GitHub token")
    source_org: str | None = Field(default=None, description="Org or user owning the pushed branch")
    target_org: str | None = Field(default=None, description="Org owning the target repository")
    target_repo: str | None = Field(default=None, description="Target repository name")
    target_branch: str = Field(default="main", description="Base branch for pull requests")

    @property
    def repo_full_name(self) -> str:
        """Get full target repository name (org/repo)."""
        return f"{self.target_org}/{self.target_repo}"


class JiraConfig(BaseModel):
    """Jira configuration settings."""

    token: str | None = Field(default=None, description="Jira API token")
    url: str | None = Field(default=None, description="Jira base URL")
    username: str | None = Field(default=None, description="Jira user name for basic auth")
    account_id: str | None = Field(default=None, description="Assignee and reporter account id")
    project: str | None = Field(default=None, description="Project key, e.g. 'ABC'")
    board_id: str | None = Field(default=None, description="Board used for the sprint lookup")
    sprint_field: str | None = Field(
        default=None, description="Custom field holding the sprint, e.g. 'customfield_10020'"
    )
    issue_type: str = Field(default="Chore", description="Type of created issues")

    @field_validator("board_id", mode="before")
    @classmethod
    def board_id_as_text(cls, v: Any) -> Any:
        """Keep the board id as text; an empty one is unset.

        It is only parsed when a sprint lookup needs it.
        """
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        if isinstance(v, str):
            return v.strip() or None
        return v

    @property
    def board_number(self) -> int | None:
        """Board id as an integer, or None if unset or not a number."""
        if self.board_id is None or not self.board_id.isdigit():
            return None
        return int(self.board_id)


class GitConfig(BaseModel):
    """Local git settings."""

    remote: str = Field(default="origin", description="Remote to force-push to")


class Config(BaseModel):
    """Main configuration model."""

    version: str = Field(default="1.0", description="Config version")
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    jira: JiraConfig = Field(default_factory=JiraConfig)
    git: GitConfig = Field(default_factory=GitConfig)

    def missing_settings(self, add_to_current_sprint: bool = False) -> list[str]:
        """List environment variable names of required settings that are unset.

        Tokens come first so they are reported before anything else.
        """
        required = [
            ("GITHUB_TOKEN", self.github.token),
            ("JIRA_TOKEN", self.jira.token),
            ("TARGET_GITHUB_ORG", self.github.target_org),
            ("SOURCE_GITHUB_ORG", self.github.source_org),
            ("TARGET_GITHUB_REPO", self.github.target_repo),
            ("JIRA_ACCOUNT_ID", self.jira.account_id),
            ("JIRA_USER_NAME", self.jira.username),
            ("JIRA_URL", self.jira.url),
            ("JIRA_PROJECT_NAME", self.jira.project),
        ]
        if add_to_current_sprint:
            required += [
                ("JIRA_BOARD_ID", self.jira.board_id),
                ("JIRA_SPRINT_FIELD_NAME", self.jira.sprint_field),
            ]
        return [name for name, value in required if value in (None, "")]

    def invalid_settings(self, add_to_current_sprint: bool = False) -> list[str]:
        """Describe settings that are set but unusable for this run."""
        problems = []
        if add_to_current_sprint and self.jira.board_id and self.jira.board_number is None:
            problems.append(f"JIRA_BOARD_ID must be a number, got '{self.jira.board_id}'")
        return problems
