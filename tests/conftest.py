"""Shared test configuration and fixtures."""

import os
from pathlib import Path
from typing import List, Optional

import pytest

from autopr.config import ENV_OVERRIDE_PREFIX, ENVIRONMENT_SETTINGS
from autopr.integrations.base import CodeHost, IssueTracker, LocalRepository
from autopr.integrations.git import DirtyWorkingTreeError
from autopr.models import (
    ChangeDescriptor,
    Config,
    CreatedIssue,
    GitHubConfig,
    IssueRequest,
    JiraConfig,
    PullRequest,
    Sprint,
)


class FakeRepository(LocalRepository):
    """In-memory stand-in for a git checkout."""

    def __init__(self, message: str, branch: str = "fix-bug", dirty: str = "", events: Optional[list] = None):
        self.message = message
        self.branch = branch
        self.dirty = dirty
        self.events = events if events is not None else []
        self.amended: List[str] = []
        self.pushed: List[str] = []

    def read_change(self) -> ChangeDescriptor:
        self.events.append("read_change")
        if self.dirty:
            raise DirtyWorkingTreeError(self.dirty)
        return ChangeDescriptor.from_commit_message(self.branch, self.message)

    def amend_message(self, message: str) -> None:
        self.events.append("amend")
        self.amended.append(message)
        self.message = message

    def force_push(self, branch: str) -> None:
        self.events.append("push")
        self.pushed.append(branch)


class FakeTracker(IssueTracker):
    """Issue tracker that hands out a fixed key."""

    def __init__(self, key: str = "ABC-123", sprint: Optional[Sprint] = None, events: Optional[list] = None):
        self.key = key
        self.sprint = sprint
        self.events = events if events is not None else []
        self.requests: List[IssueRequest] = []
        self.sprint_lookups: List[int] = []

    def find_active_sprint(self, board_id: int) -> Optional[Sprint]:
        self.events.append("find_active_sprint")
        self.sprint_lookups.append(board_id)
        return self.sprint

    def create_issue(self, request: IssueRequest) -> CreatedIssue:
        self.events.append("create_issue")
        self.requests.append(request)
        return CreatedIssue(key=self.key)


class FakeCodeHost(CodeHost):
    """Code host that records pull requests."""

    def __init__(self, config: GitHubConfig, events: Optional[list] = None):
        self.config = config
        self.events = events if events is not None else []
        self.changes: List[ChangeDescriptor] = []

    def create_pull_request(self, change: ChangeDescriptor) -> PullRequest:
        self.events.append("create_pull_request")
        self.changes.append(change.model_copy())
        number = len(self.changes)
        return PullRequest(
            number=number,
            title=change.title,
            body=change.body,
            head=f"{self.config.source_org}:{change.branch}",
            base=self.config.target_branch,
            url=f"https://github.com/{self.config.repo_full_name}/pull/{number}",
        )


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Remove every environment variable autopr reads."""
    for name in ENVIRONMENT_SETTINGS:
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.startswith(ENV_OVERRIDE_PREFIX):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def temp_home(tmp_path, monkeypatch):
    """Point the home directory at a temporary path and hide any git root."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setattr(Path, "home", lambda: home)
    monkeypatch.setattr("autopr.config.get_git_root", lambda: None)
    return home


@pytest.fixture
def full_environment(monkeypatch):
    """Set every environment variable needed for a run with the sprint flag."""
    values = {
        "GITHUB_TOKEN": "ghp_secret1234",
        "JIRA_TOKEN": "jira-secret-9876",
        "SOURCE_GITHUB_ORG": "me",
        "TARGET_GITHUB_ORG": "acme",
        "TARGET_GITHUB_REPO": "widgets",
        "JIRA_URL": "https://acme.atlassian.net",
        "JIRA_USER_NAME": "me@acme.com",
        "JIRA_ACCOUNT_ID": "acc-1",
        "JIRA_PROJECT_NAME": "ABC",
        "JIRA_BOARD_ID": "42",
        "JIRA_SPRINT_FIELD_NAME": "customfield_10020",
    }
    for name, value in values.items():
        monkeypatch.setenv(name, value)
    return values


@pytest.fixture
def config():
    """Fully populated configuration."""
    return Config(
        github=GitHubConfig(
            token="ghp_secret1234",
            source_org="me",
            target_org="acme",
            target_repo="widgets",
        ),
        jira=JiraConfig(
            token="jira-secret-9876",
            url="https://acme.atlassian.net",
            username="me@acme.com",
            account_id="acc-1",
            project="ABC",
            board_id=42,
            sprint_field="customfield_10020",
        ),
    )


@pytest.fixture
def events():
    """Shared call log for the fakes."""
    return []


@pytest.fixture
def fake_repository(events):
    return FakeRepository("Fix bug\n\nDetails here\n", events=events)


@pytest.fixture
def fake_tracker(events):
    return FakeTracker(events=events)


@pytest.fixture
def fake_code_host(config, events):
    return FakeCodeHost(config.github, events=events)


@pytest.fixture
def runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner
    return CliRunner()
