"""
Publish Workflow

Turns the HEAD commit into a tracked pull request: creates a Jira issue
when the commit title has no key yet, tags the commit with the key,
force-pushes the branch and opens the pull request.

Every step runs in order and any failure aborts the run; nothing is
retried or rolled back.
"""

from typing import Optional

from ..integrations.base import CodeHost, IssueTracker, LocalRepository
from ..models import ChangeDescriptor, Config, CreatedIssue, IssueRequest, PublishResult
from ..utils.logger import get_logger

logger = get_logger(__name__)


def build_issue_request(change: ChangeDescriptor, config: Config) -> IssueRequest:
    """Issue for ``change`` with the configured type, project and owner."""
    return IssueRequest(
        project=config.jira.project,
        summary=change.title,
        description=change.body,
        issue_type=config.jira.issue_type,
        account_id=config.jira.account_id,
    )


def create_tracking_issue(
    change: ChangeDescriptor,
    config: Config,
    tracker: IssueTracker,
    add_to_current_sprint: bool = False,
) -> CreatedIssue:
    """
    Create the Jira issue tracking ``change``.

    With ``add_to_current_sprint`` the active sprint of the configured board
    goes into the sprint custom field. A board without an active sprint is
    not an error: the issue is created without one.

    Args:
        change: Commit being published
        config: Run configuration
        tracker: Issue tracker to create the issue in
        add_to_current_sprint: Attach the issue to the active sprint

    Returns:
        The created issue
    """
    request = build_issue_request(change, config)

    if add_to_current_sprint:
        sprint = tracker.find_active_sprint(config.jira.board_number)
        if sprint is not None:
            logger.info(f"Adding issue to sprint {sprint.name or sprint.id}")
            request.extra_fields[config.jira.sprint_field] = sprint.id
        else:
            logger.warning(
                f"No active sprint on board {config.jira.board_id}, creating issue without sprint"
            )

    return tracker.create_issue(request)


def publish_change(
    config: Config,
    repository: LocalRepository,
    tracker: IssueTracker,
    code_host: CodeHost,
    add_to_current_sprint: bool = False,
) -> PublishResult:
    """
    Publish the HEAD commit as a pull request.

    Args:
        config: Run configuration
        repository: Local repository holding the commit
        tracker: Issue tracker for the ticket
        code_host: Code host for the pull request
        add_to_current_sprint: Attach a newly created issue to the active sprint

    Returns:
        The change as published, the created issue (if any) and the PR

    Raises:
        AutoPRError: From whichever step failed
    """
    change = repository.read_change()
    logger.info(f"Publishing {change.branch}: {change.title}")

    issue: Optional[CreatedIssue] = None
    if change.has_issue_key(config.jira.project):
        logger.info(f"Commit already references a {config.jira.project} issue")
    else:
        issue = create_tracking_issue(change, config, tracker, add_to_current_sprint)
        change.prefix_issue_key(issue.key)
        repository.amend_message(change.commit_message)

    repository.force_push(change.branch)

    pull_request = code_host.create_pull_request(change)

    return PublishResult(change=change, issue=issue, pull_request=pull_request)
