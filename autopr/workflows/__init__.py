"""Workflow modules."""

from autopr.workflows.publish import (
    build_issue_request,
    create_tracking_issue,
    publish_change,
)

__all__ = [
    "build_issue_request",
    "create_tracking_issue",
    "publish_change",
]
