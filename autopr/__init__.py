"""autopr - commit to ticket to pull request.

Turns the latest local commit into a Jira ticket, tags the commit with the
ticket key, force-pushes the branch and opens a GitHub pull request.
"""

__version__ = "0.1.0"
