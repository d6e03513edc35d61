"""Integrations with git, Jira and GitHub."""
