"""Base exception for the autopr tool."""


class AutoPRError(Exception):
    """Base class for every error autopr reports to the user."""
    pass
