"""Error hierarchy for the tab-tracking core.

Every error carries the ErrorKind that the command surface reports back.
"""

from models import ErrorKind


class TabFlowError(Exception):
    """Base exception for all core errors."""

    kind = ErrorKind.INTERNAL


class TabNotFoundError(TabFlowError):
    """No metadata for the given tab id."""

    kind = ErrorKind.NOT_FOUND


class WorkspaceNotFoundError(TabFlowError):
    """No workspace with the given id."""

    kind = ErrorKind.NOT_FOUND


class UnknownCategoryError(TabFlowError):
    """Category is neither a base nor a user-added category."""

    kind = ErrorKind.NOT_FOUND


class EmptyWorkspaceError(TabFlowError):
    """Workspace has no saved URLs to open."""

    kind = ErrorKind.EMPTY


class DuplicateNameError(TabFlowError):
    """Name already taken (compared case-insensitively)."""

    kind = ErrorKind.DUPLICATE_NAME


class EmptyNameError(TabFlowError):
    """Blank name supplied."""

    kind = ErrorKind.EMPTY_NAME


class InvalidUrlError(TabFlowError):
    """URL could not be parsed into a host name."""

    kind = ErrorKind.INVALID_URL


class ClassifierUnavailableError(TabFlowError):
    """The classification backend is not loaded, failed, or timed out."""

    kind = ErrorKind.CLASSIFIER_UNAVAILABLE
