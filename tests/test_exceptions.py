"""Tests for the error hierarchy."""

from exceptions import (
    ClassifierUnavailableError,
    DuplicateNameError,
    EmptyNameError,
    EmptyWorkspaceError,
    InvalidUrlError,
    TabFlowError,
    TabNotFoundError,
    UnknownCategoryError,
    WorkspaceNotFoundError,
)
from models import ErrorKind


def test_all_inherit_from_base():
    for exc_class in [
        TabNotFoundError, WorkspaceNotFoundError, UnknownCategoryError,
        EmptyWorkspaceError, DuplicateNameError, EmptyNameError,
        InvalidUrlError, ClassifierUnavailableError,
    ]:
        assert issubclass(exc_class, TabFlowError)


def test_kinds():
    assert TabNotFoundError.kind == ErrorKind.NOT_FOUND
    assert WorkspaceNotFoundError.kind == ErrorKind.NOT_FOUND
    assert EmptyWorkspaceError.kind == ErrorKind.EMPTY
    assert DuplicateNameError.kind == ErrorKind.DUPLICATE_NAME
    assert EmptyNameError.kind == ErrorKind.EMPTY_NAME
    assert InvalidUrlError.kind == ErrorKind.INVALID_URL
    assert TabFlowError.kind == ErrorKind.INTERNAL


def test_exception_message():
    e = DuplicateNameError("taken")
    assert str(e) == "taken"
