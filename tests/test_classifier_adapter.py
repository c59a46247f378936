"""Tests for the bounded classifier adapter."""

import threading

import pytest

from exceptions import ClassifierUnavailableError
from Providers.classifier_adapter import ClassifierAdapter
from models import Classification

LONG_TEXT = "Python tutorial covering decorators, generators and context managers in depth."


class SlowProvider:
    def __init__(self):
        self.release = threading.Event()

    def classify(self, text):
        self.release.wait(5)
        return Classification("Work", 0.9)


class BrokenProvider:
    def classify(self, text):
        raise RuntimeError("model crashed")


def test_unavailable_without_provider():
    adapter = ClassifierAdapter()
    assert adapter.is_available is False
    assert adapter.classify(LONG_TEXT) is None


def test_short_text_not_classified(provider):
    adapter = ClassifierAdapter(provider)
    assert adapter.classify("x" * 50) is None
    assert provider.calls == []


def test_input_truncated(provider):
    adapter = ClassifierAdapter(provider)
    result = adapter.classify("y" * 2000)
    assert result.category == "Work"
    assert len(provider.calls[0]) == 512


def test_timeout_degrades_to_unavailable():
    slow = SlowProvider()
    adapter = ClassifierAdapter(slow, timeout=0.05)
    try:
        assert adapter.classify(LONG_TEXT) is None
    finally:
        slow.release.set()
        adapter.shutdown()


def test_provider_error_degrades_to_unavailable():
    adapter = ClassifierAdapter(BrokenProvider())
    assert adapter.classify(LONG_TEXT) is None


def test_classify_or_raise_reports_unavailable():
    adapter = ClassifierAdapter(BrokenProvider())
    with pytest.raises(ClassifierUnavailableError, match="model crashed"):
        adapter.classify_or_raise(LONG_TEXT)
    with pytest.raises(ClassifierUnavailableError):
        ClassifierAdapter().classify_or_raise(LONG_TEXT)
