"""Shared fixtures: in-memory SQLite store, a controllable clock and a headless tab directory."""

import pytest

from database import DatabaseManager
from layers.memory_directory import InMemoryTabDirectory
from layers.state_store import StateStore
from models import Classification
from tracker import TabTracker


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start=1_700_000_000_000):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms
        return self.now


class StubProvider:
    """Provider double returning a fixed answer and recording what it was asked."""

    def __init__(self, category="Work", confidence=0.9):
        self.answer = Classification(category, confidence)
        self.calls = []

    def classify(self, text):
        self.calls.append(text)
        return self.answer


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def kv_store():
    return DatabaseManager("sqlite://")


@pytest.fixture
def store(kv_store, clock):
    state_store = StateStore(kv_store)
    state_store.initialize_defaults(clock())
    return state_store


@pytest.fixture
def directory():
    return InMemoryTabDirectory()


@pytest.fixture
def provider():
    return StubProvider()


@pytest.fixture
def tracker(directory, kv_store, clock):
    tab_tracker = TabTracker(directory, kv_store=kv_store, clock=clock)
    yield tab_tracker
    tab_tracker.shutdown()


@pytest.fixture
def ai_tracker(directory, kv_store, clock, provider):
    tab_tracker = TabTracker(directory, kv_store=kv_store, ai_provider=provider, clock=clock)
    yield tab_tracker
    tab_tracker.shutdown()
