"""Tests for session scoring and score history."""

import pytest

from analytics import SessionAnalytics, compute_score
from config_manager import SCORE_HISTORY_KEY, SESSION_START_KEY, WORKSPACES_KEY
from layers.tab_metadata import TabMetadataStore
from layers.time_accounting import TimeAccountingEngine
from models import Workspace


@pytest.fixture
def metadata(store):
    return TabMetadataStore(store)


@pytest.fixture
def analytics(store, clock):
    return SessionAnalytics(store, TimeAccountingEngine(store, clock), clock)


def test_idle_session_scores_100(analytics):
    report = analytics.analyze()
    assert report.score == 100
    assert report.total_tabs == 0


def test_all_work_scores_100(analytics, metadata):
    metadata.merge_fields(1, url="https://github.com", ai_category="Work", time_active_ms=60_000)
    assert analytics.analyze().score == 100


def test_all_social_scores_0(analytics, metadata):
    metadata.merge_fields(1, url="https://reddit.com", ai_category="Social", time_active_ms=60_000)
    assert analytics.analyze().score == 0


def test_score_is_floored_and_counts_others(analytics, metadata):
    metadata.merge_fields(1, url="https://a.com", ai_category="Learning", time_active_ms=2_000)
    metadata.merge_fields(2, url="https://b.com", time_active_ms=1_000)
    assert analytics.analyze().score == 66


def test_custom_categories_count_as_tracked_time():
    assert compute_score({"Work": 1_000, "Hobby": 3_000}) == 25


def test_user_category_wins(analytics, metadata):
    metadata.merge_fields(1, url="https://a.com", ai_category="Social", user_category="Work", time_active_ms=5_000)
    report = analytics.analyze()
    assert report.categories["Work"] == 1
    assert report.categories["Social"] == 0
    assert report.time_per_category["Work"] == 5_000


def test_running_interval_finalised_first(analytics, metadata, clock):
    metadata.merge_fields(1, url="https://github.com", ai_category="Work")
    analytics.time_accounting.record_activation(1)
    clock.advance(30_000)
    report = analytics.analyze(active_tab_id=1)
    assert report.time_per_category["Work"] == 30_000


def test_time_sinks_deduplicated(analytics, metadata):
    for tab_id in (1, 2):
        metadata.merge_fields(tab_id, url="https://youtube.com/x", ai_category="Entertainment",
                              time_active_ms=6 * 60 * 1000)
    metadata.merge_fields(3, url="https://reddit.com/", ai_category="Social", time_active_ms=60_000)
    metadata.merge_fields(4, url="https://work.com/", ai_category="Work", time_active_ms=60 * 60 * 1000)
    assert analytics.analyze().time_sinks == ["https://youtube.com/x"]


def test_history_appended_per_run(analytics, store, metadata, clock):
    metadata.merge_fields(1, url="https://a.com", ai_category="Work", time_active_ms=1_000)
    analytics.analyze()
    clock.advance(1_000)
    analytics.analyze()
    history = store.get(SCORE_HISTORY_KEY)
    assert len(history) == 2
    assert set(history[0]) == {"date", "score", "timestamp", "categoriesDistribution",
                               "timePerCategory", "totalSessionTime", "timeSinks"}
    assert history[1]["timestamp"] - history[0]["timestamp"] == 1_000
    assert [entry.score for entry in analytics.get_score_history(limit=1)] == [100]


def test_session_time_never_negative(analytics, store, clock):
    store.set(SESSION_START_KEY, clock() + 10_000)
    assert analytics.analyze().total_session_time == 0


def test_time_per_workspace(analytics, metadata):
    metadata.merge_fields(1, url="https://a.com", assigned_workspace="ws_1", time_active_ms=1_000)
    metadata.merge_fields(2, url="https://b.com", assigned_workspace="ws_1", time_active_ms=500)
    metadata.merge_fields(3, url="https://c.com", time_active_ms=700)
    assert analytics.analyze().time_per_workspace == {"ws_1": 1_500}


def test_workspace_metrics_track_average_score(analytics, metadata, store):
    store.set(WORKSPACES_KEY, {"ws_1": Workspace(id="ws_1", name="Proj").to_dict()})
    metadata.merge_fields(1, url="https://github.com", ai_category="Work", assigned_workspace="ws_1",
                          time_active_ms=1_000)
    analytics.analyze()
    metadata.merge_fields(2, url="https://reddit.com", ai_category="Social", time_active_ms=1_000)
    analytics.analyze()

    metrics = Workspace.from_dict(store.get(WORKSPACES_KEY)["ws_1"]).metrics
    assert metrics == {"total_time_spent": 1_000, "avg_focus_score": 75.0, "analyses": 2}


def test_daily_summary(analytics, metadata, clock):
    metadata.merge_fields(1, url="https://a.com", ai_category="Work", time_active_ms=1_000)
    analytics.analyze()
    analytics.analyze()
    summary = analytics.get_daily_summary(days=1)
    assert len(summary) == 1
    assert list(summary.values())[0] == {"average_score": 100.0, "analyses": 2}
