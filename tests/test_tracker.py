"""End-to-end tests driving the tracker through tab events and commands."""

import threading

from config_manager import CURRENT_GOAL_KEY
from models import Classification, ErrorKind
from ModeController.mode_controller import ModeController
from tracker import TabTracker

ARTICLE = "A long introduction to asynchronous programming in Python with many examples and notes."


def test_opened_tab_is_classified_by_rule(tracker, directory):
    tab = directory.open_tab("https://github.com/org/repo", "repo")
    record = tracker.get_tab(tab.tab_id)
    assert record.user_category == "Work"
    assert record.ai_category == "Work"
    assert record.is_active


def test_unknown_site_without_classifier_is_others(tracker, directory):
    tab = directory.open_tab("https://unknown.example/", "Unknown")
    assert tracker.get_tab_categories() == {tab.tab_id: "Others"}


def test_internal_pages_not_tracked(tracker, directory):
    directory.open_tab("chrome://settings", activate=True)
    assert tracker.get_tab_categories() == {}


def test_extracted_content_classified_in_background(ai_tracker, directory, provider):
    provider.answer.category = "Learning"
    directory.page_texts["https://blog.example/async"] = ARTICLE
    tab = directory.open_tab("https://blog.example/async", "Async")
    ai_tracker.wait_for_classifications(timeout=5)
    record = ai_tracker.get_tab(tab.tab_id)
    assert record.ai_category == "Learning"
    assert record.user_category is None
    assert provider.calls == [ARTICLE]


def test_rule_skips_classifier(ai_tracker, directory, provider):
    directory.page_texts["https://github.com/x"] = ARTICLE
    directory.open_tab("https://github.com/x")
    ai_tracker.wait_for_classifications(timeout=5)
    assert provider.calls == []


def test_low_confidence_goes_to_review(ai_tracker, directory, provider):
    provider.answer.confidence = 0.4
    directory.page_texts["https://blog.example/a"] = ARTICLE
    directory.open_tab("https://blog.example/a")
    ai_tracker.wait_for_classifications(timeout=5)
    assert [entry.url for entry in ai_tracker.get_review_queue()] == ["https://blog.example/a"]


def test_activation_accounting(tracker, directory, clock):
    first = directory.open_tab("https://github.com/a", activate=True)
    second = directory.open_tab("https://github.com/b")
    directory.activate(first.tab_id)
    clock.advance(3_000)
    directory.activate(second.tab_id)
    clock.advance(2_000)
    directory.activate(first.tab_id)
    assert tracker.get_tab(first.tab_id).time_active_ms == 3_000
    assert tracker.get_tab(second.tab_id).time_active_ms == 2_000


def test_reload_resets_time(tracker, directory, clock):
    tab = directory.open_tab("https://github.com/a", activate=True)
    clock.advance(5_000)
    directory.navigate(tab.tab_id, "https://github.com/b")
    record = tracker.get_tab(tab.tab_id)
    assert record.url == "https://github.com/b"
    assert record.time_active_ms == 0


def test_removed_tab_forgotten(tracker, directory):
    tab = directory.open_tab("https://github.com/a")
    directory.remove_tabs([tab.tab_id])
    assert tracker.get_tab(tab.tab_id) is None


def test_set_tab_category(tracker, directory):
    tab = directory.open_tab("https://unknown.example/")
    result = tracker.set_tab_category(tab.tab_id, "learning")
    assert result.success
    assert tracker.get_tab_categories()[tab.tab_id] == "Learning"


def test_set_tab_category_errors(tracker, directory):
    tab = directory.open_tab("https://unknown.example/")
    assert tracker.set_tab_category(999, "Work").error == ErrorKind.NOT_FOUND
    assert tracker.set_tab_category(tab.tab_id, "Nope").error == ErrorKind.NOT_FOUND


def test_custom_category(tracker, directory):
    assert tracker.add_custom_category("Hobby").success
    assert tracker.add_custom_category("hobby").error == ErrorKind.DUPLICATE_NAME
    assert tracker.add_custom_category(" ").error == ErrorKind.EMPTY_NAME
    tab = directory.open_tab("https://unknown.example/")
    assert tracker.set_tab_category(tab.tab_id, "Hobby").success


def test_resolve_review_round_trip(ai_tracker, directory, provider):
    provider.answer.confidence = 0.3
    directory.page_texts["http://a.com/x"] = ARTICLE
    tab = directory.open_tab("http://a.com/x")
    ai_tracker.wait_for_classifications(timeout=5)

    result = ai_tracker.resolve_review("http://a.com/x", "learning")
    assert result.success
    assert ai_tracker.get_review_queue() == []
    assert ai_tracker.productivity.list_rules()["a.com"] == "Learning"
    assert ai_tracker.get_tab_categories()[tab.tab_id] == "Learning"


def test_workspace_round_trip(tracker, directory):
    tab = directory.open_tab("https://github.com/org/proj")
    workspace_id = tracker.create_workspace("Proj").details["workspace_id"]
    assert tracker.assign_tab_to_workspace(tab.tab_id, workspace_id).success

    suspended = tracker.suspend_workspace(workspace_id)
    assert suspended.details["closed_count"] == 1
    assert directory.get_tab(tab.tab_id) is None
    workspace = tracker.list_workspaces()[0]
    assert workspace.urls == ["https://github.com/org/proj"]
    assert workspace.active_tab_ids == []

    loaded = tracker.load_workspace(workspace_id)
    assert loaded.success and loaded.error is None
    assert [t.url for t in directory.query_tabs()] == ["https://github.com/org/proj"]


def test_delete_workspace_keeps_tabs(tracker, directory):
    tab = directory.open_tab("https://github.com/org/proj")
    workspace_id = tracker.create_workspace("Proj").details["workspace_id"]
    tracker.assign_tab_to_workspace(tab.tab_id, workspace_id)
    assert tracker.delete_workspace(workspace_id).success
    assert tracker.get_tab(tab.tab_id).assigned_workspace is None
    assert directory.get_tab(tab.tab_id) is not None


def test_navigation_of_assigned_tab_saves_new_url(tracker, directory):
    tab = directory.open_tab("https://github.com/a")
    workspace_id = tracker.create_workspace("Proj").details["workspace_id"]
    tracker.assign_tab_to_workspace(tab.tab_id, workspace_id)
    directory.navigate(tab.tab_id, "https://github.com/b")
    assert tracker.list_workspaces()[0].urls == ["https://github.com/a", "https://github.com/b"]
    assert tracker.get_tab(tab.tab_id).assigned_workspace == workspace_id


def test_workspace_command_errors(tracker):
    assert tracker.create_workspace("Work").success
    assert tracker.create_workspace("work").error == ErrorKind.DUPLICATE_NAME
    assert tracker.load_workspace("ws_missing").error == ErrorKind.NOT_FOUND
    assert tracker.focus_on_workspace("ws_missing").error == ErrorKind.NOT_FOUND
    assert tracker.rename_workspace("ws_missing", "x").error == ErrorKind.NOT_FOUND
    workspace_id = tracker.list_workspaces()[0].id
    assert tracker.load_workspace(workspace_id).error == ErrorKind.EMPTY


def test_partial_failure_reported(tracker, directory):
    first = directory.open_tab("https://github.com/a")
    second = directory.open_tab("https://github.com/b")
    workspace_id = tracker.create_workspace("Proj").details["workspace_id"]
    tracker.assign_tab_to_workspace(first.tab_id, workspace_id)
    tracker.assign_tab_to_workspace(second.tab_id, workspace_id)
    directory.locked_tab_ids.add(second.tab_id)

    result = tracker.suspend_workspace(workspace_id)
    assert result.success
    assert result.error == ErrorKind.PARTIAL_FAILURE
    assert result.details["failed"] == [second.tab_id]


def test_focus_mode_blocks_and_override(tracker, directory):
    tracker.toggle_focus_mode()
    tab = directory.open_tab("https://www.youtube.com/watch?v=1", "video")
    assert directory.get_tab(tab.tab_id).url == ModeController.interstitial_url("https://www.youtube.com/watch?v=1")

    assert tracker.override_block(tab.tab_id, "https://www.youtube.com/watch?v=1").success
    assert directory.get_tab(tab.tab_id).url == "https://www.youtube.com/watch?v=1"


def test_cleanup_distractions(tracker, directory):
    directory.open_tab("https://www.reddit.com/")
    keep = directory.open_tab("https://github.com/")
    result = tracker.cleanup_distractions()
    assert result.details["closed_count"] == 1
    assert [tab.tab_id for tab in directory.query_tabs()] == [keep.tab_id]


def test_analyze_session(tracker, directory, clock):
    work = directory.open_tab("https://github.com/", activate=True)
    clock.advance(3_000)
    directory.open_tab("https://www.reddit.com/", activate=True)
    clock.advance(1_000)
    directory.activate(work.tab_id)
    result = tracker.analyze_session()
    assert result.success
    assert result.details["score"] == 75
    assert result.details["total_tabs"] == 2
    assert len(tracker.get_score_history()) == 1


def test_goals(tracker):
    assert tracker.set_current_goal(" finish report ").success
    assert tracker.store.get(CURRENT_GOAL_KEY) == "finish report"
    workspace_id = tracker.create_workspace("Proj").details["workspace_id"]
    assert tracker.set_workspace_goal(workspace_id, "ship").details["goal"] == "ship"
    assert tracker.set_workspace_goal("ws_missing", "x").error == ErrorKind.NOT_FOUND


def test_observers_notified(tracker):
    seen = []
    tracker.subscribe(seen.append)
    tracker.create_workspace("Proj")
    assert {"workspaces"} in seen


def test_state_snapshot(tracker, directory):
    tab = directory.open_tab("https://github.com/")
    state = tracker.get_state_snapshot()
    assert state["focusModeActive"] is False
    assert state["tabCategories"] == {tab.tab_id: "Work"}
    assert state["reviewQueue"] == []


def test_rule_commands(tracker, tmp_path):
    assert tracker.add_rule("intranet.corp", "Work").success
    assert tracker.add_rule("x.com", "Nope").error == ErrorKind.NOT_FOUND
    assert tracker.add_rule("  ", "Work").error == ErrorKind.EMPTY_NAME
    path = tmp_path / "rules.json"
    assert tracker.export_rules(str(path)).success
    assert tracker.remove_rule("intranet.corp").success
    assert tracker.remove_rule("intranet.corp").error == ErrorKind.NOT_FOUND
    assert tracker.import_rules(str(path)).success
    assert tracker.productivity.list_rules()["intranet.corp"] == "Work"
    assert tracker.import_rules(str(tmp_path / "missing.json")).error == ErrorKind.INTERNAL


def test_classification_for_closed_tab_is_dropped(tracker):
    assert tracker.classify_tab(99, "https://github.com/") is None
    assert tracker.get_tab(99) is None


class HeldProvider:
    """Answers only once `release` is set, so a navigation can happen mid-classification."""

    def __init__(self):
        self.started = threading.Event()
        self.release = threading.Event()

    def classify(self, text):
        self.started.set()
        self.release.wait(5)
        return Classification("Entertainment", 0.95)


def test_late_classification_does_not_overwrite_newer_page(directory, kv_store, clock):
    provider = HeldProvider()
    tab_tracker = TabTracker(directory, kv_store=kv_store, ai_provider=provider, clock=clock)
    try:
        directory.page_texts["https://videos.example/watch"] = ARTICLE
        tab = directory.open_tab("https://videos.example/watch", activate=True)
        assert provider.started.wait(5)

        directory.navigate(tab.tab_id, "https://github.com/org/repo")
        clock.advance(4_000)
        provider.release.set()
        tab_tracker.wait_for_classifications(timeout=5)

        record = tab_tracker.get_tab(tab.tab_id)
        assert record.url == "https://github.com/org/repo"
        assert record.effective_category == "Work"
        assert record.last_activated_at == clock() - 4_000
    finally:
        provider.release.set()
        tab_tracker.shutdown()
