"""Tests for the tab metadata store."""

import pytest

from exceptions import TabNotFoundError
from layers.tab_metadata import TabMetadataStore


def test_effective_category_precedence(store):
    metadata = TabMetadataStore(store)
    metadata.merge_fields(1, url="https://a.com")
    assert metadata.effective_category(1) == "Others"
    metadata.merge_fields(1, ai_category="Social")
    assert metadata.effective_category(1) == "Social"
    metadata.set_user_category(1, "Work")
    assert metadata.effective_category(1) == "Work"
    metadata.merge_fields(1, ai_category="Entertainment")
    assert metadata.effective_category(1) == "Work"


def test_merge_keeps_other_fields(store):
    metadata = TabMetadataStore(store)
    metadata.merge_fields(1, url="https://a.com", assigned_workspace="ws_1", time_active_ms=500)
    metadata.merge_fields(1, ai_category="Work")
    record = metadata.get(1)
    assert record.assigned_workspace == "ws_1"
    assert record.time_active_ms == 500


def test_merge_rejects_unknown_field(store):
    with pytest.raises(ValueError):
        TabMetadataStore(store).merge_fields(1, colour="red")


def test_apply_classification_resets_time(store):
    metadata = TabMetadataStore(store)
    metadata.merge_fields(1, url="https://a.com", time_active_ms=9000, assigned_workspace="ws_1")
    record = metadata.apply_classification(1, "https://b.com", "B", "Learning", None)
    assert record.time_active_ms == 0
    assert record.url == "https://b.com"
    assert record.assigned_workspace == "ws_1"


def test_set_user_category_missing_tab(store):
    with pytest.raises(TabNotFoundError):
        TabMetadataStore(store).set_user_category(7, "Work")


def test_propagate_only_open_matching_tabs(store):
    metadata = TabMetadataStore(store)
    metadata.merge_fields(1, url="http://a.com/x", ai_category="Social")
    metadata.merge_fields(2, url="http://a.com/x")
    metadata.merge_fields(3, url="http://b.com/")
    updated = metadata.propagate_category("http://a.com/x", "Work", open_tab_ids=[1, 3])
    assert updated == [1]
    assert metadata.get(1).user_category == "Work"
    assert metadata.get(1).ai_category == "Work"
    assert metadata.get(2).user_category is None


def test_remove_leaves_no_record(store):
    metadata = TabMetadataStore(store)
    metadata.merge_fields(1, url="https://a.com")
    assert metadata.remove(1).url == "https://a.com"
    assert metadata.get(1) is None
    assert metadata.remove(1) is None


def test_clear_workspace(store):
    metadata = TabMetadataStore(store)
    metadata.merge_fields(1, url="https://a.com", assigned_workspace="ws_1")
    metadata.merge_fields(2, url="https://b.com", assigned_workspace="ws_2")
    assert metadata.clear_workspace("ws_1") == [1]
    assert metadata.tabs_in_workspace("ws_2") == [2]
    assert metadata.get(1).assigned_workspace is None
