# layers/tab_metadata.py
import logging
from typing import Dict, Iterable, List, Optional

from config_manager import TAB_METADATA_KEY
from exceptions import TabNotFoundError
from models import TabRecord
from .state_store import StateStore

logger = logging.getLogger(__name__)

# Fields a classification pass may write; time fields belong to the time accounting engine
CLASSIFICATION_FIELDS = ("url", "title", "ai_category", "user_category", "assigned_workspace")


class TabMetadataStore:
    """
    Authoritative per-tab records, keyed by tab id.

    Every write is a field-level merge inside a store transaction, so a
    classification result and an activation update for the same tab never
    overwrite each other's fields.
    """

    def __init__(self, store: StateStore):
        self.store = store

    # ==================== READS ====================

    def get(self, tab_id: int) -> Optional[TabRecord]:
        data = self.store.get(TAB_METADATA_KEY, {}).get(str(tab_id))
        return TabRecord.from_dict(data) if data else None

    def require(self, tab_id: int) -> TabRecord:
        record = self.get(tab_id)
        if record is None:
            raise TabNotFoundError(f"No metadata for tab {tab_id}. Is the tab open?")
        return record

    def all_records(self) -> Dict[int, TabRecord]:
        return {int(tab_id): TabRecord.from_dict(data)
                for tab_id, data in self.store.get(TAB_METADATA_KEY, {}).items()}

    def effective_category(self, tab_id: int) -> str:
        return self.require(tab_id).effective_category

    def tabs_in_workspace(self, workspace_id: str) -> List[int]:
        return [tab_id for tab_id, record in self.all_records().items()
                if record.assigned_workspace == workspace_id]

    # ==================== WRITES ====================

    def merge_fields(self, tab_id: int, **fields) -> TabRecord:
        """Update only the given fields, creating the record if it does not exist yet."""
        unknown = set(fields) - set(TabRecord.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown tab fields: {sorted(unknown)}")
        with self.store.transaction(TAB_METADATA_KEY) as state:
            metadata = state[TAB_METADATA_KEY] or {}
            record = metadata.get(str(tab_id)) or TabRecord(url=fields.get("url", "")).to_dict()
            record.update(fields)
            metadata[str(tab_id)] = record
            state[TAB_METADATA_KEY] = metadata
        return TabRecord.from_dict(record)

    def apply_classification(self, tab_id: int, url: str, title: str,
                             ai_category: Optional[str], user_category: Optional[str]) -> TabRecord:
        """Store a fresh classification; a reload starts the tab's time count from zero."""
        record = self.merge_fields(
            tab_id,
            url=url,
            title=title,
            ai_category=ai_category,
            user_category=user_category,
            time_active_ms=0,
            last_activated_at=None,
        )
        logger.info(f"Tab {tab_id} classified as {record.effective_category}: {url}")
        return record

    def set_user_category(self, tab_id: int, category: str) -> TabRecord:
        with self.store.transaction(TAB_METADATA_KEY):
            self.require(tab_id)
            record = self.merge_fields(tab_id, user_category=category)
        logger.info(f"Tab {tab_id} category set to {category} by user")
        return record

    def propagate_category(self, url: str, category: str, open_tab_ids: Iterable[int]) -> List[int]:
        """Set both categories on every open tab showing `url`. Returns the updated tab ids."""
        open_ids = {str(tab_id) for tab_id in open_tab_ids}
        updated = []
        with self.store.transaction(TAB_METADATA_KEY) as state:
            metadata = state[TAB_METADATA_KEY] or {}
            for tab_id, record in metadata.items():
                if tab_id in open_ids and url in record.get("url", ""):
                    record["user_category"] = category
                    record["ai_category"] = category
                    updated.append(int(tab_id))
            state[TAB_METADATA_KEY] = metadata
        return updated

    def clear_workspace(self, workspace_id: str) -> List[int]:
        """Unassign every tab pointing at the workspace."""
        cleared = []
        with self.store.transaction(TAB_METADATA_KEY) as state:
            metadata = state[TAB_METADATA_KEY] or {}
            for tab_id, record in metadata.items():
                if record.get("assigned_workspace") == workspace_id:
                    record["assigned_workspace"] = None
                    cleared.append(int(tab_id))
            state[TAB_METADATA_KEY] = metadata
        return cleared

    def remove(self, tab_id: int) -> Optional[TabRecord]:
        """Delete the record outright; no tombstone is kept."""
        with self.store.transaction(TAB_METADATA_KEY) as state:
            metadata = state[TAB_METADATA_KEY] or {}
            data = metadata.pop(str(tab_id), None)
            state[TAB_METADATA_KEY] = metadata
        return TabRecord.from_dict(data) if data else None
