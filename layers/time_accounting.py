# layers/time_accounting.py
import logging
from typing import Callable, Dict, List, Optional

from config_manager import TAB_METADATA_KEY
from utils import now_ms
from .state_store import StateStore

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def settle_intervals(metadata: Dict[str, Dict], active_tab_id: Optional[int], now: int) -> List[int]:
    """
    Close every running interval in `metadata` (mutated in place) and start
    one for `active_tab_id` if it has a record.

    The active tab's own running interval is closed too before it restarts
    at `now`, so repeated activations never lose time. Clock skew backwards
    counts as zero elapsed.

    Returns:
        Ids of the tabs whose running interval was closed.
    """
    settled = []
    for tab_id, record in metadata.items():
        started = record.get("last_activated_at")
        if started is None:
            continue
        record["time_active_ms"] = int(record.get("time_active_ms") or 0) + max(0, now - started)
        record["last_activated_at"] = None
        settled.append(int(tab_id))

    if active_tab_id is not None and str(active_tab_id) in metadata:
        metadata[str(active_tab_id)]["last_activated_at"] = now
    return settled


class TimeAccountingEngine:
    """Keeps exactly one foreground tab accumulating active time."""

    def __init__(self, store: StateStore, clock: Clock = now_ms,
                 on_unknown_tab: Optional[Callable[[int], None]] = None):
        self.store = store
        self.clock = clock
        self.on_unknown_tab = on_unknown_tab

    def record_activation(self, tab_id: Optional[int]) -> bool:
        """
        Make `tab_id` the foreground tab, or finalise everything when None.

        A tab with no record yet is handed to `on_unknown_tab` after the
        commit, which is expected to classify it and activate it.

        Returns:
            True if the tab had a record and is now foreground.
        """
        with self.store.transaction(TAB_METADATA_KEY) as state:
            metadata = state[TAB_METADATA_KEY] or {}
            settle_intervals(metadata, tab_id, self.clock())
            state[TAB_METADATA_KEY] = metadata
            known = tab_id is not None and str(tab_id) in metadata

        if tab_id is not None and not known:
            logger.debug(f"Activated tab {tab_id} has no metadata yet")
            if self.on_unknown_tab:
                self.on_unknown_tab(tab_id)
        return known

    def flush(self) -> None:
        """Fold the running interval into the total without changing the foreground tab."""
        with self.store.transaction(TAB_METADATA_KEY) as state:
            metadata = state[TAB_METADATA_KEY] or {}
            active = next((int(tab_id) for tab_id, record in metadata.items()
                           if record.get("last_activated_at") is not None), None)
            settle_intervals(metadata, active, self.clock())
            state[TAB_METADATA_KEY] = metadata

    def active_tab_id(self) -> Optional[int]:
        metadata = self.store.get(TAB_METADATA_KEY, {})
        return next((int(tab_id) for tab_id, record in metadata.items()
                     if record.get("last_activated_at") is not None), None)
