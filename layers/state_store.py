# layers/state_store.py
"""
Single authoritative access point for the persisted tracker state.

All read-modify-write cycles go through `transaction()`, which holds one
process-wide lock for the whole cycle so concurrent tab events cannot lose
each other's updates. The in-memory cache is read-through only and every
write invalidates the keys it touched.
"""
import copy
import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Set

from config_manager import default_state
from database.base import KeyValueStore
from utils import now_ms

logger = logging.getLogger(__name__)

StateListener = Callable[[Set[str]], None]


class StateStore:
    """Serialises every mutation of the shared key-value store."""

    def __init__(self, kv_store: KeyValueStore):
        self.kv_store = kv_store
        self.lock = threading.RLock()
        self._cache: Dict[str, Any] = {}
        self._listeners: List[StateListener] = []
        self._local = threading.local()

    def initialize_defaults(self, now: Optional[int] = None) -> List[str]:
        """Write defaults for keys that are missing. Existing values are never overwritten."""
        defaults = default_state(now if now is not None else now_ms())
        with self.lock:
            existing = self.kv_store.get_many(defaults.keys())
            missing = {key: value for key, value in defaults.items() if key not in existing}
            if missing:
                self.kv_store.set_many(missing)
                for key in missing:
                    self._cache.pop(key, None)
        if missing:
            logger.info(f"Initialized missing state keys: {sorted(missing)}")
        return sorted(missing)

    # ==================== READS ====================

    def get(self, key: str, default: Any = None) -> Any:
        """
        Snapshot of one key. Callers get a copy; mutating it changes nothing.
        Inside a transaction the thread sees its own uncommitted values.
        """
        frame = getattr(self._local, "state", None)
        if frame is not None and key in frame["values"]:
            value = frame["values"][key]
            return copy.deepcopy(value) if value is not None else default
        with self.lock:
            if key not in self._cache:
                self._cache[key] = self.kv_store.get(key)
            value = self._cache[key]
        return copy.deepcopy(value) if value is not None else default

    def snapshot(self, *keys: str) -> Dict[str, Any]:
        with self.lock:
            return {key: self.get(key) for key in keys}

    # ==================== WRITES ====================

    @contextmanager
    def transaction(self, *keys: str) -> Iterator[Dict[str, Any]]:
        """
        Read-modify-write over `keys` under the store lock.

        Yields a mutable dict of key -> value. On normal exit the keys whose
        values changed are written back in one commit and listeners are told
        which keys changed; on exception nothing is written. A transaction
        opened inside another one on the same thread joins the outer one.
        """
        outer = getattr(self._local, "state", None)
        if outer is not None:
            for key in keys:
                if key not in outer["values"]:
                    outer["values"][key] = self.get(key)
                    outer["original"][key] = copy.deepcopy(outer["values"][key])
            yield outer["values"]
            return

        changed: Set[str] = set()
        with self.lock:
            values = {key: self.get(key) for key in keys}
            frame = {"values": values, "original": copy.deepcopy(values)}
            self._local.state = frame
            try:
                yield values
                updates = {
                    key: value for key, value in frame["values"].items()
                    if value != frame["original"].get(key)
                }
                if updates:
                    self.kv_store.set_many(updates)
                    changed = set(updates)
            finally:
                self._local.state = None
                for key in frame["values"]:
                    self._cache.pop(key, None)
        if changed:
            self._notify(changed)

    def set(self, key: str, value: Any) -> None:
        with self.transaction(key) as state:
            state[key] = value

    # ==================== OBSERVERS ====================

    def subscribe(self, listener: StateListener) -> None:
        """Register a callback invoked with the changed keys after each commit."""
        self._listeners.append(listener)

    def _notify(self, changed: Set[str]) -> None:
        for listener in list(self._listeners):
            try:
                listener(set(changed))
            except Exception as e:
                logger.error(f"State listener {listener!r} failed: {e}")
