# layers/memory_directory.py
"""Headless Tab Directory: tabs live in a dict and every change is emitted as a TabEvent."""
import logging
import threading
from typing import Dict, List, Optional, Set

from models import EventType, TabEvent
from .browser_controller import TabDirectory, TabInfo

logger = logging.getLogger(__name__)


class InMemoryTabDirectory(TabDirectory):

    def __init__(self, current_window_id: int = 1):
        super().__init__()
        self.current_window_id = current_window_id
        self._tabs: Dict[int, TabInfo] = {}
        self._active_tab_id: Optional[int] = None
        self._next_id = 1
        self._lock = threading.Lock()
        self.page_texts: Dict[str, str] = {}  # url -> text returned on extraction
        self.failing_urls: Set[str] = set()
        self.locked_tab_ids: Set[int] = set()  # remove_tabs silently skips these
        self.extraction_requests: List[int] = []

    # ==================== TabDirectory ====================

    def query_tabs(self, current_window_only: bool = False) -> List[TabInfo]:
        with self._lock:
            tabs = list(self._tabs.values())
        if current_window_only:
            tabs = [tab for tab in tabs if tab.window_id == self.current_window_id]
        return tabs

    def get_tab(self, tab_id: int) -> Optional[TabInfo]:
        with self._lock:
            return self._tabs.get(tab_id)

    def get_active_tab(self) -> Optional[TabInfo]:
        with self._lock:
            return self._tabs.get(self._active_tab_id) if self._active_tab_id is not None else None

    def create_tab(self, url: str) -> TabInfo:
        return self.open_tab(url)

    def update_tab_url(self, tab_id: int, url: str) -> None:
        self.navigate(tab_id, url)

    def remove_tabs(self, tab_ids: List[int]) -> List[int]:
        removed = []
        with self._lock:
            for tab_id in tab_ids:
                if tab_id in self._tabs and tab_id not in self.locked_tab_ids:
                    del self._tabs[tab_id]
                    removed.append(tab_id)
                    if self._active_tab_id == tab_id:
                        self._active_tab_id = None
        for tab_id in removed:
            self._emit(TabEvent(EventType.TAB_REMOVED, tab_id))
        return removed

    def request_extraction(self, tab_id: int) -> bool:
        self.extraction_requests.append(tab_id)
        tab = self.get_tab(tab_id)
        if tab is None or tab.url not in self.page_texts:
            return False
        self._emit(TabEvent(EventType.CONTENT_EXTRACTED, tab_id, url=tab.url,
                            title=tab.title, text=self.page_texts[tab.url]))
        return True

    # ==================== SIMULATION ====================

    def open_tab(self, url: str, title: str = "", window_id: Optional[int] = None,
                 activate: bool = False) -> TabInfo:
        """Open a tab and report it as fully loaded."""
        if url in self.failing_urls:
            raise RuntimeError(f"Cannot open {url}")
        with self._lock:
            tab = TabInfo(tab_id=self._next_id, url=url, title=title,
                          window_id=window_id or self.current_window_id)
            self._tabs[tab.tab_id] = tab
            self._next_id += 1
        logger.debug(f"Opened tab {tab.tab_id}: {url}")
        self._emit(TabEvent(EventType.TAB_UPDATED, tab.tab_id, status="complete", url=url, title=title))
        if activate:
            self.activate(tab.tab_id)
        return tab

    def navigate(self, tab_id: int, url: str, title: str = "") -> None:
        with self._lock:
            tab = self._tabs.get(tab_id)
            if tab is None:
                raise KeyError(f"No tab {tab_id}")
            tab.url = url
            tab.title = title
        self._emit(TabEvent(EventType.TAB_UPDATED, tab_id, status="loading", url=url, title=title))
        self._emit(TabEvent(EventType.TAB_UPDATED, tab_id, status="complete", url=url, title=title))

    def activate(self, tab_id: int) -> None:
        with self._lock:
            if tab_id not in self._tabs:
                raise KeyError(f"No tab {tab_id}")
            for tab in self._tabs.values():
                tab.is_active = tab.tab_id == tab_id
            self._active_tab_id = tab_id
        self._emit(TabEvent(EventType.TAB_ACTIVATED, tab_id))
