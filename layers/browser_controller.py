import logging
from abc import ABC, abstractmethod
from typing import Callable, Iterable, List, Optional
from dataclasses import dataclass

from models import BulkResult, TabEvent
from utils import is_web_url

logger = logging.getLogger(__name__)

TabEventListener = Callable[[TabEvent], None]


@dataclass
class TabInfo:
    """Information about a browser tab"""
    tab_id: int
    url: str
    title: str = ""
    window_id: int = 1
    is_active: bool = False

    @property
    def is_web(self) -> bool:
        return is_web_url(self.url)


class TabDirectory(ABC):
    """
    The host browser's tab enumeration and navigation API.

    Implementations report tab lifecycle changes as TabEvents to every
    subscribed listener.
    """

    def __init__(self):
        self._listeners: List[TabEventListener] = []

    @abstractmethod
    def query_tabs(self, current_window_only: bool = False) -> List[TabInfo]:
        pass

    @abstractmethod
    def get_tab(self, tab_id: int) -> Optional[TabInfo]:
        pass

    @abstractmethod
    def get_active_tab(self) -> Optional[TabInfo]:
        pass

    @abstractmethod
    def create_tab(self, url: str) -> TabInfo:
        pass

    @abstractmethod
    def update_tab_url(self, tab_id: int, url: str) -> None:
        pass

    @abstractmethod
    def remove_tabs(self, tab_ids: List[int]) -> List[int]:
        """Close tabs in one batch. Returns the ids that were actually closed."""
        pass

    def request_extraction(self, tab_id: int) -> bool:
        """Ask the page-content collaborator for fresh text. False if unsupported."""
        return False

    def subscribe(self, listener: TabEventListener) -> None:
        self._listeners.append(listener)

    def _emit(self, event: TabEvent) -> None:
        for listener in list(self._listeners):
            listener(event)


class BrowserController:
    """Bulk and single-tab commands issued against a TabDirectory"""

    def __init__(self, directory: TabDirectory):
        self.directory = directory

    # ==================== QUERIES ====================

    def web_tabs(self, current_window_only: bool = False) -> List[TabInfo]:
        """Open http/https tabs; extension and internal pages are never touched."""
        return [tab for tab in self.directory.query_tabs(current_window_only) if tab.is_web]

    def open_tab_ids(self) -> List[int]:
        return [tab.tab_id for tab in self.directory.query_tabs()]

    def get_tab(self, tab_id: int) -> Optional[TabInfo]:
        return self.directory.get_tab(tab_id)

    def get_active_tab_id(self) -> Optional[int]:
        tab = self.directory.get_active_tab()
        return tab.tab_id if tab else None

    # ==================== BULK ACTIONS ====================

    def close_tabs(self, tab_ids: Iterable[int]) -> BulkResult:
        """
        Close many tabs with a single batch call.

        Partial failure is tolerated and reported, never rolled back.
        """
        tab_ids = list(dict.fromkeys(tab_ids))
        if not tab_ids:
            return BulkResult()
        try:
            closed = set(self.directory.remove_tabs(tab_ids))
        except Exception as e:
            logger.warning(f"Batch close of {len(tab_ids)} tabs failed: {e}")
            return BulkResult(failed=tab_ids)

        result = BulkResult(
            succeeded=[tab_id for tab_id in tab_ids if tab_id in closed],
            failed=[tab_id for tab_id in tab_ids if tab_id not in closed],
        )
        if result.is_partial:
            logger.warning(f"Could not close tabs {result.failed}")
        logger.info(f"Closed {result.count} tabs")
        return result

    def open_urls(self, urls: Iterable[str]) -> BulkResult:
        """Open one tab per URL; a URL that fails is logged and skipped."""
        result = BulkResult()
        for url in urls:
            try:
                self.directory.create_tab(url)
                result.succeeded.append(url)
            except Exception as e:
                logger.warning(f"Failed to open tab for URL {url}: {e}")
                result.failed.append(url)
        logger.info(f"Opened {result.count} tabs")
        return result

    # ==================== SINGLE TAB ====================

    def redirect_tab(self, tab_id: int, url: str) -> bool:
        try:
            self.directory.update_tab_url(tab_id, url)
            return True
        except Exception as e:
            logger.warning(f"Could not navigate tab {tab_id} to {url}: {e}")
            return False

    def request_extraction(self, tab_id: int) -> bool:
        """Best-effort; internal pages or permission problems only produce a warning."""
        try:
            return self.directory.request_extraction(tab_id)
        except Exception as e:
            logger.warning(f"Could not request content from tab {tab_id}: {e}")
            return False
