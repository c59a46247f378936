import logging
import threading
from typing import Optional, Set, Tuple
from urllib.parse import quote

from category_classifier import CategoryRuleEngine
from config import DISTRACTION_CATEGORIES, INTERSTITIAL_URL
from config_manager import FOCUS_MODE_KEY, RULES_KEY, TAB_METADATA_KEY
from layers.browser_controller import BrowserController
from layers.notification_controller import NotificationController
from layers.state_store import StateStore
from models import BulkResult, TabRecord
from utils import is_web_url

from .enums import BlockAction
from .models import BlockDecision

logger = logging.getLogger(__name__)


class ModeController:
    """
    Focus/distraction decisions.

    Focus mode redirects distraction-category pages to a pause page that
    carries the original URL. An override from the pause page is honoured
    exactly once for that tab and URL.
    """

    def __init__(self, store: StateStore, browser: BrowserController,
                 notification_controller: Optional[NotificationController] = None,
                 rule_engine: Optional[CategoryRuleEngine] = None):
        self.store = store
        self.browser_controller = browser
        self.notification_controller = notification_controller or NotificationController()
        self.rule_engine = rule_engine or CategoryRuleEngine()
        self._bypass: Set[Tuple[int, str]] = set()
        self._bypass_lock = threading.Lock()

    # ==================== FOCUS MODE ====================

    def is_focus_active(self) -> bool:
        return bool(self.store.get(FOCUS_MODE_KEY, False))

    def set_focus_mode(self, active: bool) -> bool:
        self.store.set(FOCUS_MODE_KEY, bool(active))
        logger.info(f"Focus mode {'activated' if active else 'deactivated'}")
        return bool(active)

    def toggle_focus_mode(self) -> bool:
        with self.store.transaction(FOCUS_MODE_KEY) as state:
            state[FOCUS_MODE_KEY] = not state[FOCUS_MODE_KEY]
            active = state[FOCUS_MODE_KEY]
        logger.info(f"Focus mode {'activated' if active else 'deactivated'}")
        return active

    @staticmethod
    def is_distraction(category: Optional[str]) -> bool:
        return category in DISTRACTION_CATEGORIES

    def should_block(self, category: Optional[str]) -> bool:
        return self.is_distraction(category) and self.is_focus_active()

    @staticmethod
    def interstitial_url(blocked_url: str) -> str:
        return f"{INTERSTITIAL_URL}?blockedUrl={quote(blocked_url, safe='')}"

    # ==================== NAVIGATION ====================

    def _category_for(self, tab_id: int, url: str) -> Optional[str]:
        """A matching rule first, else the stored category if it describes this URL."""
        by_rule = self.rule_engine.classify_by_rule(url, self.store.get(RULES_KEY, {}))
        if by_rule:
            return by_rule
        data = self.store.get(TAB_METADATA_KEY, {}).get(str(tab_id))
        if data and data.get("url") == url:
            record = TabRecord.from_dict(data)
            return record.user_category or record.ai_category
        return None

    def handle_navigation(self, tab_id: int, url: str, title: str = "") -> BlockDecision:
        """Evaluate a completed page load."""
        if not is_web_url(url):
            return BlockDecision(BlockAction.IGNORED, tab_id, url)
        if self._consume_bypass(tab_id, url):
            logger.info(f"Tab {tab_id}: override honoured for {url}")
            return BlockDecision(BlockAction.BYPASSED, tab_id, url)
        return self.enforce(tab_id, url, self._category_for(tab_id, url), title)

    def enforce(self, tab_id: int, url: str, category: Optional[str], title: str = "") -> BlockDecision:
        """Redirect the tab to the pause page if `category` is blocked right now."""
        if not self.should_block(category):
            return BlockDecision(BlockAction.ALLOWED, tab_id, url, category)

        redirect_url = self.interstitial_url(url)
        if not self.browser_controller.redirect_tab(tab_id, redirect_url):
            return BlockDecision(BlockAction.ALLOWED, tab_id, url, category)

        logger.info(f"Focus mode: blocked distracting tab ({category}): {url}")
        self.notification_controller.send_notification(
            "Focus mode", f"Blocked distracting site: {title or url}"
        )
        return BlockDecision(BlockAction.REDIRECTED, tab_id, url, category, redirect_url)

    def override_block(self, tab_id: int, url: str) -> bool:
        """Send the tab back to `url`; the next load of it is not blocked."""
        with self._bypass_lock:
            self._bypass.add((tab_id, url))
        if self.browser_controller.redirect_tab(tab_id, url):
            return True
        self._consume_bypass(tab_id, url)
        return False

    def _consume_bypass(self, tab_id: int, url: str) -> bool:
        with self._bypass_lock:
            if (tab_id, url) in self._bypass:
                self._bypass.discard((tab_id, url))
                return True
        return False

    def forget_tab(self, tab_id: int) -> None:
        with self._bypass_lock:
            self._bypass = {tag for tag in self._bypass if tag[0] != tab_id}

    # ==================== CLEANUP ====================

    def cleanup_distractions(self) -> BulkResult:
        """Close every distraction tab in the current window, focus mode or not."""
        metadata = self.store.get(TAB_METADATA_KEY, {})
        to_close = [
            tab.tab_id for tab in self.browser_controller.web_tabs(current_window_only=True)
            if str(tab.tab_id) in metadata
            and self.is_distraction(TabRecord.from_dict(metadata[str(tab.tab_id)]).effective_category)
        ]
        result = self.browser_controller.close_tabs(to_close)
        logger.info(f"Cleanup closed {result.count} distracting tabs")
        return result
