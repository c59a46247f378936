# tracker.py
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import asdict
from typing import Callable, Dict, List, Optional, Set

from analytics import SessionAnalytics
from category_classifier import CategoryRuleEngine
from commands import CommandDispatcher, CommandType, EventDispatcher, bulk_result, safe_command
from config import CLASSIFICATION_WORKERS, CLASSIFIER_TIMEOUT_SECONDS
from config_manager import (
    CURRENT_GOAL_KEY,
    FOCUS_MODE_KEY,
    SESSION_START_KEY,
    TAB_METADATA_KEY,
    USER_CATEGORIES_KEY,
    WORKSPACES_KEY,
)
from database import DatabaseManager, KeyValueStore
from layers.browser_controller import BrowserController, TabDirectory
from layers.notification_controller import NotificationController
from layers.review_queue import ReviewQueue
from layers.state_store import StateStore
from layers.tab_metadata import TabMetadataStore
from layers.time_accounting import TimeAccountingEngine
from layers.workspace_manager import WorkspaceManager
from models import ControlResult, ErrorKind, EventType, ReviewEntry, TabEvent, TabRecord, Workspace
from ModeController.mode_controller import ModeController
from ModeController.models import BlockDecision
from parser import PageContentParser
from productivity_tracker import ProductivityTracker
from Providers.AIProvider import AIProvider
from Providers.classifier_adapter import ClassifierAdapter
from utils import is_web_url, now_ms

logger = logging.getLogger(__name__)


class TabTracker:
    """
    Composition root and command surface.

    Consumes tab events from a TabDirectory and page-content events, and
    exposes every user command as a method returning a ControlResult.
    Commands never raise.
    """

    def __init__(
        self,
        directory: TabDirectory,
        kv_store: Optional[KeyValueStore] = None,
        ai_provider: Optional[AIProvider] = None,
        clock: Callable[[], int] = now_ms,
        classifier_timeout: float = CLASSIFIER_TIMEOUT_SECONDS,
        workers: int = CLASSIFICATION_WORKERS,
    ):
        self.clock = clock
        self.directory = directory
        self.store = StateStore(kv_store or DatabaseManager())
        self.store.initialize_defaults(clock())

        # Composition: the tracker wires these helpers, but doesn't implement them.
        self.browser_controller = BrowserController(directory)
        self.notification_controller = NotificationController()
        self.rule_engine = CategoryRuleEngine()
        self.metadata = TabMetadataStore(self.store)
        self.review_queue = ReviewQueue(self.store, self.metadata, clock)
        self.classifier = ClassifierAdapter(ai_provider, timeout=classifier_timeout)
        self.productivity = ProductivityTracker(self.store, self.review_queue, self.classifier, self.rule_engine)
        self.time_accounting = TimeAccountingEngine(self.store, clock, on_unknown_tab=self._classify_unknown_tab)
        self.workspaces = WorkspaceManager(self.store, self.browser_controller, clock)
        self.mode_controller = ModeController(self.store, self.browser_controller,
                                              self.notification_controller, self.rule_engine)
        self.analytics = SessionAnalytics(self.store, self.time_accounting, clock)
        self.page_parser = PageContentParser()

        self.executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="classify")
        self._pending: Set[Future] = set()
        self._pending_lock = threading.Lock()

        self.events = EventDispatcher({
            EventType.TAB_UPDATED: self._on_tab_updated,
            EventType.TAB_ACTIVATED: self._on_tab_activated,
            EventType.TAB_REMOVED: self._on_tab_removed,
            EventType.CONTENT_EXTRACTED: self._on_content_extracted,
        })
        self.commands = CommandDispatcher({
            CommandType.TOGGLE_FOCUS_MODE: self.toggle_focus_mode,
            CommandType.CREATE_WORKSPACE: self.create_workspace,
            CommandType.CLEANUP_DISTRACTIONS: self.cleanup_distractions,
            CommandType.SET_TAB_CATEGORY: self.set_tab_category,
            CommandType.ASSIGN_TAB_TO_WORKSPACE: self.assign_tab_to_workspace,
            CommandType.RESOLVE_REVIEW: self.resolve_review,
            CommandType.ADD_CUSTOM_CATEGORY: self.add_custom_category,
            CommandType.LOAD_WORKSPACE: self.load_workspace,
            CommandType.FOCUS_ON_WORKSPACE: self.focus_on_workspace,
            CommandType.SUSPEND_WORKSPACE: self.suspend_workspace,
            CommandType.RENAME_WORKSPACE: self.rename_workspace,
            CommandType.DELETE_WORKSPACE: self.delete_workspace,
            CommandType.ANALYZE_SESSION: self.analyze_session,
            CommandType.OVERRIDE_BLOCK: self.override_block,
            CommandType.SET_CURRENT_GOAL: self.set_current_goal,
            CommandType.SET_WORKSPACE_GOAL: self.set_workspace_goal,
            CommandType.ADD_RULE: self.add_rule,
            CommandType.REMOVE_RULE: self.remove_rule,
            CommandType.GET_STATE: self.get_state,
        })

        directory.subscribe(self.handle_event)

    # ==================== EVENTS ====================

    def handle_event(self, event: TabEvent):
        return self.events.dispatch(event)

    def handle_message(self, message: Dict) -> ControlResult:
        """Entry point for tagged messages from the UI."""
        return self.commands.dispatch_message(message)

    def subscribe(self, listener: Callable[[Set[str]], None]) -> None:
        """`listener` receives the changed state keys after every committed update."""
        self.store.subscribe(listener)

    def _on_tab_updated(self, event: TabEvent) -> Optional[BlockDecision]:
        if event.status != "complete" or not is_web_url(event.url):
            return None
        self.browser_controller.request_extraction(event.tab_id)
        decision = self.mode_controller.handle_navigation(event.tab_id, event.url, event.title)
        # a completed load is a fresh session for the tab, even at the same URL
        self.classify_tab(event.tab_id, event.url, event.title)
        return decision

    def _on_tab_activated(self, event: TabEvent) -> bool:
        return self.time_accounting.record_activation(event.tab_id)

    def _on_tab_removed(self, event: TabEvent) -> Optional[TabRecord]:
        with self.store.transaction(TAB_METADATA_KEY, WORKSPACES_KEY):
            record = self.metadata.remove(event.tab_id)
            if record is not None:
                self.workspaces.detach_closed_tab(event.tab_id, record.assigned_workspace)
        self.mode_controller.forget_tab(event.tab_id)
        return record

    def _on_content_extracted(self, event: TabEvent) -> Optional[Future]:
        page = self.page_parser.parse(event.url, event.title, event.text)
        if page is None:
            return None
        logger.debug(f"Content extracted from tab {event.tab_id}: {page.display_title}")
        future = self.executor.submit(self.classify_tab, event.tab_id, page.url, page.title, page.text,
                                      require_current_url=True)
        with self._pending_lock:
            self._pending.add(future)
        future.add_done_callback(self._forget_future)
        return future

    def _forget_future(self, future: Future) -> None:
        with self._pending_lock:
            self._pending.discard(future)
        if future.exception() is not None:
            logger.error(f"Background classification failed: {future.exception()}")

    def _classify_unknown_tab(self, tab_id: int) -> None:
        """An activated tab with no record yet: classify from what the directory knows."""
        tab = self.browser_controller.get_tab(tab_id)
        if tab is None or not tab.is_web:
            return
        if self.metadata.get(tab_id) is not None:
            self.time_accounting.record_activation(tab_id)
            return
        self.classify_tab(tab_id, tab.url, tab.title, "")

    def classify_tab(self, tab_id: int, url: str, title: str = "", text: str = "",
                     require_current_url: bool = False) -> Optional[TabRecord]:
        """
        Classify a page and store the result for the tab.

        The classifier runs outside the store lock; the result is merged
        and the tab made foreground in one short transaction. The result is
        dropped if the tab closed meanwhile, or, with `require_current_url`,
        if the tab has since navigated away from `url`.
        """
        outcome = self.productivity.classify(url, text, self.metadata.get(tab_id))
        with self.store.transaction(TAB_METADATA_KEY, WORKSPACES_KEY):
            tab = self.browser_controller.get_tab(tab_id)
            if tab is None:
                logger.debug(f"Tab {tab_id} closed before its classification was stored")
                return None
            if require_current_url and tab.url != url:
                logger.debug(f"Tab {tab_id} left {url} before its classification was stored")
                return None

            ai_category, user_category = outcome.ai_category, outcome.user_category
            current = self.metadata.get(tab_id)
            # re-read: another flow may have written this tab while the classifier ran
            if outcome.source != "rule" and current is not None:
                user_category = current.user_category
                if outcome.source != "classifier" and current.url == url and current.ai_category:
                    ai_category = current.ai_category
            record = self.metadata.apply_classification(tab_id, url, title, ai_category, user_category)
            if record.assigned_workspace:
                self.workspaces.remember_url(record.assigned_workspace, url)
            self.time_accounting.record_activation(tab_id)
            return self.metadata.require(tab_id)

    def wait_for_classifications(self, timeout: Optional[float] = None) -> None:
        with self._pending_lock:
            pending = list(self._pending)
        for future in pending:
            future.result(timeout=timeout)

    def shutdown(self) -> None:
        self.executor.shutdown(wait=True)
        self.classifier.shutdown()

    # ==================== COMMANDS ====================

    @safe_command
    def toggle_focus_mode(self) -> ControlResult:
        active = self.mode_controller.toggle_focus_mode()
        return ControlResult(True, f"Focus mode is now {'ON' if active else 'OFF'}",
                             details={"focus_mode_active": active})

    @safe_command
    def cleanup_distractions(self) -> ControlResult:
        result = self.mode_controller.cleanup_distractions()
        return bulk_result(f"Closed {result.count} distracting tabs", result, "closed_count")

    @safe_command
    def override_block(self, tab_id: int, url: str) -> ControlResult:
        if not self.mode_controller.override_block(tab_id, url):
            return ControlResult(False, f"Could not restore {url} in tab {tab_id}")
        return ControlResult(True, f"Restored {url}")

    @safe_command
    def set_tab_category(self, tab_id: int, category: str) -> ControlResult:
        category = self.productivity.require_category(category)
        self.metadata.set_user_category(tab_id, category)
        return ControlResult(True, f"Tab {tab_id} set to {category}", details={"category": category})

    @safe_command
    def add_custom_category(self, name: str) -> ControlResult:
        categories = self.productivity.add_category(name)
        return ControlResult(True, f"Category '{name.strip()}' added", details={"categories": categories})

    @safe_command
    def resolve_review(self, url: str, category: str) -> ControlResult:
        category = self.productivity.require_category(category)
        open_ids = self.browser_controller.open_tab_ids()
        updated = self.review_queue.resolve(url, category, open_ids)
        return ControlResult(True, f"{url} categorized as {category}", details={"updated_tabs": updated})

    @safe_command
    def add_rule(self, pattern: str, category: str) -> ControlResult:
        rule = self.productivity.add_rule(pattern, category)
        return ControlResult(True, f"Rule added: {rule.pattern} -> {rule.category}")

    @safe_command
    def remove_rule(self, pattern: str) -> ControlResult:
        if not self.productivity.remove_rule(pattern):
            return ControlResult(False, f"No rule for '{pattern}'", error=ErrorKind.NOT_FOUND)
        return ControlResult(True, f"Rule removed: {pattern}")

    @safe_command
    def export_rules(self, file_path: str) -> ControlResult:
        count = self.productivity.export_rules(file_path)
        return ControlResult(True, f"Exported {count} rules", details={"count": count})

    @safe_command
    def import_rules(self, file_path: str, replace: bool = False) -> ControlResult:
        count = self.productivity.import_rules(file_path, replace=replace)
        return ControlResult(True, f"Imported {count} rules", details={"count": count})

    @safe_command
    def set_current_goal(self, goal: Optional[str]) -> ControlResult:
        goal = (goal or "").strip() or None
        self.store.set(CURRENT_GOAL_KEY, goal)
        return ControlResult(True, f"Goal set to {goal!r}" if goal else "Goal cleared")

    @safe_command
    def analyze_session(self) -> ControlResult:
        report = self.analytics.analyze(self.browser_controller.get_active_tab_id())
        return ControlResult(True, f"Productivity score: {report.score}", details=asdict(report))

    @safe_command
    def get_state(self) -> ControlResult:
        return ControlResult(True, "State snapshot", details=self.get_state_snapshot())

    # ---------- workspaces ----------

    @safe_command
    def create_workspace(self, name: str, goal: Optional[str] = None) -> ControlResult:
        workspace = self.workspaces.create(name, goal)
        return ControlResult(True, f"Workspace '{workspace.name}' created",
                             details={"workspace_id": workspace.id, "name": workspace.name})

    @safe_command
    def assign_tab_to_workspace(self, tab_id: int, workspace_id: Optional[str]) -> ControlResult:
        previous = self.workspaces.assign(tab_id, workspace_id)
        message = f"Tab {tab_id} assigned to {workspace_id}" if workspace_id else f"Tab {tab_id} unassigned"
        return ControlResult(True, message, details={"previous_workspace": previous, "workspace_id": workspace_id})

    @safe_command
    def load_workspace(self, workspace_id: str) -> ControlResult:
        result = self.workspaces.load(workspace_id)
        name = self.workspaces.get(workspace_id).name
        return bulk_result(f"Loaded workspace '{name}'", result, "opened_count", name=name)

    @safe_command
    def focus_on_workspace(self, workspace_id: str) -> ControlResult:
        result = self.workspaces.focus_on(workspace_id)
        name = self.workspaces.get(workspace_id).name
        return bulk_result(f"Focused on '{name}', closed {result.count} tabs", result, "closed_count", name=name)

    @safe_command
    def suspend_workspace(self, workspace_id: str) -> ControlResult:
        result = self.workspaces.suspend(workspace_id)
        name = self.workspaces.get(workspace_id).name
        return bulk_result(f"Suspended '{name}', closed {result.count} tabs", result, "closed_count", name=name)

    @safe_command
    def rename_workspace(self, workspace_id: str, new_name: str) -> ControlResult:
        workspace = self.workspaces.rename(workspace_id, new_name)
        return ControlResult(True, f"Workspace renamed to '{workspace.name}'", details={"new_name": workspace.name})

    @safe_command
    def delete_workspace(self, workspace_id: str) -> ControlResult:
        unassigned = self.workspaces.delete(workspace_id)
        return ControlResult(True, "Workspace deleted", details={"unassigned_tabs": unassigned})

    @safe_command
    def set_workspace_goal(self, workspace_id: str, goal: Optional[str]) -> ControlResult:
        workspace = self.workspaces.set_goal(workspace_id, goal)
        return ControlResult(True, f"Goal for '{workspace.name}' updated", details={"goal": workspace.goal})

    # ==================== QUERIES ====================

    def list_workspaces(self) -> List[Workspace]:
        return self.workspaces.list_workspaces()

    def get_review_queue(self) -> List[ReviewEntry]:
        return self.review_queue.list_entries()

    def get_tab_categories(self) -> Dict[int, str]:
        return {tab_id: record.effective_category for tab_id, record in self.metadata.all_records().items()}

    def get_tab(self, tab_id: int) -> Optional[TabRecord]:
        return self.metadata.get(tab_id)

    def get_categories(self) -> List[str]:
        return self.store.get(USER_CATEGORIES_KEY, [])

    def get_score_history(self, limit: Optional[int] = None):
        return self.analytics.get_score_history(limit)

    def get_daily_summary(self, days: int = 7) -> Dict[str, Dict]:
        return self.analytics.get_daily_summary(days)

    def get_stats(self) -> Dict:
        return self.productivity.get_stats()

    def is_focus_mode_active(self) -> bool:
        return self.mode_controller.is_focus_active()

    def get_state_snapshot(self) -> Dict:
        """Everything the UI renders, read in one consistent snapshot."""
        with self.store.lock:
            state = self.store.snapshot(FOCUS_MODE_KEY, CURRENT_GOAL_KEY, WORKSPACES_KEY, USER_CATEGORIES_KEY,
                                        SESSION_START_KEY)
            state["tabCategories"] = self.get_tab_categories()
            state["reviewQueue"] = [entry.to_dict() for entry in self.get_review_queue()]
            state["sessionDuration"] = self.analytics.get_session_duration()
        return state
