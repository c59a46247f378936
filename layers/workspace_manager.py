# layers/workspace_manager.py
"""
Named groups of URLs and the tabs currently open for them.

Tab membership lives on both sides: `TabRecord.assigned_workspace` and
`Workspace.active_tab_ids`. Every operation that touches one side updates
the other in the same store transaction.
"""
import logging
from typing import Callable, Dict, List, Optional

from config_manager import SESSION_START_KEY, TAB_METADATA_KEY, WORKSPACES_KEY
from exceptions import (
    DuplicateNameError,
    EmptyNameError,
    EmptyWorkspaceError,
    TabNotFoundError,
    WorkspaceNotFoundError,
)
from models import BulkResult, Workspace
from utils import generate_workspace_id, iso_from_ms, now_ms
from .browser_controller import BrowserController
from .state_store import StateStore
from .tab_metadata import TabMetadataStore

logger = logging.getLogger(__name__)


def _clean_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise EmptyNameError("Workspace name cannot be empty.")
    return cleaned


def _require(workspaces: Dict[str, Dict], workspace_id: Optional[str]) -> Dict:
    workspace = workspaces.get(workspace_id) if workspace_id else None
    if workspace is None:
        raise WorkspaceNotFoundError(f"Workspace not found: {workspace_id}")
    return workspace


def _check_unique(workspaces: Dict[str, Dict], name: str, exclude_id: Optional[str] = None) -> None:
    if any(ws["name"].lower() == name.lower() and ws_id != exclude_id for ws_id, ws in workspaces.items()):
        raise DuplicateNameError(f"A workspace named '{name}' already exists.")


class WorkspaceManager:

    def __init__(self, store: StateStore, browser: BrowserController, clock: Callable[[], int] = now_ms):
        self.store = store
        self.browser = browser
        self.clock = clock
        self.metadata = TabMetadataStore(store)

    # ==================== QUERIES ====================

    def get(self, workspace_id: str) -> Workspace:
        return Workspace.from_dict(_require(self.store.get(WORKSPACES_KEY, {}), workspace_id))

    def list_workspaces(self) -> List[Workspace]:
        return [Workspace.from_dict(data) for data in self.store.get(WORKSPACES_KEY, {}).values()]

    # ==================== LIFECYCLE ====================

    def create(self, name: str, goal: Optional[str] = None) -> Workspace:
        name = _clean_name(name)
        stamp = iso_from_ms(self.clock())
        with self.store.transaction(WORKSPACES_KEY) as state:
            workspaces = state[WORKSPACES_KEY] or {}
            _check_unique(workspaces, name)
            workspace = Workspace(id=generate_workspace_id(), name=name, goal=goal,
                                  created_date=stamp, last_accessed=stamp)
            workspaces[workspace.id] = workspace.to_dict()
            state[WORKSPACES_KEY] = workspaces
        logger.info(f"Created workspace '{name}' ({workspace.id})")
        return workspace

    def rename(self, workspace_id: str, new_name: str) -> Workspace:
        with self.store.transaction(WORKSPACES_KEY) as state:
            workspaces = state[WORKSPACES_KEY] or {}
            workspace = _require(workspaces, workspace_id)
            new_name = _clean_name(new_name)
            _check_unique(workspaces, new_name, exclude_id=workspace_id)
            old_name, workspace["name"] = workspace["name"], new_name
            state[WORKSPACES_KEY] = workspaces
        logger.info(f"Renamed workspace '{old_name}' to '{new_name}'")
        return Workspace.from_dict(workspace)

    def set_goal(self, workspace_id: str, goal: Optional[str]) -> Workspace:
        with self.store.transaction(WORKSPACES_KEY) as state:
            workspaces = state[WORKSPACES_KEY] or {}
            workspace = _require(workspaces, workspace_id)
            workspace["goal"] = (goal or "").strip() or None
            state[WORKSPACES_KEY] = workspaces
        return Workspace.from_dict(workspace)

    def delete(self, workspace_id: str) -> List[int]:
        """Remove the workspace and unassign its tabs. Open tabs stay open."""
        with self.store.transaction(WORKSPACES_KEY, TAB_METADATA_KEY) as state:
            workspaces = state[WORKSPACES_KEY] or {}
            workspace = _require(workspaces, workspace_id)
            unassigned = self.metadata.clear_workspace(workspace_id)
            del workspaces[workspace_id]
            state[WORKSPACES_KEY] = workspaces
        logger.info(f"Deleted workspace '{workspace['name']}', unassigned tabs {unassigned}")
        return unassigned

    # ==================== MEMBERSHIP ====================

    def assign(self, tab_id: int, workspace_id: Optional[str]) -> Optional[str]:
        """
        Move a tab into `workspace_id`, or out of any workspace when None.

        The target is checked before anything changes. Returns the id of the
        workspace the tab left, if any.
        """
        with self.store.transaction(WORKSPACES_KEY, TAB_METADATA_KEY) as state:
            workspaces = state[WORKSPACES_KEY] or {}
            metadata = state[TAB_METADATA_KEY] or {}
            record = metadata.get(str(tab_id))
            if record is None:
                raise TabNotFoundError(f"No metadata for tab {tab_id}. Is the tab open?")
            target = _require(workspaces, workspace_id) if workspace_id is not None else None

            previous = record.get("assigned_workspace")
            if previous == workspace_id:
                return previous

            self._detach(workspaces, metadata, tab_id, previous, drop_url=True)
            if target is not None:
                if tab_id not in target["active_tab_ids"]:
                    target["active_tab_ids"].append(tab_id)
                if record["url"] not in target["urls"]:
                    target["urls"].append(record["url"])
            record["assigned_workspace"] = workspace_id
            state[WORKSPACES_KEY] = workspaces
            state[TAB_METADATA_KEY] = metadata

        logger.info(f"Tab {tab_id} moved from {previous} to {workspace_id}")
        return previous

    def detach_closed_tab(self, tab_id: int, workspace_id: Optional[str]) -> None:
        """A closed tab leaves its workspace's open set; its URL stays saved."""
        if not workspace_id:
            return
        with self.store.transaction(WORKSPACES_KEY, TAB_METADATA_KEY) as state:
            workspaces = state[WORKSPACES_KEY] or {}
            self._detach(workspaces, state[TAB_METADATA_KEY] or {}, tab_id, workspace_id, drop_url=False)
            state[WORKSPACES_KEY] = workspaces

    def remember_url(self, workspace_id: str, url: str) -> None:
        """An assigned tab navigated: keep its new URL saved too."""
        with self.store.transaction(WORKSPACES_KEY) as state:
            workspace = (state[WORKSPACES_KEY] or {}).get(workspace_id)
            if workspace is not None and url not in workspace["urls"]:
                workspace["urls"].append(url)

    @staticmethod
    def _detach(workspaces: Dict[str, Dict], metadata: Dict[str, Dict], tab_id: int,
                workspace_id: Optional[str], drop_url: bool) -> None:
        workspace = workspaces.get(workspace_id) if workspace_id else None
        if workspace is None:
            return
        workspace["active_tab_ids"] = [tid for tid in workspace["active_tab_ids"] if tid != tab_id]
        if not drop_url:
            return
        url = (metadata.get(str(tab_id)) or {}).get("url")
        shared = any((metadata.get(str(tid)) or {}).get("url") == url for tid in workspace["active_tab_ids"])
        if url and not shared:
            workspace["urls"] = [u for u in workspace["urls"] if u != url]

    # ==================== TAB ACTIONS ====================

    def load(self, workspace_id: str) -> BulkResult:
        """Open a tab per saved URL and restart the session clock."""
        workspace = self.get(workspace_id)
        if not workspace.urls:
            raise EmptyWorkspaceError(f"Workspace '{workspace.name}' is empty.")

        result = self.browser.open_urls(workspace.urls)

        now = self.clock()
        with self.store.transaction(WORKSPACES_KEY, SESSION_START_KEY) as state:
            state[SESSION_START_KEY] = now
            self._touch(state[WORKSPACES_KEY] or {}, workspace_id, now)
        logger.info(f"Loaded workspace '{workspace.name}': {result.count}/{len(workspace.urls)} tabs opened")
        return result

    def focus_on(self, workspace_id: str) -> BulkResult:
        """Close every web tab in the current window that does not belong to the workspace."""
        workspace = self.get(workspace_id)
        metadata = self.store.get(TAB_METADATA_KEY, {})
        to_close = [
            tab.tab_id for tab in self.browser.web_tabs(current_window_only=True)
            if (metadata.get(str(tab.tab_id)) or {}).get("assigned_workspace") != workspace_id
        ]
        result = self.browser.close_tabs(to_close)

        with self.store.transaction(WORKSPACES_KEY) as state:
            self._touch(state[WORKSPACES_KEY] or {}, workspace_id, self.clock())
        logger.info(f"Focused on workspace '{workspace.name}', closed {result.count} tabs")
        return result

    def suspend(self, workspace_id: str) -> BulkResult:
        """Close every open tab assigned to the workspace. Its URLs stay saved."""
        workspace = self.get(workspace_id)
        assigned = set(self.metadata.tabs_in_workspace(workspace_id))
        to_close = [tab_id for tab_id in self.browser.open_tab_ids() if tab_id in assigned]
        result = self.browser.close_tabs(to_close)
        logger.info(f"Suspended workspace '{workspace.name}', closed {result.count} tabs")
        return result

    def _touch(self, workspaces: Dict[str, Dict], workspace_id: str, now: int) -> None:
        if workspace_id in workspaces:
            workspaces[workspace_id]["last_accessed"] = iso_from_ms(now)
