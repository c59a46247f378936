"""
Closed set of commands and events the core accepts, with explicit dispatch tables.

A dispatcher refuses to be built unless every command (or event) type has a
handler, so adding a member to an enum without wiring it fails at startup.
"""
import functools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from exceptions import TabFlowError
from models import BulkResult, ControlResult, ErrorKind, EventType, TabEvent

logger = logging.getLogger(__name__)


class CommandType(Enum):
    TOGGLE_FOCUS_MODE = "toggleFocusMode"
    CREATE_WORKSPACE = "createWorkspace"
    CLEANUP_DISTRACTIONS = "cleanupDistractions"
    SET_TAB_CATEGORY = "setTabCategory"
    ASSIGN_TAB_TO_WORKSPACE = "assignTabToWorkspace"
    RESOLVE_REVIEW = "resolveReview"
    ADD_CUSTOM_CATEGORY = "addCustomCategory"
    LOAD_WORKSPACE = "loadWorkspace"
    FOCUS_ON_WORKSPACE = "focusOnWorkspace"
    SUSPEND_WORKSPACE = "suspendWorkspace"
    RENAME_WORKSPACE = "renameWorkspace"
    DELETE_WORKSPACE = "deleteWorkspace"
    ANALYZE_SESSION = "analyzeSession"
    OVERRIDE_BLOCK = "overrideBlock"
    SET_CURRENT_GOAL = "setCurrentGoal"
    SET_WORKSPACE_GOAL = "setWorkspaceGoal"
    ADD_RULE = "addRule"
    REMOVE_RULE = "removeRule"
    GET_STATE = "getState"


@dataclass(frozen=True)
class Param:
    """One message field: wire key, keyword argument, and its expected type."""
    key: str
    name: str
    kind: type = str
    required: bool = True


COMMAND_PARAMS: Dict[CommandType, Tuple[Param, ...]] = {
    CommandType.TOGGLE_FOCUS_MODE: (),
    CommandType.CREATE_WORKSPACE: (Param("name", "name"),),
    CommandType.CLEANUP_DISTRACTIONS: (),
    CommandType.SET_TAB_CATEGORY: (Param("tabId", "tab_id", int), Param("category", "category")),
    CommandType.ASSIGN_TAB_TO_WORKSPACE: (Param("tabId", "tab_id", int),
                                          Param("workspaceId", "workspace_id", required=False)),
    CommandType.RESOLVE_REVIEW: (Param("url", "url"), Param("category", "category")),
    CommandType.ADD_CUSTOM_CATEGORY: (Param("category", "name"),),
    CommandType.LOAD_WORKSPACE: (Param("workspaceId", "workspace_id"),),
    CommandType.FOCUS_ON_WORKSPACE: (Param("workspaceId", "workspace_id"),),
    CommandType.SUSPEND_WORKSPACE: (Param("workspaceId", "workspace_id"),),
    CommandType.RENAME_WORKSPACE: (Param("workspaceId", "workspace_id"), Param("newName", "new_name")),
    CommandType.DELETE_WORKSPACE: (Param("workspaceId", "workspace_id"),),
    CommandType.ANALYZE_SESSION: (),
    CommandType.OVERRIDE_BLOCK: (Param("tabId", "tab_id", int), Param("url", "url")),
    CommandType.SET_CURRENT_GOAL: (Param("goal", "goal", required=False),),
    CommandType.SET_WORKSPACE_GOAL: (Param("workspaceId", "workspace_id"), Param("goal", "goal", required=False)),
    CommandType.ADD_RULE: (Param("pattern", "pattern"), Param("category", "category")),
    CommandType.REMOVE_RULE: (Param("pattern", "pattern"),),
    CommandType.GET_STATE: (),
}


@dataclass(frozen=True)
class Command:
    type: CommandType
    args: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_message(cls, message: Dict[str, Any]) -> "Command":
        """
        Build a command from a tagged message such as
        {"type": "renameWorkspace", "workspaceId": "ws_1", "newName": "Deep work"}.

        Raises:
            ValueError: unknown tag, missing field, or a field of the wrong type.
        """
        if not isinstance(message, dict):
            raise ValueError("Message must be an object")
        try:
            command_type = CommandType(message.get("type"))
        except ValueError:
            raise ValueError(f"Unknown command: {message.get('type')!r}")

        args = {}
        for param in COMMAND_PARAMS[command_type]:
            value = message.get(param.key)
            if value is None:
                if param.required:
                    raise ValueError(f"{command_type.value}: missing '{param.key}'")
                args[param.name] = None
                continue
            if not isinstance(value, param.kind) or isinstance(value, bool):
                raise ValueError(f"{command_type.value}: '{param.key}' must be {param.kind.__name__}")
            args[param.name] = value
        return cls(command_type, args)


def safe_command(func: Callable[..., ControlResult]) -> Callable[..., ControlResult]:
    """Command boundary: every exception becomes a failed ControlResult."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> ControlResult:
        try:
            return func(*args, **kwargs)
        except TabFlowError as e:
            logger.warning(f"{func.__name__} failed: {e}")
            return ControlResult(success=False, message=str(e), error=e.kind)
        except Exception as e:
            logger.error(f"Unexpected error in {func.__name__}: {e}", exc_info=True)
            return ControlResult(success=False, message=f"Unexpected error: {e}", error=ErrorKind.INTERNAL)

    return wrapper


def bulk_result(message: str, result: BulkResult, count_key: str, **details) -> ControlResult:
    """Successful result for a best-effort batch; partial failure is flagged, not fatal."""
    details.update({count_key: result.count, "succeeded": list(result.succeeded), "failed": list(result.failed)})
    if result.is_partial:
        message = f"{message} ({len(result.failed)} failed)"
    return ControlResult(
        success=True,
        message=message,
        error=ErrorKind.PARTIAL_FAILURE if result.is_partial else None,
        details=details,
    )


class CommandDispatcher:
    """Routes a Command to the handler registered for its type."""

    def __init__(self, handlers: Dict[CommandType, Callable[..., ControlResult]]):
        missing = [command.value for command in CommandType if command not in handlers]
        if missing:
            raise ValueError(f"No handler for commands: {missing}")
        self._handlers = dict(handlers)

    def dispatch(self, command: Command) -> ControlResult:
        return self._handlers[command.type](**command.args)

    def dispatch_message(self, message: Dict[str, Any]) -> ControlResult:
        try:
            command = Command.from_message(message)
        except ValueError as e:
            logger.warning(f"Rejected message: {e}")
            return ControlResult(success=False, message=str(e), error=ErrorKind.INVALID_COMMAND)
        return self.dispatch(command)


class EventDispatcher:
    """Routes a TabEvent to its handler. Handler failures are logged, never raised to the host."""

    def __init__(self, handlers: Dict[EventType, Callable[[TabEvent], Optional[Any]]]):
        missing = [event.value for event in EventType if event not in handlers]
        if missing:
            raise ValueError(f"No handler for events: {missing}")
        self._handlers = dict(handlers)

    def dispatch(self, event: TabEvent) -> Optional[Any]:
        try:
            return self._handlers[event.type](event)
        except Exception as e:
            logger.error(f"Error handling {event.type.value} for tab {event.tab_id}: {e}", exc_info=True)
            return None
