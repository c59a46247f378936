# models.py
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional


DEFAULT_WORKSPACE_METRICS = {"total_time_spent": 0, "avg_focus_score": 0, "analyses": 0}


class ErrorKind(Enum):
    """Reasons a command can fail (or partially fail)."""
    NOT_FOUND = "not_found"
    DUPLICATE_NAME = "duplicate_name"
    EMPTY_NAME = "empty_name"
    EMPTY = "empty"
    INVALID_URL = "invalid_url"
    CLASSIFIER_UNAVAILABLE = "classifier_unavailable"
    PARTIAL_FAILURE = "partial_failure"
    INVALID_COMMAND = "invalid_command"
    INTERNAL = "internal"


class EventType(Enum):
    """Events the core consumes from the host browser and the content script."""
    TAB_UPDATED = "tab_updated"
    TAB_ACTIVATED = "tab_activated"
    TAB_REMOVED = "tab_removed"
    CONTENT_EXTRACTED = "content_extracted"


@dataclass(frozen=True)
class TabEvent:
    """A single tab-directory or page-content event."""
    type: EventType
    tab_id: int
    status: Optional[str] = None
    url: Optional[str] = None
    title: str = ""
    text: str = ""


@dataclass
class ControlResult:
    """Result of a command issued against the core"""
    success: bool
    message: str
    error: Optional[ErrorKind] = None
    details: Dict = field(default_factory=dict)


@dataclass
class BulkResult:
    """Outcome of a best-effort batch operation (close/open many tabs)."""
    succeeded: List[Any] = field(default_factory=list)
    failed: List[Any] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.succeeded)

    @property
    def is_partial(self) -> bool:
        return bool(self.failed)


@dataclass(frozen=True)
class Rule:
    """URL pattern (domain substring or wildcard regex) mapped to a category."""
    pattern: str
    category: str


@dataclass
class Classification:
    """A classifier's guess for a page."""
    category: str
    confidence: float = 0.0


@dataclass
class TabRecord:
    """Authoritative per-tab record kept in the Tab Metadata Store."""
    url: str
    title: str = ""
    ai_category: Optional[str] = None
    user_category: Optional[str] = None
    assigned_workspace: Optional[str] = None
    time_active_ms: int = 0
    last_activated_at: Optional[int] = None  # epoch ms; None = not foreground

    @property
    def effective_category(self) -> str:
        """User override first, then automatic classification, then 'Others'."""
        return self.user_category or self.ai_category or "Others"

    @property
    def is_active(self) -> bool:
        return self.last_activated_at is not None

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> "TabRecord":
        return cls(
            url=data.get("url", ""),
            title=data.get("title", ""),
            ai_category=data.get("ai_category"),
            user_category=data.get("user_category"),
            assigned_workspace=data.get("assigned_workspace"),
            time_active_ms=int(data.get("time_active_ms") or 0),
            last_activated_at=data.get("last_activated_at"),
        )


@dataclass
class ReviewEntry:
    """Low-confidence classification waiting for the user to confirm it."""
    url: str
    ai_guess: str
    timestamp: int

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> "ReviewEntry":
        return cls(url=data["url"], ai_guess=data.get("ai_guess", "Others"), timestamp=data.get("timestamp", 0))


@dataclass
class Workspace:
    """A named, persisted group of URLs with its currently open member tabs."""
    id: str
    name: str
    goal: Optional[str] = None
    urls: List[str] = field(default_factory=list)  # ordered, deduplicated by value
    active_tab_ids: List[int] = field(default_factory=list)
    created_date: str = ""
    last_accessed: str = ""
    metrics: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_WORKSPACE_METRICS))

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> "Workspace":
        return cls(
            id=data["id"],
            name=data["name"],
            goal=data.get("goal"),
            urls=list(data.get("urls", [])),
            active_tab_ids=[int(tab_id) for tab_id in data.get("active_tab_ids", [])],
            created_date=data.get("created_date", ""),
            last_accessed=data.get("last_accessed", ""),
            metrics={**DEFAULT_WORKSPACE_METRICS, **(data.get("metrics") or {})},
        )


@dataclass(frozen=True)
class ScoreHistoryEntry:
    """One immutable snapshot appended per analysis run."""
    date: str
    score: int
    timestamp: int
    categories_distribution: Dict[str, int]
    time_per_category: Dict[str, int]
    total_session_time: int
    time_sinks: List[str]

    def to_dict(self) -> Dict:
        return {
            "date": self.date,
            "score": self.score,
            "timestamp": self.timestamp,
            "categoriesDistribution": dict(self.categories_distribution),
            "timePerCategory": dict(self.time_per_category),
            "totalSessionTime": self.total_session_time,
            "timeSinks": list(self.time_sinks),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "ScoreHistoryEntry":
        return cls(
            date=data.get("date", ""),
            score=int(data.get("score", 0)),
            timestamp=int(data.get("timestamp", 0)),
            categories_distribution=dict(data.get("categoriesDistribution", {})),
            time_per_category=dict(data.get("timePerCategory", {})),
            total_session_time=int(data.get("totalSessionTime", 0)),
            time_sinks=list(data.get("timeSinks", [])),
        )


@dataclass
class ScoreReport:
    """What `analyze()` hands back to the UI."""
    score: int
    categories: Dict[str, int]
    time_per_category: Dict[str, int]
    total_tabs: int
    time_sinks: List[str]
    total_session_time: int
    time_per_workspace: Dict[str, int] = field(default_factory=dict)
