from collections import defaultdict
from typing import Callable, Dict, List, Optional
from datetime import datetime, timedelta
import logging

from config import (
    BASE_CATEGORIES,
    DISTRACTION_CATEGORIES,
    IDLE_SCORE,
    PRODUCTIVE_CATEGORIES,
    TIME_SINK_THRESHOLD_MS,
)
from config_manager import SCORE_HISTORY_KEY, SESSION_START_KEY, TAB_METADATA_KEY, WORKSPACES_KEY
from layers.state_store import StateStore
from layers.time_accounting import TimeAccountingEngine
from models import ScoreHistoryEntry, ScoreReport, TabRecord
from utils import now_ms

logger = logging.getLogger(__name__)


def compute_score(time_per_category: Dict[str, int]) -> int:
    """Share of tracked time spent in productive categories, 0-100."""
    total = sum(time_per_category.values())
    if total <= 0:
        return IDLE_SCORE
    productive = sum(time_per_category.get(category, 0) for category in PRODUCTIVE_CATEGORIES)
    return (productive * 100) // total


def _update_workspace_metrics(metrics: Dict, time_spent: int, score: int) -> None:
    """Latest tracked time, and a running mean of the scores of analyses the workspace took part in."""
    analyses = int(metrics.get("analyses") or 0)
    previous = float(metrics.get("avg_focus_score") or 0)
    metrics["total_time_spent"] = time_spent
    metrics["avg_focus_score"] = round((previous * analyses + score) / (analyses + 1), 1)
    metrics["analyses"] = analyses + 1


class SessionAnalytics:
    """Scores the current session from tab metadata and keeps the score history."""

    def __init__(self, store: StateStore, time_accounting: TimeAccountingEngine,
                 clock: Callable[[], int] = now_ms):
        self.store = store
        self.time_accounting = time_accounting
        self.clock = clock

    def analyze(self, active_tab_id: Optional[int] = None) -> ScoreReport:
        """
        Finalise the running interval, aggregate every tracked tab and append
        one entry to the score history.
        """
        self.time_accounting.record_activation(active_tab_id)

        now = self.clock()
        categories: Dict[str, int] = {category: 0 for category in BASE_CATEGORIES}
        time_per_category: Dict[str, int] = {category: 0 for category in BASE_CATEGORIES}
        time_per_workspace: Dict[str, int] = defaultdict(int)
        time_sinks: List[str] = []

        with self.store.transaction(TAB_METADATA_KEY, SESSION_START_KEY, SCORE_HISTORY_KEY, WORKSPACES_KEY) as state:
            records = [TabRecord.from_dict(data) for data in (state[TAB_METADATA_KEY] or {}).values()]
            for record in records:
                category = record.effective_category
                categories[category] = categories.get(category, 0) + 1
                time_per_category[category] = time_per_category.get(category, 0) + record.time_active_ms
                if record.assigned_workspace:
                    time_per_workspace[record.assigned_workspace] += record.time_active_ms
                if (category in DISTRACTION_CATEGORIES and record.time_active_ms > TIME_SINK_THRESHOLD_MS
                        and record.url not in time_sinks):
                    time_sinks.append(record.url)

            session_start = state[SESSION_START_KEY] or now
            report = ScoreReport(
                score=compute_score(time_per_category),
                categories=categories,
                time_per_category=time_per_category,
                total_tabs=len(records),
                time_sinks=time_sinks,
                total_session_time=max(0, now - session_start),
                time_per_workspace=dict(time_per_workspace),
            )

            entry = ScoreHistoryEntry(
                date=datetime.fromtimestamp(now / 1000).strftime("%Y-%m-%d %H:%M:%S"),
                score=report.score,
                timestamp=now,
                categories_distribution=categories,
                time_per_category=time_per_category,
                total_session_time=report.total_session_time,
                time_sinks=time_sinks,
            )
            state[SCORE_HISTORY_KEY] = (state[SCORE_HISTORY_KEY] or []) + [entry.to_dict()]

            workspaces = state[WORKSPACES_KEY] or {}
            for workspace_id, spent in report.time_per_workspace.items():
                if workspace_id in workspaces:
                    _update_workspace_metrics(workspaces[workspace_id].setdefault("metrics", {}), spent, report.score)
            state[WORKSPACES_KEY] = workspaces

        logger.info(f"Session analyzed: score {report.score}, {report.total_tabs} tabs, {len(time_sinks)} time sinks")
        return report

    def get_score_history(self, limit: Optional[int] = None) -> List[ScoreHistoryEntry]:
        """Oldest first; `limit` keeps only the most recent entries."""
        history = [ScoreHistoryEntry.from_dict(data) for data in self.store.get(SCORE_HISTORY_KEY, [])]
        if limit is not None:
            history = history[-limit:] if limit > 0 else []
        return history

    def get_daily_summary(self, days: int = 7) -> Dict[str, Dict]:
        """Average score and number of analyses per day for the last `days` days."""
        cutoff = datetime.fromtimestamp(self.clock() / 1000).date() - timedelta(days=days - 1)
        per_day: Dict[str, List[int]] = defaultdict(list)
        for entry in self.get_score_history():
            day = datetime.fromtimestamp(entry.timestamp / 1000).date()
            if day >= cutoff:
                per_day[day.isoformat()].append(entry.score)
        return {
            day: {"average_score": round(sum(scores) / len(scores), 1), "analyses": len(scores)}
            for day, scores in sorted(per_day.items())
        }

    def get_session_duration(self) -> int:
        start = self.store.get(SESSION_START_KEY) or self.clock()
        return max(0, self.clock() - start)
