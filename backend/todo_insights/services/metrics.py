from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Mapping, Protocol


@dataclass(frozen=True)
class DailyMetrics:
    """Immutable snapshot of an owner's todo counts as of one day."""

    date: date
    total_todos: int = 0
    completed_count: int = 0
    in_progress_count: int = 0
    not_started_count: int = 0
    cancelled_count: int = 0
    overdue_count: int = 0
    due_today_count: int = 0
    upcoming_count: int = 0
    completion_rate: float = 0.0
    by_priority: Mapping[str, int] = field(default_factory=dict)
    by_status: Mapping[str, int] = field(default_factory=dict)


class MetricsProvider(Protocol):
    """Supplies the daily metrics snapshot for an owner. Implemented outside this package."""

    async def snapshot(self, owner_id: str, now: datetime) -> DailyMetrics: ...


class StaticMetricsProvider:
    """In-memory MetricsProvider backed by a fixed owner -> snapshot mapping.

    Owners without an entry get an empty snapshot dated `now`.
    """

    def __init__(self, snapshots: Mapping[str, DailyMetrics] | None = None):
        self._snapshots = dict(snapshots or {})

    async def snapshot(self, owner_id: str, now: datetime) -> DailyMetrics:
        metrics = self._snapshots.get(owner_id)
        if metrics is None:
            return DailyMetrics(date=now.date())
        return metrics


def render_metrics_message(metrics: DailyMetrics) -> str:
    """Render a metrics snapshot as the user message sent to a provider."""
    lines = [
        f"Here are my todo metrics for today ({metrics.date.isoformat()}):",
        "",
        f"Total todos: {metrics.total_todos}",
        f"Completed: {metrics.completed_count}",
        f"In Progress: {metrics.in_progress_count}",
        f"Not Started: {metrics.not_started_count}",
        f"Cancelled: {metrics.cancelled_count}",
        f"Overdue: {metrics.overdue_count}",
        f"Due Today: {metrics.due_today_count}",
        f"Upcoming (next 7 days): {metrics.upcoming_count}",
        f"Completion Rate: {metrics.completion_rate}%",
        "",
        "By Priority:",
    ]
    lines += [f"  - {priority}: {count}" for priority, count in metrics.by_priority.items()]
    lines += ["", "By Status:"]
    lines += [f"  - {status}: {count}" for status, count in metrics.by_status.items()]
    return "\n".join(lines) + "\n"
