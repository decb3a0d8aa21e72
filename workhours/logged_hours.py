"""Logged time entries for one week: per-developer totals and drill-down.

Drill-down walks each entry up to three levels:
time entry -> task -> backlog item -> project. The project column shows
the great-grandparent when known, else the grandparent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Iterable, Optional

from workhours.models import WorkItem, to_number

logger = logging.getLogger(__name__)

UNASSIGNED = "Unassigned"


@dataclass
class DeveloperHours:
    name: str
    total_hours: float = 0
    entries: list[WorkItem] = field(default_factory=list)


def aggregate_by_developer(leaves: Iterable[WorkItem]) -> list[DeveloperHours]:
    by_dev: dict[str, DeveloperHours] = {}
    for leaf in leaves:
        name = leaf.assignee or UNASSIGNED
        dev = by_dev.setdefault(name, DeveloperHours(name))
        dev.total_hours += to_number(leaf.logged_hours)
        dev.entries.append(leaf)
    return sorted(by_dev.values(), key=lambda d: d.total_hours, reverse=True)


@dataclass(frozen=True)
class WeeklyHoursMetrics:
    total_hours: float
    active_developers: int
    average_hours: float
    top_developer: Optional[DeveloperHours]


def weekly_metrics(aggregated: list[DeveloperHours]) -> WeeklyHoursMetrics:
    total = sum(d.total_hours for d in aggregated)
    active = len(aggregated)
    return WeeklyHoursMetrics(
        total_hours=total,
        active_developers=active,
        average_hours=round(total / active, 1) if active else 0,
        top_developer=aggregated[0] if aggregated else None,
    )


def entries_with_parent(entries: Iterable[WorkItem]) -> list[WorkItem]:
    """Entries that hang under a task, newest first."""
    valid = [e for e in entries if e.parent_id]
    return sorted(valid, key=lambda e: e.log_date or date.min, reverse=True)


def fetch_ancestors(
    entries: Iterable[WorkItem],
    get_items: Callable[[list[int]], list[WorkItem]],
    levels: int = 3,
) -> dict[int, WorkItem]:
    """Load parents level by level; one backend call per level."""
    found: dict[int, WorkItem] = {}
    ids = sorted({e.parent_id for e in entries if e.parent_id})
    for level in range(levels):
        ids = [i for i in ids if i not in found]
        if not ids:
            break
        fetched = get_items(ids)
        logger.debug("Loaded %d ancestors at level %d", len(fetched), level + 1)
        for item in fetched:
            found[item.id] = item
        ids = sorted({i.parent_id for i in fetched if i.parent_id})
    return found


@dataclass(frozen=True)
class EntryContext:
    entry: WorkItem
    task: Optional[WorkItem]
    project: Optional[WorkItem]


def entry_context(entry: WorkItem, ancestors: dict[int, WorkItem]) -> EntryContext:
    task = ancestors.get(entry.parent_id) if entry.parent_id else None
    backlog_item = ancestors.get(task.parent_id) if task and task.parent_id else None
    project = ancestors.get(backlog_item.parent_id) if backlog_item and backlog_item.parent_id else None
    return EntryContext(entry, task, project or backlog_item)


_STATE_CATEGORIES = {
    "To Do": {"new", "to do", "proposed"},
    "In Progress": {"active", "in progress", "committed"},
    "Done": {"resolved", "done", "closed", "completed"},
    "Removed": {"removed"},
}


def state_category(state: str) -> str:
    """Bucket a raw backend state; unknown states pass through."""
    s = (state or "").lower()
    for label, states in _STATE_CATEGORIES.items():
        if s in states:
            return label
    return state or ""
