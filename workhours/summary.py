"""Planning summary: period filter, occupancy and per-project figures."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from workhours.config import get_settings
from workhours.dates import projected_end_date
from workhours.models import CalculatedWeek, WorkItem, to_number


def filter_weeks(
    weeks: list[CalculatedWeek],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> list[CalculatedWeek]:
    """Weeks whose start date falls inside [start, end]; open ends allowed."""
    if start is None and end is None:
        return list(weeks)
    return [
        w for w in weeks
        if (start is None or w.start_date >= start) and (end is None or w.start_date <= end)
    ]


@dataclass(frozen=True)
class SummaryMetrics:
    total_weeks: int
    free_hours: float
    overtime_hours: float
    final_date: Optional[date]


def summary_metrics(weeks: list[CalculatedWeek], standard_hours: float | None = None) -> SummaryMetrics:
    if standard_hours is None:
        standard_hours = get_settings().standard_week_hours
    return SummaryMetrics(
        total_weeks=len(weeks),
        free_hours=sum(max(0, standard_hours - w.total_hours) for w in weeks),
        overtime_hours=sum(max(0, w.total_hours - standard_hours) for w in weeks),
        final_date=weeks[-1].end_date if weeks else None,
    )


def occupancy(weeks: list[CalculatedWeek], standard_hours: float | None = None) -> list[tuple[str, float]]:
    """Occupied / Free / Overtime hour totals, zero slices dropped."""
    if standard_hours is None:
        standard_hours = get_settings().standard_week_hours
    occupied = sum(min(w.total_hours, standard_hours) for w in weeks)
    free = sum(max(0, standard_hours - w.total_hours) for w in weeks)
    overtime = sum(max(0, w.total_hours - standard_hours) for w in weeks)
    slices = [("Occupied", occupied), ("Free", free), ("Overtime", overtime)]
    return [(label, value) for label, value in slices if value > 0]


@dataclass(frozen=True)
class ProjectSummaryRow:
    id: int
    title: str
    initial_pending: float
    planned_in_period: float
    remaining: float
    end_date: Optional[date]


def project_summary(
    period_weeks: list[CalculatedWeek],
    all_weeks: list[CalculatedWeek],
    projects: Iterable[WorkItem],
    origin: date,
) -> list[ProjectSummaryRow]:
    """Per-project hours planned in the period.

    Remaining is measured against the whole plan, not just the period.
    """
    by_id = {p.id: p for p in projects}
    in_period: dict[int, tuple[str, float]] = {}
    for week in period_weeks:
        for alloc in week.projects:
            title, planned = in_period.get(alloc.id, (alloc.title, 0))
            in_period[alloc.id] = (title, planned + alloc.assigned_hours)

    global_planned: dict[int, float] = {}
    for week in all_weeks:
        for alloc in week.projects:
            global_planned[alloc.id] = global_planned.get(alloc.id, 0) + alloc.assigned_hours

    rows = []
    for project_id, (title, planned) in in_period.items():
        project = by_id.get(project_id)
        pending = to_number(project.pending_hours) if project else 0
        capacity = to_number(project.weekly_capacity) if project else 0
        rows.append(ProjectSummaryRow(
            id=project_id,
            title=title,
            initial_pending=pending,
            planned_in_period=planned,
            remaining=pending - global_planned.get(project_id, 0),
            end_date=projected_end_date(pending, capacity, origin),
        ))
    return sorted(rows, key=lambda r: r.title)
