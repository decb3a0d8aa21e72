"""Weekly allocation planner.

A plan maps project id -> hours per week, index 0 being the week that
starts at the planning origin. Schedules are filled greedily: each week
takes min(remaining, weekly capacity) until nothing is left.

Every edit is measured against the project's static pending hours, never
against the previous plan, so the same edit applied twice gives the same
schedule. Plans are never mutated in place; each edit returns a new dict.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from workhours.config import get_settings
from workhours.dates import week_date_range
from workhours.models import CalculatedWeek, WeekAllocation, WorkItem, to_number

logger = logging.getLogger(__name__)

Plan = Dict[int, List[float]]

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def auto_schedule(pending: float, weekly_capacity: float) -> list[float]:
    if pending <= 0 or weekly_capacity <= 0:
        return []
    schedule = []
    remaining = pending
    while remaining > 0:
        hours = min(remaining, weekly_capacity)
        schedule.append(hours)
        remaining -= hours
    return schedule


def trim_trailing_zeros(schedule: list[float]) -> list[float]:
    end = len(schedule)
    while end > 0 and schedule[end - 1] == 0:
        end -= 1
    return schedule[:end]


def parse_hours(raw: Any) -> int:
    """Hours typed into a week cell, read up to the first non-digit.

    Same reading as the grid's cell parser: "12abc" is 12, "7.5" is 7.
    Anything without leading digits, or negative, is 0.
    """
    if raw is None or isinstance(raw, bool):
        return 0
    if isinstance(raw, (int, float)):
        if not math.isfinite(raw):
            return 0
        return max(0, int(raw))
    match = _LEADING_INT.match(str(raw))
    if match is None:
        return 0
    return max(0, int(match.group(1)))


def available_developers(items: Iterable[WorkItem]) -> list[str]:
    return sorted({item.assignee for item in items if item.assignee})


def open_projects(
    items: Iterable[WorkItem],
    developer: Optional[str],
    completed_states: Iterable[str] | None = None,
) -> list[WorkItem]:
    """Items assigned to `developer` that are not in a completed state."""
    if not developer:
        return []
    if completed_states is None:
        completed_states = get_settings().completed_states_list
    done = set(completed_states)
    projects = [i for i in items if i.assignee == developer and i.state not in done]
    return sorted(projects, key=lambda p: p.title)


def build_plan(projects: Iterable[WorkItem]) -> Plan:
    """Fresh greedy plan, one independent schedule per project."""
    plan: Plan = {}
    for project in projects:
        plan[project.id] = auto_schedule(to_number(project.pending_hours), to_number(project.weekly_capacity))
    logger.debug("Built plan for %d projects", len(plan))
    return plan


def apply_edit(
    plan: Plan,
    project_id: int,
    week_index: int,
    new_hours: Any,
    projects: Iterable[WorkItem],
) -> Plan:
    """Set one week of one project and re-derive every later week.

    Weeks up to and including `week_index` are kept as they are. Whatever
    is left of the project's original pending hours is scheduled greedily
    after it; if the kept weeks already cover it, nothing follows.
    """
    if week_index < 0:
        raise ValueError(f"week_index must be >= 0, got {week_index}")
    project = next((p for p in projects if p.id == project_id), None)
    if project is None:
        logger.debug("Edit ignored, project %s is not in the plan", project_id)
        return plan

    schedule = list(plan.get(project_id, []))
    if len(schedule) <= week_index:
        schedule.extend([0] * (week_index + 1 - len(schedule)))
    schedule[week_index] = parse_hours(new_hours)

    head = schedule[: week_index + 1]
    remaining = to_number(project.pending_hours) - sum(head)
    tail = auto_schedule(remaining, to_number(project.weekly_capacity))

    new_plan = dict(plan)
    new_plan[project_id] = trim_trailing_zeros(head + tail)
    return new_plan


def max_weeks(plan: Plan, min_weeks: int | None = None) -> int:
    if min_weeks is None:
        min_weeks = get_settings().min_display_weeks
    return max([min_weeks, *(len(s) for s in plan.values())])


def calculate_weeks(
    plan: Plan,
    projects: Iterable[WorkItem],
    origin: date,
    min_weeks: int | None = None,
) -> list[CalculatedWeek]:
    """Project the plan onto calendar weeks.

    Weeks below the display minimum are always kept; later weeks only when
    some project has hours in them.
    """
    if min_weeks is None:
        min_weeks = get_settings().min_display_weeks
    by_id = {p.id: p for p in projects}
    weeks = []
    for index in range(max_weeks(plan, min_weeks)):
        allocations = []
        for project_id, schedule in plan.items():
            hours = schedule[index] if index < len(schedule) else 0
            if hours > 0 and project_id in by_id:
                allocations.append(WeekAllocation(project_id, by_id[project_id].title, hours))
        if allocations or index < min_weeks:
            start, end = week_date_range(index, origin)
            weeks.append(CalculatedWeek(
                week_index=index,
                start_date=start,
                end_date=end,
                projects=allocations,
                total_hours=sum(a.assigned_hours for a in allocations),
            ))
    return weeks


@dataclass(frozen=True)
class ProjectProgress:
    id: int
    title: str
    initial_pending: float
    planned: float
    remaining: float


def project_overview(projects: Iterable[WorkItem], plan: Plan) -> list[ProjectProgress]:
    """Pending vs planned per project. Remaining goes negative when over-planned."""
    rows = []
    for project in projects:
        pending = to_number(project.pending_hours)
        planned = sum(plan.get(project.id, []))
        rows.append(ProjectProgress(project.id, project.title, pending, planned, pending - planned))
    return sorted(rows, key=lambda r: r.title)


def is_overloaded(total_hours: float, standard_week_hours: float | None = None) -> bool:
    if standard_week_hours is None:
        standard_week_hours = get_settings().standard_week_hours
    return total_hours > standard_week_hours
