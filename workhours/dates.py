"""Week arithmetic shared by the planner and the logged-hours views."""

from __future__ import annotations

import math
from datetime import date, timedelta
from typing import Optional


def week_bounds(d: date) -> tuple[date, date]:
    """Monday and Sunday of the week containing `d`."""
    start = d - timedelta(days=d.weekday())
    return start, start + timedelta(days=6)


def planning_origin(today: date | None = None) -> date:
    """Week 0 of every plan starts on the Monday of the current week."""
    return week_bounds(today or date.today())[0]


def week_date_range(week_index: int, origin: date) -> tuple[date, date]:
    start = origin + timedelta(weeks=week_index)
    return start, start + timedelta(days=6)


def projected_end_date(pending: float, weekly_capacity: float, origin: date) -> Optional[date]:
    """Last day of the week in which a greedy schedule finishes, if ever."""
    if pending <= 0 or weekly_capacity <= 0:
        return None
    weeks = math.ceil(pending / weekly_capacity)
    return week_date_range(weeks - 1, origin)[1]


def format_short(d: date | None) -> str:
    return d.strftime("%d/%m/%y") if d else "N/A"
