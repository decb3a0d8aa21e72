"""Project profitability from logged hours and per-person hourly cost."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from workhours.models import WorkItem, to_number


def hours_by_person(leaves: Iterable[WorkItem]) -> dict[str, float]:
    """Logged hours per assignee. Unassigned entries are left out."""
    hours: dict[str, float] = {}
    for leaf in leaves:
        if leaf.assignee:
            hours[leaf.assignee] = hours.get(leaf.assignee, 0) + to_number(leaf.logged_hours)
    return hours


def parse_rate(raw) -> Optional[float]:
    """Hourly cost typed by the user, or None when blank, invalid or negative."""
    if raw is None:
        return None
    text = str(raw).strip()
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if value != value or value < 0:
        return None
    return value


def rates_are_valid(personnel: Mapping[str, float], rates: Mapping[str, object]) -> bool:
    if not personnel:
        return False
    return all(parse_rate(rates.get(name)) is not None for name in personnel)


@dataclass(frozen=True)
class ProfitabilityResult:
    total_revenue: float
    total_cost: float
    total_profit: float
    profit_margin: float


def calculate_profitability(
    project: WorkItem,
    personnel: Mapping[str, float],
    rates: Mapping[str, object],
) -> ProfitabilityResult:
    """Revenue is the project's client rate; cost is hours x hourly cost."""
    revenue = to_number(project.client_rate)
    cost = sum(hours * (parse_rate(rates.get(name)) or 0) for name, hours in personnel.items())
    profit = revenue - cost
    margin = profit / revenue * 100 if revenue > 0 else 0
    return ProfitabilityResult(revenue, cost, profit, margin)


def simulation_inputs(project: WorkItem, rates: Mapping[str, object]) -> tuple:
    """Key of the inputs a calculated result belongs to.

    A stored result stays valid until the project, its client price or any
    typed rate changes.
    """
    typed = tuple(sorted((name, str(value or "").strip()) for name, value in rates.items()))
    return (project.id, to_number(project.client_rate), typed)


def search_projects(projects: Iterable[WorkItem], term: str) -> list[WorkItem]:
    """Match by id substring or case-insensitive title substring."""
    term = (term or "").strip()
    if not term:
        return list(projects)
    lowered = term.lower()
    return [p for p in projects if term in str(p.id) or lowered in p.title.lower()]
