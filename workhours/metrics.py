"""Invested-hours metrics per tag, grouped by resolved root item.

Several tasks under the same backlog item count as one item; their hours
all add up. Items without a root count as their own group.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from workhours.config import Settings, get_settings
from workhours.hierarchy import HierarchyMap
from workhours.models import TaskSummary, WorkItem, to_number

logger = logging.getLogger(__name__)

ZERO_SUMMARY = TaskSummary(0, 0)


def items_for_developers(items: Iterable[WorkItem], developers: Iterable[str]) -> list[WorkItem]:
    wanted = set(developers)
    if not wanted:
        return []
    return [i for i in items if i.assignee in wanted]


def available_tags(items: Iterable[WorkItem]) -> list[str]:
    return sorted({tag for item in items for tag in item.tags})


def filter_by_tag(items: Iterable[WorkItem], tag: Optional[str]) -> list[WorkItem]:
    if not tag:
        return []
    return [i for i in items if tag in i.tags]


def collect_task_summaries(
    items: list[WorkItem],
    fetch_summary: Callable[[int], TaskSummary],
    settings: Settings | None = None,
    max_workers: int | None = None,
) -> dict[int, TaskSummary]:
    """Estimated/invested hours for every item.

    Tasks are looked up concurrently through `fetch_summary`; a lookup that
    fails leaves that task at zero. Time-entry leaves carry their own logged
    hours. Anything else counts as zero.
    """
    settings = settings or get_settings()
    summaries: dict[int, TaskSummary] = {}
    tasks = []
    for item in items:
        if item.is_type(settings.task_type):
            tasks.append(item)
        elif item.is_type(settings.leaf_type):
            summaries[item.id] = TaskSummary(0, to_number(item.logged_hours))
        else:
            summaries[item.id] = ZERO_SUMMARY

    if tasks:
        workers = max(1, min(max_workers or settings.summary_workers, len(tasks)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {task.id: pool.submit(fetch_summary, task.id) for task in tasks}
            for task_id, future in futures.items():
                try:
                    summary = future.result()
                except Exception as exc:
                    logger.warning("Failed to fetch summary for item %s: %s", task_id, exc)
                    summary = ZERO_SUMMARY
                summaries[task_id] = TaskSummary(
                    to_number(summary.estimated), to_number(summary.invested)
                )

    return {item.id: summaries[item.id] for item in items}


@dataclass(frozen=True)
class GlobalMetrics:
    total_items: int
    total_invested: float
    average_per_item: float


@dataclass(frozen=True)
class DeveloperMetrics:
    developer: str
    item_count: int
    invested_hours: float
    average_hours: float


def _average(total: float, count: int) -> float:
    return round(total / count, 2) if count > 0 else 0


def global_metrics(
    items: Iterable[WorkItem],
    summaries: dict[int, TaskSummary],
    hierarchy: HierarchyMap,
) -> GlobalMetrics:
    items = list(items)
    roots = {hierarchy.group_id(item.id) for item in items}
    invested = sum(summaries.get(item.id, ZERO_SUMMARY).invested for item in items)
    return GlobalMetrics(len(roots), invested, _average(invested, len(roots)))


def developer_metrics(
    items: Iterable[WorkItem],
    summaries: dict[int, TaskSummary],
    hierarchy: HierarchyMap,
) -> list[DeveloperMetrics]:
    """Per-developer metrics, highest invested first.

    Roots are de-duplicated per developer, so a backlog item shared by two
    developers counts once for each.
    """
    roots: dict[str, set[int]] = {}
    invested: dict[str, float] = {}
    for item in items:
        summary = summaries.get(item.id)
        if not item.assignee or summary is None:
            continue
        roots.setdefault(item.assignee, set()).add(hierarchy.group_id(item.id))
        invested[item.assignee] = invested.get(item.assignee, 0) + summary.invested

    rows = [
        DeveloperMetrics(dev, len(ids), invested[dev], _average(invested[dev], len(ids)))
        for dev, ids in roots.items()
    ]
    return sorted(rows, key=lambda r: r.invested_hours, reverse=True)
