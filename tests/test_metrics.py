"""Tests for invested-hours metrics."""

from __future__ import annotations

import threading

import pytest

from workhours.hierarchy import resolve_all
from workhours.metrics import (
    ZERO_SUMMARY,
    available_tags,
    collect_task_summaries,
    developer_metrics,
    filter_by_tag,
    global_metrics,
    items_for_developers,
)
from workhours.models import TaskSummary
from tests.conftest import make_item

PBI = "Product Backlog Item"


def backlog():
    return [
        make_item(10, type=PBI, title="Checkout"),
        make_item(1, parent_id=10, assignee="Ana", tags=("web",)),
        make_item(2, parent_id=10, assignee="Luis", tags=("web", "api")),
        make_item(3, parent_id=10, assignee="Ana", tags=("web",)),
    ]


class TestFilters:
    def test_items_for_developers(self):
        items = backlog()
        assert [i.id for i in items_for_developers(items, ["Ana"])] == [1, 3]
        assert items_for_developers(items, []) == []

    def test_tags(self):
        items = backlog()
        assert available_tags(items) == ["api", "web"]
        assert [i.id for i in filter_by_tag(items, "api")] == [2]
        assert filter_by_tag(items, None) == []


class TestGlobalMetrics:
    def test_tasks_under_same_root_count_once(self):
        items = backlog()[1:3]
        hierarchy = resolve_all(items, PBI, context=backlog())
        summaries = {1: TaskSummary(8, 5), 2: TaskSummary(4, 7)}
        m = global_metrics(items, summaries, hierarchy)
        assert m.total_items == 1
        assert m.total_invested == 12
        assert m.average_per_item == 12

    def test_unresolved_items_count_individually(self):
        items = [make_item(1), make_item(2, parent_id=404)]
        hierarchy = resolve_all(items, PBI)
        summaries = {1: TaskSummary(0, 3), 2: TaskSummary(0, 4)}
        m = global_metrics(items, summaries, hierarchy)
        assert m.total_items == 2
        assert m.average_per_item == 3.5

    def test_average_rounded_to_two_decimals(self):
        items = [make_item(1), make_item(2), make_item(3)]
        summaries = {i: TaskSummary(0, 10 if i == 1 else 0) for i in (1, 2, 3)}
        m = global_metrics(items, summaries, resolve_all(items, PBI))
        assert m.average_per_item == 3.33

    def test_empty(self):
        m = global_metrics([], {}, resolve_all([], PBI))
        assert (m.total_items, m.total_invested, m.average_per_item) == (0, 0, 0)


class TestDeveloperMetrics:
    def test_root_deduplicated_per_developer(self):
        items = backlog()[1:]
        hierarchy = resolve_all(items, PBI, context=backlog())
        summaries = {1: TaskSummary(0, 5), 2: TaskSummary(0, 2), 3: TaskSummary(0, 6)}
        rows = developer_metrics(items, summaries, hierarchy)
        assert [r.developer for r in rows] == ["Ana", "Luis"]
        ana, luis = rows
        assert (ana.item_count, ana.invested_hours, ana.average_hours) == (1, 11, 11)
        assert (luis.item_count, luis.invested_hours) == (1, 2)

    def test_items_without_assignee_or_summary_skipped(self):
        items = [make_item(1, assignee="Ana"), make_item(2), make_item(3, assignee="Ana")]
        summaries = {1: TaskSummary(0, 4), 2: TaskSummary(0, 9)}
        rows = developer_metrics(items, summaries, resolve_all(items, PBI))
        assert len(rows) == 1
        assert rows[0].invested_hours == 4
        assert rows[0].item_count == 1


class TestCollectTaskSummaries:
    def test_tasks_fetched_and_leaves_use_logged_hours(self, settings):
        items = [
            make_item(1, type="Task"),
            make_item(2, type="Linea", logged_hours=3.5),
            make_item(3, type="Bug"),
        ]
        summaries = collect_task_summaries(items, lambda i: TaskSummary(10, 6), settings)
        assert summaries == {1: TaskSummary(10, 6), 2: TaskSummary(0, 3.5), 3: ZERO_SUMMARY}

    def test_failed_lookup_counts_as_zero(self, settings):
        def fetch(task_id):
            if task_id == 2:
                raise RuntimeError("boom")
            return TaskSummary(1, task_id)

        items = [make_item(i, type="task") for i in (1, 2, 3)]
        summaries = collect_task_summaries(items, fetch, settings, max_workers=2)
        assert summaries[1] == TaskSummary(1, 1)
        assert summaries[2] == ZERO_SUMMARY
        assert summaries[3] == TaskSummary(1, 3)

    def test_result_order_follows_items(self, settings):
        items = [make_item(i) for i in (5, 3, 9, 1)]
        summaries = collect_task_summaries(items, lambda i: TaskSummary(0, i), settings)
        assert list(summaries) == [5, 3, 9, 1]

    def test_lookups_run_concurrently(self, settings):
        barrier = threading.Barrier(3, timeout=5)

        def fetch(task_id):
            barrier.wait()
            return TaskSummary(0, 1)

        items = [make_item(i) for i in (1, 2, 3)]
        summaries = collect_task_summaries(items, fetch, settings, max_workers=3)
        assert sum(s.invested for s in summaries.values()) == pytest.approx(3)

    def test_garbage_summary_values_coerced(self, settings):
        items = [make_item(1)]
        summaries = collect_task_summaries(items, lambda i: TaskSummary(None, "x"), settings)
        assert summaries[1] == TaskSummary(0, 0)
