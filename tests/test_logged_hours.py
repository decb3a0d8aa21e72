"""Tests for weekly logged-hours aggregation and drill-down."""

from __future__ import annotations

from datetime import date

from workhours.logged_hours import (
    UNASSIGNED,
    aggregate_by_developer,
    entries_with_parent,
    entry_context,
    fetch_ancestors,
    state_category,
    weekly_metrics,
)
from tests.conftest import make_item


def leaf(item_id, hours, assignee=None, parent_id=None, day=None):
    return make_item(item_id, type="Linea", logged_hours=hours, assignee=assignee,
                     parent_id=parent_id, log_date=day)


class TestAggregation:
    def test_totals_sorted_descending(self):
        result = aggregate_by_developer([
            leaf(1, 2, "Ana"), leaf(2, 8, "Luis"), leaf(3, 4, "Ana"), leaf(4, 1),
        ])
        assert [(d.name, d.total_hours) for d in result] == [("Luis", 8), ("Ana", 6), (UNASSIGNED, 1)]
        assert [e.id for e in result[1].entries] == [1, 3]

    def test_weekly_metrics(self):
        m = weekly_metrics(aggregate_by_developer([leaf(1, 10, "Ana"), leaf(2, 5, "Luis"), leaf(3, 5, "Eva")]))
        assert m.total_hours == 20
        assert m.active_developers == 3
        assert m.average_hours == 6.7
        assert m.top_developer.name == "Ana"

    def test_weekly_metrics_empty(self):
        m = weekly_metrics([])
        assert (m.total_hours, m.active_developers, m.average_hours, m.top_developer) == (0, 0, 0, None)


class TestDrillDown:
    def test_entries_with_parent_newest_first(self):
        entries = [
            leaf(1, 1, parent_id=5, day=date(2024, 1, 2)),
            leaf(2, 1, day=date(2024, 1, 5)),
            leaf(3, 1, parent_id=5, day=date(2024, 1, 4)),
            leaf(4, 1, parent_id=5),
        ]
        assert [e.id for e in entries_with_parent(entries)] == [3, 1, 4]

    def test_fetch_ancestors_one_call_per_level(self):
        store = {
            10: make_item(10, parent_id=20),
            11: make_item(11, parent_id=20),
            20: make_item(20, type="Product Backlog Item", parent_id=30),
            30: make_item(30, type="Epic", parent_id=40),
        }
        calls = []

        def get_items(ids):
            calls.append(ids)
            return [store[i] for i in ids if i in store]

        entries = [leaf(1, 1, parent_id=10), leaf(2, 1, parent_id=11), leaf(3, 1, parent_id=10)]
        found = fetch_ancestors(entries, get_items)
        assert calls == [[10, 11], [20], [30]]
        assert set(found) == {10, 11, 20, 30}

    def test_fetch_ancestors_stops_when_chain_ends(self):
        calls = []

        def get_items(ids):
            calls.append(ids)
            return [make_item(i) for i in ids]

        fetch_ancestors([leaf(1, 1, parent_id=10)], get_items)
        assert calls == [[10]]

    def test_project_is_great_grandparent(self):
        ancestors = {
            10: make_item(10, parent_id=20),
            20: make_item(20, parent_id=30),
            30: make_item(30, title="Portal"),
        }
        ctx = entry_context(leaf(1, 1, parent_id=10), ancestors)
        assert ctx.task.id == 10
        assert ctx.project.title == "Portal"

    def test_project_falls_back_to_grandparent(self):
        ancestors = {10: make_item(10, parent_id=20), 20: make_item(20, title="Backlog item")}
        ctx = entry_context(leaf(1, 1, parent_id=10), ancestors)
        assert ctx.project.title == "Backlog item"

    def test_unknown_task(self):
        ctx = entry_context(leaf(1, 1, parent_id=10), {})
        assert ctx.task is None
        assert ctx.project is None


class TestStateCategory:
    def test_known_states(self):
        assert state_category("Active") == "In Progress"
        assert state_category("new") == "To Do"
        assert state_category("Closed") == "Done"
        assert state_category("Removed") == "Removed"

    def test_unknown_passes_through(self):
        assert state_category("Blocked") == "Blocked"
        assert state_category("") == ""
