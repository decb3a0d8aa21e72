"""Tests for the planning summary."""

from __future__ import annotations

from datetime import date

from workhours.planner import build_plan, calculate_weeks
from workhours.summary import filter_weeks, occupancy, project_summary, summary_metrics
from tests.conftest import make_item

MONDAY = date(2024, 1, 1)


def setup_plan():
    projects = [
        make_item(1, title="Billing", pending_hours=100, weekly_capacity=40),
        make_item(2, title="Auth", pending_hours=30, weekly_capacity=10),
    ]
    plan = build_plan(projects)
    return projects, calculate_weeks(plan, projects, MONDAY, min_weeks=4)


class TestFilterWeeks:
    def test_no_bounds_keeps_everything(self):
        _, weeks = setup_plan()
        assert filter_weeks(weeks) == weeks

    def test_filters_on_start_date(self):
        _, weeks = setup_plan()
        result = filter_weeks(weeks, date(2024, 1, 8), date(2024, 1, 15))
        assert [w.week_index for w in result] == [1, 2]

    def test_open_end(self):
        _, weeks = setup_plan()
        assert [w.week_index for w in filter_weeks(weeks, start=date(2024, 1, 10))] == [2, 3]
        assert [w.week_index for w in filter_weeks(weeks, end=date(2024, 1, 7))] == [0]


class TestSummaryMetrics:
    def test_free_and_overtime(self):
        _, weeks = setup_plan()
        # totals per week: 50, 50, 30, 0
        m = summary_metrics(weeks, 40)
        assert m.total_weeks == 4
        assert m.overtime_hours == 20
        assert m.free_hours == 10 + 40
        assert m.final_date == date(2024, 1, 28)

    def test_empty_period(self):
        m = summary_metrics([], 40)
        assert m.total_weeks == 0
        assert m.free_hours == 0
        assert m.final_date is None

    def test_occupancy_drops_empty_slices(self):
        _, weeks = setup_plan()
        assert occupancy(weeks, 40) == [("Occupied", 110), ("Free", 50), ("Overtime", 20)]
        assert occupancy(weeks[:2], 40) == [("Occupied", 80), ("Overtime", 20)]
        assert occupancy([], 40) == []


class TestProjectSummary:
    def test_remaining_uses_whole_plan(self):
        projects, weeks = setup_plan()
        period = filter_weeks(weeks, end=date(2024, 1, 1))
        rows = project_summary(period, weeks, projects, MONDAY)
        assert [r.title for r in rows] == ["Auth", "Billing"]
        billing = rows[1]
        assert billing.planned_in_period == 40
        assert billing.initial_pending == 100
        assert billing.remaining == 0

    def test_projected_end_dates(self):
        projects, weeks = setup_plan()
        rows = {r.id: r for r in project_summary(weeks, weeks, projects, MONDAY)}
        assert rows[1].end_date == date(2024, 1, 21)
        assert rows[2].end_date == date(2024, 1, 21)

    def test_projects_outside_period_omitted(self):
        projects, weeks = setup_plan()
        period = filter_weeks(weeks, start=date(2024, 1, 22))
        assert project_summary(period, weeks, projects, MONDAY) == []
