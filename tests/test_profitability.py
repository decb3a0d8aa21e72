"""Tests for the profitability simulator."""

from __future__ import annotations

import pytest

from workhours.profitability import (
    calculate_profitability,
    hours_by_person,
    parse_rate,
    rates_are_valid,
    search_projects,
    simulation_inputs,
)
from tests.conftest import make_item


class TestPersonnel:
    def test_hours_summed_per_person(self):
        leaves = [
            make_item(1, type="Linea", assignee="Ana", logged_hours=3),
            make_item(2, type="Linea", assignee="Ana", logged_hours=2.5),
            make_item(3, type="Linea", assignee="Luis", logged_hours=4),
            make_item(4, type="Linea", logged_hours=9),
        ]
        assert hours_by_person(leaves) == {"Ana": 5.5, "Luis": 4}

    @pytest.mark.parametrize("raw, expected", [("25", 25.0), (" 10.5 ", 10.5), (0, 0.0)])
    def test_parse_rate_valid(self, raw, expected):
        assert parse_rate(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "  ", "abc", "-1", "nan"])
    def test_parse_rate_invalid(self, raw):
        assert parse_rate(raw) is None

    def test_rates_valid_only_when_all_filled(self):
        personnel = {"Ana": 5, "Luis": 4}
        assert rates_are_valid(personnel, {"Ana": "20", "Luis": "0"})
        assert not rates_are_valid(personnel, {"Ana": "20"})
        assert not rates_are_valid(personnel, {"Ana": "20", "Luis": "-3"})
        assert not rates_are_valid({}, {})


class TestCalculate:
    def test_profit_and_margin(self):
        project = make_item(1, client_rate=1000)
        result = calculate_profitability(project, {"Ana": 10, "Luis": 5}, {"Ana": "40", "Luis": "20"})
        assert result.total_revenue == 1000
        assert result.total_cost == 500
        assert result.total_profit == 500
        assert result.profit_margin == 50

    def test_loss(self):
        project = make_item(1, client_rate=100)
        result = calculate_profitability(project, {"Ana": 10}, {"Ana": "20"})
        assert result.total_profit == -100
        assert result.profit_margin == -100

    def test_no_revenue_gives_zero_margin(self):
        result = calculate_profitability(make_item(1), {"Ana": 10}, {"Ana": "20"})
        assert result.total_profit == -200
        assert result.profit_margin == 0


class TestSearch:
    def test_by_id_or_title(self):
        projects = [make_item(123, title="Mobile app"), make_item(45, title="Website")]
        assert [p.id for p in search_projects(projects, "12")] == [123]
        assert [p.id for p in search_projects(projects, "WEB")] == [45]
        assert len(search_projects(projects, "  ")) == 2


class TestSimulationInputs:
    def test_same_inputs_same_key(self):
        """A calculated result stays valid while nothing is retyped."""
        project = make_item(1, client_rate=1000)
        assert simulation_inputs(project, {"Ana": "40", "Luis": "20"}) == \
            simulation_inputs(project, {"Luis": "20 ", "Ana": "40"})

    def test_changed_rate_invalidates(self):
        project = make_item(1, client_rate=1000)
        assert simulation_inputs(project, {"Ana": "40"}) != simulation_inputs(project, {"Ana": "41"})

    def test_changed_project_or_price_invalidates(self):
        rates = {"Ana": "40"}
        assert simulation_inputs(make_item(1, client_rate=1000), rates) != \
            simulation_inputs(make_item(2, client_rate=1000), rates)
        assert simulation_inputs(make_item(1, client_rate=1000), rates) != \
            simulation_inputs(make_item(1, client_rate=900), rates)
