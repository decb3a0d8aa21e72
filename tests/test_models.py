import json
from datetime import date

import pytest

from workhours.config import Settings
from workhours.models import WorkItem, split_tags, to_number
from workhours.planner import build_plan


@pytest.mark.parametrize(
    "raw, expected",
    [(None, 0), (True, 0), (5, 5), (2.5, 2.5), ("12", 12), (" 7.5 ", 7.5), ("x", 0), ("", 0),
     (float("nan"), 0), ("inf", 0), (float("inf"), 0), (float("-inf"), 0)],
)
def test_to_number(raw, expected):
    assert to_number(raw) == expected


def test_split_tags():
    assert split_tags("web; api") == ("web", "api")
    assert split_tags("web;api") == ("web;api",)
    assert split_tags(None) == ()


class TestFromApi:
    def test_full_payload(self, settings):
        item = WorkItem.from_api({
            "id": "12",
            "fields": {
                "System.WorkItemType": "Linea",
                "System.Title": "Code review",
                "System.State": "Done",
                "System.Parent": 7,
                "System.AssignedTo": "Ana Ruiz <ana@contoso.com>",
                "Custom.Horas": 2,
                "Custom.Fechalinea": "2024-01-03T00:00:00Z",
                "Custom.Valorrepetitivo": "1500",
            },
        }, settings)
        assert item.id == 12
        assert item.parent_id == 7
        assert item.assignee == "Ana Ruiz"
        assert item.logged_hours == 2
        assert item.log_date == date(2024, 1, 3)
        assert item.client_rate == 1500
        assert item.label == "#12 - Code review"

    def test_missing_fields_default(self, settings):
        item = WorkItem.from_api({"id": 3}, settings)
        assert item.type == ""
        assert item.parent_id is None
        assert item.assignee is None
        assert item.pending_hours == 0
        assert item.log_date is None

    def test_infinite_hours_read_as_zero(self, settings):
        """JSON `Infinity` decodes to a float inf; it must not reach the planner."""
        payload = json.loads(
            '{"id": 1, "fields": {"System.WorkItemType": "Task", "System.Title": "t",'
            ' "Custom.Hspendientes": Infinity, "Custom.Cargasemanal": 40}}'
        )
        item = WorkItem.from_api(payload, settings)
        assert item.pending_hours == 0
        assert build_plan([item]) == {1: []}

    def test_custom_field_names(self):
        s = Settings(_env_file=None, field_pending_hours="Custom.Remaining")
        item = WorkItem.from_api({"id": 1, "fields": {"Custom.Remaining": 9}}, s)
        assert item.pending_hours == 9


def test_completed_states_list(settings):
    settings.completed_states = "Done, Closed ,,"
    assert settings.completed_states_list == ["Done", "Closed"]
    assert settings.field_pending_hours in settings.item_fields


def test_settings_read_prefixed_env(monkeypatch):
    monkeypatch.setenv("WORKHOURS_MIN_DISPLAY_WEEKS", "6")
    assert Settings.model_config["env_prefix"] == "WORKHOURS_"
    assert Settings(_env_file=None).min_display_weeks == 6
