"""Work item and planning data models."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

from workhours.config import Settings, get_settings


def to_number(value: Any) -> float:
    """Coerce a backend field value to a number; missing or garbage is 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return 0 if isinstance(value, float) and not math.isfinite(value) else value
    try:
        parsed = float(str(value).strip())
    except ValueError:
        return 0
    if math.isnan(parsed) or math.isinf(parsed):
        return 0
    return int(parsed) if parsed.is_integer() else parsed


def _parse_date(value: Any) -> Optional[date]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).date()
    except ValueError:
        return None


def _display_name(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        return value.get("displayName") or None
    if isinstance(value, str) and value.strip():
        # "Jane Doe <jane@corp.com>" form returned by some queries
        return value.split("<")[0].strip()
    return None


def split_tags(raw: Any) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(t for t in str(raw).split("; ") if t)


@dataclass(frozen=True)
class WorkItem:
    """One backend work item, flattened to the fields the dashboard reads."""

    id: int
    type: str
    title: str
    parent_id: Optional[int] = None
    assignee: Optional[str] = None
    state: str = ""
    tags: tuple[str, ...] = ()
    pending_hours: float = 0
    weekly_capacity: float = 0
    logged_hours: float = 0
    estimated_hours: float = 0
    client_rate: float = 0
    log_date: Optional[date] = None

    @classmethod
    def from_api(cls, payload: dict, settings: Settings | None = None) -> WorkItem:
        settings = settings or get_settings()
        fields = payload.get("fields", {}) or {}
        parent = fields.get(settings.field_parent)
        return cls(
            id=int(payload["id"]),
            type=fields.get(settings.field_type, "") or "",
            title=fields.get(settings.field_title, "") or "",
            parent_id=int(parent) if parent else None,
            assignee=_display_name(fields.get(settings.field_assigned_to)),
            state=fields.get(settings.field_state, "") or "",
            tags=split_tags(fields.get(settings.field_tags)),
            pending_hours=to_number(fields.get(settings.field_pending_hours)),
            weekly_capacity=to_number(fields.get(settings.field_weekly_capacity)),
            logged_hours=to_number(fields.get(settings.field_logged_hours)),
            estimated_hours=to_number(fields.get(settings.field_estimated_hours)),
            client_rate=to_number(fields.get(settings.field_client_rate)),
            log_date=_parse_date(fields.get(settings.field_log_date)),
        )

    def is_type(self, type_name: str) -> bool:
        return self.type.lower() == type_name.lower()

    @property
    def label(self) -> str:
        return f"#{self.id} - {self.title}"


@dataclass(frozen=True)
class RootRef:
    id: int
    title: str


@dataclass(frozen=True)
class TaskSummary:
    estimated: float = 0
    invested: float = 0


@dataclass(frozen=True)
class WeekAllocation:
    id: int
    title: str
    assigned_hours: float


@dataclass
class CalculatedWeek:
    """One calendar week of a developer's plan."""

    week_index: int
    start_date: date
    end_date: date
    projects: list[WeekAllocation] = field(default_factory=list)
    total_hours: float = 0


@dataclass(frozen=True)
class Credentials:
    organization: str
    project: str
    pat: str

    def is_complete(self) -> bool:
        return bool(self.organization.strip() and self.project.strip() and self.pat.strip())
