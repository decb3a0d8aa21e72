"""Shared fixtures."""

from __future__ import annotations

import pytest

from workhours.config import Settings
from workhours.models import WorkItem


def make_item(item_id, type="Task", title=None, parent_id=None, **kwargs) -> WorkItem:
    return WorkItem(id=item_id, type=type, title=title or f"Item {item_id}", parent_id=parent_id, **kwargs)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(_env_file=None, credentials_path=str(tmp_path / "creds.json"))
