"""Streamlit session helpers shared by every page."""

from __future__ import annotations

import logging

import streamlit as st

from workhours.client import DevOpsClient, DevOpsError, ItemFilter
from workhours.config import get_settings
from workhours.models import Credentials, WorkItem

logger = logging.getLogger(__name__)

_logging_ready = False


def setup_logging() -> None:
    global _logging_ready
    if _logging_ready:
        return
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    _logging_ready = True


def rerun():
    if hasattr(st, "rerun"):
        st.rerun()
    else:
        st.experimental_rerun()  # type: ignore[attr-defined]


def current_credentials() -> Credentials | None:
    return st.session_state.get("creds")


def get_client() -> DevOpsClient:
    creds = current_credentials()
    if creds is None:
        st.warning("Sign in on the main page first.")
        st.stop()
    return DevOpsClient.from_credentials(creds)


@st.cache_data(show_spinner="Loading work items...", ttl=600)
def _load_items(org: str, project: str, pat: str) -> tuple[list[WorkItem], list[WorkItem]]:
    client = DevOpsClient(org, project, pat)
    items = client.fetch_items(ItemFilter())
    roots = client.fetch_root_items()
    return items, roots


def load_items() -> tuple[list[WorkItem], list[WorkItem]]:
    """All project items plus root items, or stop the page on failure."""
    creds = current_credentials()
    if creds is None:
        st.warning("Sign in on the main page first.")
        st.stop()
    try:
        items, roots = _load_items(creds.organization, creds.project, creds.pat)
    except DevOpsError as exc:
        logger.error("Work item load failed: %s", exc)
        st.error(f"Could not load work items: {exc}")
        st.stop()
    if not items:
        st.error("No work items were returned for this project.")
        st.stop()
    return items, roots


@st.cache_data(show_spinner="Loading child items...", ttl=600)
def _load_children(org: str, project: str, pat: str, parent_id: int) -> list[WorkItem]:
    return DevOpsClient(org, project, pat).fetch_children(parent_id)


def load_children(parent_id: int) -> list[WorkItem]:
    creds = current_credentials()
    try:
        return _load_children(creds.organization, creds.project, creds.pat, parent_id)
    except DevOpsError as exc:
        logger.error("Child load for %s failed: %s", parent_id, exc)
        st.error(f"Could not load child items: {exc}")
        return []


def refresh_items() -> None:
    _load_items.clear()
    _load_children.clear()
    rerun()
