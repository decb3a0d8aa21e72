"""Azure DevOps work item REST client."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

import requests
from requests.auth import HTTPBasicAuth

from workhours.config import Settings, get_settings
from workhours.models import Credentials, TaskSummary, WorkItem, to_number

logger = logging.getLogger(__name__)

HIERARCHY_FORWARD = "System.LinkTypes.Hierarchy-Forward"


class DevOpsError(Exception):
    """Raised when the backend cannot be reached or rejects a request."""


class AuthenticationError(DevOpsError):
    """Raised when the personal access token is rejected."""


@dataclass
class ItemFilter:
    types: list[str] = field(default_factory=list)
    states: list[str] = field(default_factory=list)
    assigned_to: Optional[str] = None


def _quote(value: str) -> str:
    return "'" + str(value).replace("'", "''") + "'"


def _in_clause(values: Iterable[str]) -> str:
    return "(" + ", ".join(_quote(v) for v in values) + ")"


class DevOpsClient:
    """Thin wrapper around the WIQL and work-items-batch endpoints."""

    def __init__(
        self,
        organization: str,
        project: str,
        pat: str,
        settings: Settings | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.organization = organization
        self.project = project
        self.org_url = self.settings.base_url.format(organization=organization).rstrip("/")
        self.session = session or requests.Session()
        self.session.auth = HTTPBasicAuth("", pat)
        self.session.headers.update({"Content-Type": "application/json"})

    @classmethod
    def from_credentials(cls, creds: Credentials, settings: Settings | None = None) -> DevOpsClient:
        return cls(creds.organization, creds.project, creds.pat, settings=settings)

    # ---------------- transport ----------------
    def _post(self, url: str, payload: dict) -> dict:
        params = {"api-version": self.settings.api_version}
        try:
            resp = self.session.post(url, json=payload, params=params, timeout=self.settings.request_timeout)
        except requests.RequestException as exc:
            logger.error("Request to %s failed: %s", url, exc)
            raise DevOpsError(f"Could not reach Azure DevOps: {exc}") from exc
        if resp.status_code in (401, 403):
            raise AuthenticationError("Access denied. Check the personal access token and its scopes.")
        if resp.status_code >= 400:
            logger.error("Azure DevOps returned %s for %s: %s", resp.status_code, url, resp.text[:500])
            raise DevOpsError(f"Azure DevOps returned HTTP {resp.status_code}")
        try:
            return resp.json()
        except ValueError as exc:
            raise DevOpsError("Azure DevOps returned a non-JSON response") from exc

    def _wiql(self, query: str) -> dict:
        url = f"{self.org_url}/{self.project}/_apis/wit/wiql"
        return self._post(url, {"query": query})

    # ---------------- queries ----------------
    def query_ids(self, query: str) -> list[int]:
        return [int(w["id"]) for w in self._wiql(query).get("workItems", [])]

    def query_link_targets(self, query: str) -> list[int]:
        """Target ids of a link query, the source rows excluded."""
        ids = []
        for rel in self._wiql(query).get("workItemRelations", []):
            if rel.get("rel") and rel.get("target"):
                ids.append(int(rel["target"]["id"]))
        return list(dict.fromkeys(ids))

    def get_items(self, ids: Iterable[int], fields: list[str] | None = None) -> list[WorkItem]:
        ids = list(dict.fromkeys(int(i) for i in ids))
        if not ids:
            return []
        fields = fields or self.settings.item_fields
        url = f"{self.org_url}/_apis/wit/workitemsbatch"
        items = []
        size = self.settings.batch_size
        for start in range(0, len(ids), size):
            payload = {"ids": ids[start:start + size], "fields": fields, "errorPolicy": "Omit"}
            data = self._post(url, payload)
            for raw in data.get("value", []):
                if raw:
                    items.append(WorkItem.from_api(raw, self.settings))
        return items

    def verify(self) -> None:
        """Raise when the credentials cannot run a trivial query."""
        self.query_ids("SELECT [System.Id] FROM WorkItems WHERE [System.Id] = 0")

    # ---------------- domain lookups ----------------
    def fetch_items(self, criteria: ItemFilter | None = None) -> list[WorkItem]:
        criteria = criteria or ItemFilter()
        s = self.settings
        clauses = ["[System.TeamProject] = @project"]
        if criteria.types:
            clauses.append(f"[{s.field_type}] IN {_in_clause(criteria.types)}")
        if criteria.states:
            clauses.append(f"[{s.field_state}] IN {_in_clause(criteria.states)}")
        if criteria.assigned_to:
            clauses.append(f"[{s.field_assigned_to}] = {_quote(criteria.assigned_to)}")
        query = (
            "SELECT [System.Id] FROM WorkItems WHERE "
            + " AND ".join(clauses)
            + " ORDER BY [System.ChangedDate] DESC"
        )
        items = self.get_items(self.query_ids(query))
        logger.info("Loaded %d work items from %s/%s", len(items), self.organization, self.project)
        return items

    def fetch_root_items(self) -> list[WorkItem]:
        return self.fetch_items(ItemFilter(types=[self.settings.root_type]))

    def fetch_children(self, item_id: int) -> list[WorkItem]:
        query = (
            "SELECT [System.Id] FROM WorkItemLinks WHERE "
            f"[Source].[System.Id] = {int(item_id)} "
            f"AND [System.Links.LinkType] = '{HIERARCHY_FORWARD}' MODE (MustContain)"
        )
        return self.get_items(self.query_link_targets(query))

    def fetch_descendant_leaves(self, root_id: int) -> list[WorkItem]:
        """Every time-entry leaf anywhere below `root_id`."""
        query = (
            "SELECT [System.Id] FROM WorkItemLinks WHERE "
            f"[Source].[System.Id] = {int(root_id)} "
            f"AND [System.Links.LinkType] = '{HIERARCHY_FORWARD}' MODE (Recursive)"
        )
        items = self.get_items(self.query_link_targets(query))
        return [i for i in items if i.is_type(self.settings.leaf_type)]

    def fetch_task_summary(self, task_id: int) -> TaskSummary:
        """Estimated hours of the task and hours logged on its direct leaves."""
        task = self.get_items([task_id])
        estimated = to_number(task[0].estimated_hours) if task else 0
        leaves = [c for c in self.fetch_children(task_id) if c.is_type(self.settings.leaf_type)]
        invested = sum(to_number(leaf.logged_hours) for leaf in leaves)
        return TaskSummary(estimated, invested)

    def fetch_logged_hours(self, start: date, end: date) -> list[WorkItem]:
        s = self.settings
        query = (
            "SELECT [System.Id] FROM WorkItems WHERE "
            "[System.TeamProject] = @project "
            f"AND [{s.field_type}] = {_quote(s.leaf_type)} "
            f"AND [{s.field_log_date}] >= '{start.isoformat()}' "
            f"AND [{s.field_log_date}] <= '{end.isoformat()}'"
        )
        return self.get_items(self.query_ids(query))

    def item_url(self, item_id: int) -> str:
        return f"{self.org_url}/{self.project}/_workitems/edit/{item_id}"
