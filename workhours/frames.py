"""pandas views of the core results, for grids, charts and CSV export."""

from __future__ import annotations

from typing import Iterable

import numpy as np
import pandas as pd

from workhours.dates import format_short, week_date_range
from workhours.metrics import DeveloperMetrics, GlobalMetrics
from workhours.models import CalculatedWeek, WorkItem
from workhours.planner import Plan


def week_column(index: int, origin) -> str:
    start, _ = week_date_range(index, origin)
    return f"Week {index + 1} ({format_short(start)})"


def plan_grid(plan: Plan, projects: list[WorkItem], n_weeks: int, origin) -> pd.DataFrame:
    """One row per project, one numeric column per week."""
    cols = [week_column(i, origin) for i in range(n_weeks)]
    rows = []
    for project in projects:
        schedule = plan.get(project.id, [])
        hours = [schedule[i] if i < len(schedule) else 0 for i in range(n_weeks)]
        rows.append([project.id, project.label, *hours])
    return pd.DataFrame(rows, columns=["ProjectId", "Project", *cols])


def grid_edits(before: pd.DataFrame, after: pd.DataFrame) -> list[tuple[int, int, object]]:
    """(project id, week index, new raw value) for every cell that changed."""
    week_cols = [c for c in before.columns if c.startswith("Week ")]
    edits = []
    after = after.set_index("ProjectId")
    for _, row in before.iterrows():
        pid = int(row["ProjectId"])
        if pid not in after.index:
            continue
        for index, col in enumerate(week_cols):
            if col not in after.columns:
                continue
            new = after.at[pid, col]
            new_num = pd.to_numeric(new, errors="coerce")
            old_num = pd.to_numeric(row[col], errors="coerce")
            if pd.isna(new_num) and pd.isna(old_num):
                continue
            if pd.isna(new_num) or pd.isna(old_num) or not np.isclose(new_num, old_num):
                edits.append((pid, index, new))
    return edits


def weeks_frame(weeks: Iterable[CalculatedWeek], standard_hours: float) -> pd.DataFrame:
    rows = [
        {
            "Week": w.week_index + 1,
            "Start": w.start_date,
            "End": w.end_date,
            "Projects": len(w.projects),
            "Hours": w.total_hours,
        }
        for w in weeks
    ]
    df = pd.DataFrame(rows, columns=["Week", "Start", "End", "Projects", "Hours"])
    df["Start"] = pd.to_datetime(df["Start"])
    df["End"] = pd.to_datetime(df["End"])
    df["Load"] = np.where(df["Hours"] > standard_hours, "Overloaded", "OK")
    return df


def plan_export(weeks: Iterable[CalculatedWeek]) -> pd.DataFrame:
    rows = [
        [w.week_index + 1, format_short(w.start_date), format_short(w.end_date), a.id, a.title, a.assigned_hours]
        for w in weeks
        for a in w.projects
    ]
    return pd.DataFrame(
        rows,
        columns=["Week", "Start Date", "End Date", "Project ID", "Project Title", "Assigned Hours"],
    )


def plan_csv(developer: str, weeks: list[CalculatedWeek], period: str) -> bytes:
    header = f"Weekly plan for {developer}\nPeriod: {period}\n\n"
    return (header + plan_export(weeks).to_csv(index=False)).encode("utf-8")


def developer_frame(rows: Iterable[DeveloperMetrics]) -> pd.DataFrame:
    return pd.DataFrame(
        [[r.developer, r.invested_hours, r.item_count, r.average_hours] for r in rows],
        columns=["Developer", "Invested Hours", "Items (unique)", "Avg Hours / Item"],
    )


def analysis_report_csv(
    tag: str,
    developers: list[str],
    totals: GlobalMetrics,
    per_dev: list[DeveloperMetrics],
) -> bytes:
    summary = pd.DataFrame(
        [
            ["Total invested hours", f"{totals.total_invested}h"],
            ["Items (unique per backlog item)", totals.total_items],
            ["Avg hours / item", f"{totals.average_per_item}h"],
        ],
        columns=["Metric", "Value"],
    )
    parts = [
        "Item analysis report (grouped by parent backlog item)\n",
        f"Tag:,{tag}\n",
        f"Developers:,\"{'; '.join(developers)}\"\n\n",
        "Global metrics\n",
        summary.to_csv(index=False),
        "\nMetrics by developer\n",
        developer_frame(per_dev).to_csv(index=False),
    ]
    return "".join(parts).encode("utf-8")


def items_frame(items: Iterable[WorkItem], root_titles: dict[int, str]) -> pd.DataFrame:
    rows = [
        {
            "ID": i.id,
            "Type": i.type,
            "Title": i.title,
            "Backlog Item": root_titles.get(i.id, ""),
            "Assigned To": i.assignee or "",
            "State": i.state,
            "Tags": "; ".join(i.tags),
            "Pending (h)": i.pending_hours,
            "Weekly Load (h)": i.weekly_capacity,
        }
        for i in items
    ]
    return pd.DataFrame(rows, columns=[
        "ID", "Type", "Title", "Backlog Item", "Assigned To", "State", "Tags", "Pending (h)", "Weekly Load (h)",
    ])
