# pages/3_Weekly_Hours.py
# Logged hours for one Monday–Sunday week: per-developer totals, KPIs and
# drill-down of each developer's entries up the Line → Task → PBI → Project chain.

from datetime import date, timedelta

import streamlit as st
import pandas as pd
import altair as alt

from workhours.client import DevOpsError
from workhours.dates import week_bounds
from workhours.logged_hours import (
    aggregate_by_developer, entries_with_parent, entry_context, fetch_ancestors,
    state_category, weekly_metrics,
)
from workhours.session import get_client, setup_logging

setup_logging()

st.set_page_config(page_title="Weekly Hours", layout="wide")
st.title("⏲️ Weekly Logged Hours")

client = get_client()

# ===================== WEEK NAVIGATION =====================
if "wh_day" not in st.session_state:
    st.session_state["wh_day"] = date.today()

n1, n2, n3 = st.columns(3)
if n1.button("⬅️ Previous week"):
    st.session_state["wh_day"] -= timedelta(days=7)
if n2.button("📍 Current week"):
    st.session_state["wh_day"] = date.today()
if n3.button("Next week ➡️"):
    st.session_state["wh_day"] += timedelta(days=7)

week_start, week_end = week_bounds(st.session_state["wh_day"])
st.subheader(f"From {week_start:%d/%m/%Y} to {week_end:%d/%m/%Y}")


@st.cache_data(show_spinner="Loading logged hours...", ttl=300)
def logged_hours(_client, org, project, start, end):
    return _client.fetch_logged_hours(start, end)


try:
    leaves = logged_hours(client, client.organization, client.project, week_start, week_end)
except DevOpsError as exc:
    st.error(f"Could not load logged hours: {exc}")
    st.stop()

aggregated = aggregate_by_developer(leaves)
m = weekly_metrics(aggregated)

# ===================== KPIs =====================
k1, k2, k3, k4 = st.columns(4)
k1.metric("Total hours", f"{m.total_hours:,.1f} h")
k2.metric("Active developers", m.active_developers)
k3.metric("Avg per developer", f"{m.average_hours:,.1f} h")
k4.metric("Top developer", m.top_developer.name if m.top_developer else "-",
          f"{m.top_developer.total_hours:,.1f} h" if m.top_developer else None)

if not aggregated:
    st.info("No hours were logged this week.")
    st.stop()

chart_df = pd.DataFrame([[d.name, d.total_hours] for d in aggregated], columns=["Developer", "Hours"])
bar = alt.Chart(chart_df).mark_bar().encode(
    x=alt.X("Developer:N", sort="-y", title=None),
    y=alt.Y("Hours:Q"),
    tooltip=["Developer", "Hours"],
).properties(height=300, title="Hours by developer")
st.altair_chart(bar, use_container_width=True)

# ===================== DRILL-DOWN =====================
st.markdown("#### Detail by developer")
dev_name = st.selectbox("Developer", [d.name for d in aggregated])
dev = next(d for d in aggregated if d.name == dev_name)
entries = entries_with_parent(dev.entries)
st.caption(f"{dev.name}: {sum(e.logged_hours for e in entries):,.1f} h in entries linked to a task")


@st.cache_data(show_spinner="Resolving hierarchy...", ttl=300)
def ancestors_for(_client, org, project, batch):
    return fetch_ancestors(list(batch), _client.get_items)


if not entries:
    st.info("No entries linked to a task.")
else:
    try:
        ancestors = ancestors_for(client, client.organization, client.project, tuple(entries))
    except DevOpsError as exc:
        st.warning(f"Hierarchy could not be loaded: {exc}")
        ancestors = {}

    rows = []
    for entry in entries:
        ctx = entry_context(entry, ancestors)
        rows.append({
            "Date": entry.log_date,
            "Project": ctx.project.title if ctx.project else "-",
            "Task": ctx.task.title if ctx.task else f"#{entry.parent_id}",
            "State": state_category(ctx.task.state) if ctx.task else "",
            "Estimated (h)": ctx.task.estimated_hours if ctx.task else None,
            "Hours": entry.logged_hours,
            "Link": client.item_url(ctx.task.id if ctx.task else entry.id),
        })
    st.dataframe(
        pd.DataFrame(rows),
        use_container_width=True, hide_index=True,
        column_config={"Link": st.column_config.LinkColumn("Link", display_text="open")},
    )
    st.caption("Hierarchy analysed: Line → Task → PBI → Project.")
