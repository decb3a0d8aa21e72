# pages/1_Task_Analysis.py
# Invested hours per tag: global + per-developer metrics, grouped by parent backlog item

import re

import streamlit as st
import altair as alt

from workhours.config import get_settings
from workhours.frames import analysis_report_csv, developer_frame
from workhours.hierarchy import resolve_all
from workhours.metrics import (
    available_tags, collect_task_summaries, developer_metrics, filter_by_tag,
    global_metrics, items_for_developers,
)
from workhours.planner import available_developers
from workhours.session import get_client, load_items, setup_logging

setup_logging()
settings = get_settings()

st.set_page_config(page_title="Task Analysis", layout="wide")
st.title("🔍 Task Analysis")

items, roots = load_items()
client = get_client()

# ===================== FILTERS =====================
with st.sidebar:
    st.markdown("### Filters")
    selected_devs = st.multiselect("Developers", available_developers(items), key="ta_devs")
    dev_items = items_for_developers(items, selected_devs)
    tags = available_tags(dev_items)
    # a tag that no longer exists for the selected developers is dropped
    if st.session_state.get("ta_tag") not in tags:
        st.session_state["ta_tag"] = None
    selected_tag = st.selectbox("Tag", [None] + tags, key="ta_tag",
                                format_func=lambda t: "-- choose a tag --" if t is None else t)

if not selected_devs or not selected_tag:
    st.info("Select at least one developer and a tag to see the metrics.")
    st.stop()

filtered = filter_by_tag(dev_items, selected_tag)
hierarchy = resolve_all(items, settings.root_type, context=roots)


@st.cache_data(show_spinner="Calculating hours...", ttl=300)
def task_summaries(_client, org, project, batch):
    return collect_task_summaries(list(batch), _client.fetch_task_summary, settings)


summaries = task_summaries(client, client.organization, client.project, tuple(filtered))

# ===================== CALCS =====================
totals = global_metrics(filtered, summaries, hierarchy)
per_dev = developer_metrics(filtered, summaries, hierarchy)

# ===================== UI =====================
st.subheader(f"Global metrics (tag: {selected_tag})")
k1, k2, k3 = st.columns(3)
k1.metric("Total invested hours", f"{totals.total_invested:,.1f} h")
k2.metric("Items (grouped by backlog item)", f"{totals.total_items}")
k3.metric("Avg hours / item", f"{totals.average_per_item:,.2f} h")
st.caption("Several tasks under the same backlog item with this tag count as a single item for the averages.")

left, right = st.columns([2, 1])
with left:
    st.markdown("#### Breakdown by developer")
    dev_df = developer_frame(per_dev)
    if dev_df.empty:
        st.info("No data for the selected developers.")
    else:
        st.dataframe(
            dev_df.style.format({"Invested Hours": "{:,.1f}", "Avg Hours / Item": "{:,.2f}"}),
            use_container_width=True, hide_index=True,
        )
with right:
    st.markdown("#### Invested hours by developer")
    if dev_df.empty:
        st.info("No data to show.")
    else:
        bar = alt.Chart(dev_df).mark_bar().encode(
            x=alt.X("Invested Hours:Q"),
            y=alt.Y("Developer:N", sort="-x"),
            tooltip=["Developer", "Invested Hours", "Items (unique)"],
        ).properties(height=260)
        st.altair_chart(bar, use_container_width=True)

st.markdown(f"#### Individual items ({len(filtered)})")
if not filtered:
    st.info("No items match the selected filters.")
else:
    rows = []
    for item in filtered:
        s = summaries.get(item.id)
        rows.append({
            "ID": item.id,
            "Type": item.type,
            "Title": item.title,
            "Backlog Item": hierarchy.root_title(item.id) or "",
            "Assigned To": item.assignee or "",
            "State": item.state,
            "Estimated (h)": s.estimated if s else 0,
            "Invested (h)": s.invested if s else 0,
        })
    st.dataframe(rows, use_container_width=True, hide_index=True)

    safe_tag = re.sub(r"[^a-z0-9]", "_", selected_tag.lower())
    st.download_button(
        "⬇️ Export report (CSV)",
        analysis_report_csv(selected_tag, selected_devs, totals, per_dev),
        file_name=f"item_analysis_{safe_tag}.csv",
        mime="text/csv",
    )
