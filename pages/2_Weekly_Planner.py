# pages/2_Weekly_Planner.py
# Weekly planner per developer: greedy auto-plan of pending hours, editable week grid
# (every edit re-balances the following weeks) + planning summary with period filter.
# Requires: streamlit-aggrid

import re

import streamlit as st
import pandas as pd
import altair as alt
from st_aggrid import AgGrid, GridOptionsBuilder, GridUpdateMode, DataReturnMode, JsCode

from workhours.config import get_settings
from workhours.dates import format_short, planning_origin
from workhours.frames import grid_edits, plan_csv, plan_grid, weeks_frame
from workhours.planner import (
    apply_edit, available_developers, build_plan, calculate_weeks, is_overloaded,
    max_weeks, open_projects, project_overview,
)
from workhours.session import load_items, rerun, setup_logging
from workhours.summary import filter_weeks, occupancy, project_summary, summary_metrics

setup_logging()
settings = get_settings()
STD = settings.standard_week_hours

st.set_page_config(page_title="Weekly Planner", layout="wide")
st.title("🗓️ Weekly Planner")

items, _ = load_items()

# ===================== DEVELOPER =====================
developer = st.sidebar.selectbox(
    "Developer", [None] + available_developers(items),
    format_func=lambda d: "-- choose a developer --" if d is None else d,
)
if developer is None:
    st.info("Select a developer to generate their work plan.")
    st.stop()

projects = open_projects(items, developer, settings.completed_states_list)

# the plan is rebuilt from scratch whenever the developer changes
if st.session_state.get("plan_dev") != developer:
    st.session_state["plan_dev"] = developer
    st.session_state["plan"] = build_plan(projects)
    st.session_state["plan_origin"] = planning_origin()
    st.session_state["plan_grid_version"] = 0

plan = st.session_state["plan"]
origin = st.session_state["plan_origin"]
weeks = calculate_weeks(plan, projects, origin, settings.min_display_weeks)

tab_plan, tab_summary = st.tabs(["Planner", "Summary"])

# ===================== PLANNER =====================
with tab_plan:
    left, right = st.columns([1, 2])

    with left:
        st.markdown("#### Projects overview")
        overview = pd.DataFrame(
            [[p.title, p.initial_pending, p.planned, p.remaining] for p in project_overview(projects, plan)],
            columns=["Project", "Pending (h)", "Planned (h)", "Remaining (h)"],
        )
        if overview.empty:
            st.info("No open projects for this developer.")
        else:
            def remaining_color(v):
                return "color:#dc2626;font-weight:700" if v < 0 else ("color:#16a34a" if v == 0 else "")
            st.dataframe(
                overview.style.map(remaining_color, subset=["Remaining (h)"])
                .format({"Pending (h)": "{:,.1f}", "Planned (h)": "{:,.1f}", "Remaining (h)": "{:,.1f}"}),
                use_container_width=True, hide_index=True,
            )

    with right:
        st.markdown("#### Weekly schedule")
        n_weeks = max_weeks(plan, settings.min_display_weeks)
        grid_df = plan_grid(plan, projects, n_weeks, origin)
        week_cols = [c for c in grid_df.columns if c.startswith("Week ")]

        gb = GridOptionsBuilder.from_dataframe(grid_df)
        gb.configure_column("ProjectId", hide=True)
        gb.configure_column("Project", pinned="left", width=260, editable=False)
        for col in week_cols:
            gb.configure_column(
                col,
                type=["numericColumn"],
                editable=True,
                valueParser=JsCode("function(p){var v=parseInt(p.newValue,10); return (isNaN(v)||v<0)?0:v;}"),
                width=130,
            )
        go = gb.build()

        grid_resp = AgGrid(
            grid_df,
            gridOptions=go,
            data_return_mode=DataReturnMode.AS_INPUT,
            update_mode=GridUpdateMode.VALUE_CHANGED,
            allow_unsafe_jscode=True,
            fit_columns_on_grid_load=False,
            height=min(120 + 35 * max(len(projects), 1), 520),
            key=f"plan_grid_{developer}_{st.session_state['plan_grid_version']}",
        )

        edited = pd.DataFrame(grid_resp.data) if grid_resp.data is not None else grid_df
        edits = grid_edits(grid_df, edited) if not edited.empty else []
        if edits:
            new_plan = plan
            for project_id, week_index, value in edits:
                new_plan = apply_edit(new_plan, project_id, week_index, value, projects)
            st.session_state["plan"] = new_plan
            st.session_state["plan_grid_version"] += 1
            rerun()

        st.markdown("#### Weekly load")
        load_cols = st.columns(min(len(weeks), 8) or 1)
        for i, week in enumerate(weeks[:8]):
            over = is_overloaded(week.total_hours, STD)
            load_cols[i].metric(
                f"Week {week.week_index + 1} ({format_short(week.start_date)})",
                f"{week.total_hours:,.0f} h",
                delta=f"+{week.total_hours - STD:,.0f} h over" if over else None,
                delta_color="inverse",
            )
        if len(weeks) > 8:
            st.caption(f"{len(weeks) - 8} more week(s) in the Summary tab.")

# ===================== SUMMARY =====================
with tab_summary:
    st.markdown(f"#### Plan summary for {developer}")
    f1, f2 = st.columns(2)
    start = f1.date_input("From", value=None, key="sum_from")
    end = f2.date_input("To", value=None, key="sum_to")
    period_weeks = filter_weeks(weeks, start, end)

    m = summary_metrics(period_weeks, STD)
    k1, k2, k3, k4 = st.columns(4)
    k1.metric("Weeks (period)", m.total_weeks)
    k2.metric("Free hours", f"{m.free_hours:,.0f} h")
    k3.metric("Overtime", f"{m.overtime_hours:,.0f} h")
    k4.metric("End of period", format_short(m.final_date))

    c_left, c_right = st.columns([1, 2])
    with c_left:
        occ = pd.DataFrame(occupancy(period_weeks, STD), columns=["Slice", "Hours"])
        if occ.empty:
            st.info("No hours in this period.")
        else:
            donut = alt.Chart(occ).mark_arc(innerRadius=60).encode(
                theta="Hours:Q",
                color=alt.Color("Slice:N", scale=alt.Scale(
                    domain=["Occupied", "Free", "Overtime"], range=["#3B82F6", "#10B981", "#EF4444"])),
                tooltip=["Slice", "Hours"],
            ).properties(height=260, title=f"Occupied vs free ({STD:.0f}h/week)")
            st.altair_chart(donut, use_container_width=True)
    with c_right:
        wk = weeks_frame(period_weeks, STD)
        if wk.empty:
            st.info("Select a valid date range to see the chart.")
        else:
            wk["Label"] = "Wk " + wk["Week"].astype(str)
            bars = alt.Chart(wk).mark_bar().encode(
                x=alt.X("Label:N", sort=None, title=None),
                y=alt.Y("Hours:Q"),
                color=alt.Color("Load:N", scale=alt.Scale(domain=["OK", "Overloaded"], range=["#3B82F6", "#EF4444"])),
                tooltip=["Week", "Start", "End", "Hours", "Projects"],
            )
            rule = alt.Chart(pd.DataFrame({"y": [STD]})).mark_rule(strokeDash=[6, 4], color="#64748b").encode(y="y:Q")
            st.altair_chart((bars + rule).properties(height=260, title="Hours per week"), use_container_width=True)

    st.markdown("#### Projects in period")
    rows = project_summary(period_weeks, weeks, projects, origin)
    proj_df = pd.DataFrame(
        [[r.id, r.title, r.initial_pending, r.planned_in_period, r.remaining, format_short(r.end_date)] for r in rows],
        columns=["ID", "Project", "Initial Pending (h)", "Planned in Period (h)", "Remaining (h)", "Projected End"],
    )
    if proj_df.empty:
        st.info("No projects planned in this period.")
    else:
        st.dataframe(proj_df, use_container_width=True, hide_index=True)

    st.markdown("#### Timeline")
    for week in period_weeks:
        title = (f"Week {week.week_index + 1} • {format_short(week.start_date)} → "
                 f"{format_short(week.end_date)} • {week.total_hours:,.0f} h")
        with st.expander(title, expanded=False):
            if week.projects:
                st.table(pd.DataFrame(
                    [[a.id, a.title, a.assigned_hours] for a in week.projects],
                    columns=["ID", "Project", "Hours"],
                ))
            else:
                st.caption("Nothing planned.")

    period = f"{start or 'Start'} - {end or 'End'}"
    safe_dev = re.sub(r"[^a-z0-9]", "_", developer.lower())
    st.download_button(
        "⬇️ Download plan (CSV)",
        plan_csv(developer, period_weeks, period),
        file_name=f"plan_{safe_dev}.csv",
        mime="text/csv",
        disabled=not period_weeks,
    )
