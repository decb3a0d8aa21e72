# pages/4_Profitability.py
# Profitability simulator: client price of a project vs personnel cost
# (hours logged under the project × hourly cost typed per person).

import streamlit as st
import pandas as pd
import altair as alt

from workhours.client import DevOpsError
from workhours.profitability import (
    calculate_profitability, hours_by_person, rates_are_valid, search_projects, simulation_inputs,
)
from workhours.session import get_client, load_items, setup_logging

setup_logging()

st.set_page_config(page_title="Profitability", layout="wide")
st.title("💰 Profitability Calculator")

items, roots = load_items()
client = get_client()

def money(x): return f"$ {x:,.2f}"

# ===================== PROJECT =====================
left, right = st.columns([1, 2])

with left:
    candidates = sorted({p.id: p for p in [*roots, *items]}.values(), key=lambda p: p.id)
    term = st.text_input("Search project (id or title)")
    matches = search_projects(candidates, term)
    project = st.selectbox(
        "Project", [None] + matches,
        format_func=lambda p: "-- choose a project --" if p is None else p.label,
    )
    if project is None:
        right.info("Select a project and fill in the costs to run the simulation.")
        st.stop()

    st.metric("Client price", money(project.client_rate))


@st.cache_data(show_spinner="Loading project personnel...", ttl=300)
def project_personnel(_client, org, project_name, root_id):
    return hours_by_person(_client.fetch_descendant_leaves(root_id))


try:
    personnel = project_personnel(client, client.organization, client.project, project.id)
except DevOpsError as exc:
    st.error(f"Could not load the project personnel: {exc}")
    st.stop()

with left:
    st.markdown("##### Personnel cost (per hour)")
    rates = {}
    if not personnel:
        st.info("No logged hours found under this project.")
    for name, hours in personnel.items():
        rates[name] = st.text_input(f"{name} ({hours:,.1f} h)", key=f"rate_{project.id}_{name}",
                                    placeholder="Cost / h")
    inputs = simulation_inputs(project, rates)
    if st.button("Calculate", disabled=not rates_are_valid(personnel, rates)):
        st.session_state["profit_result"] = (inputs, calculate_profitability(project, personnel, rates))

# ===================== RESULTS =====================
with right:
    stored = st.session_state.get("profit_result")
    # kept across reruns until an input changes
    if stored is None or stored[0] != inputs:
        st.session_state.pop("profit_result", None)
        st.info("Enter a non-negative hourly cost for every person, then press Calculate.")
        st.stop()
    result = stored[1]
    st.markdown(f"#### Results for **{project.title}**")
    k1, k2, k3 = st.columns(3)
    k1.metric("Net profit", money(result.total_profit))
    k2.metric("Margin", f"{round(result.profit_margin)}%")
    k3.metric("Total cost", money(result.total_cost))

    breakdown = pd.DataFrame([["Profit", max(result.total_profit, 0)], ["Cost", result.total_cost]],
                             columns=["Slice", "Amount"])
    donut = alt.Chart(breakdown).mark_arc(innerRadius=70).encode(
        theta="Amount:Q",
        color=alt.Color("Slice:N", scale=alt.Scale(domain=["Profit", "Cost"], range=["#10B981", "#EF4444"])),
        tooltip=["Slice", alt.Tooltip("Amount:Q", format=",.2f")],
    ).properties(height=300, title="Profitability breakdown")
    st.altair_chart(donut, use_container_width=True)

    per_person = pd.DataFrame(
        [[n, h, float(rates[n]), h * float(rates[n])] for n, h in personnel.items()],
        columns=["Person", "Hours", "Cost / h", "Cost"],
    )
    st.dataframe(per_person.style.format({"Hours": "{:,.1f}", "Cost / h": money, "Cost": money}),
                 use_container_width=True, hide_index=True)
