import streamlit as st
import pandas as pd

from workhours.client import DevOpsClient, DevOpsError
from workhours.config import get_settings
from workhours.credentials import CredentialStore
from workhours.frames import items_frame
from workhours.hierarchy import resolve_all
from workhours.logged_hours import state_category
from workhours.models import Credentials
from workhours.session import current_credentials, load_children, load_items, refresh_items, rerun, setup_logging

setup_logging()
settings = get_settings()

st.set_page_config(page_title="Work Hours Dashboard", layout="wide")
st.title("⏱️ Work Hours Dashboard (Items • Hierarchy • Hours)")

store = CredentialStore()

# ---------------- Login ----------------
def login_form():
    saved = store.load()
    with st.form("login"):
        st.markdown("#### Connect to Azure DevOps")
        org = st.text_input("Organization", value=saved.organization if saved else settings.default_organization)
        project = st.text_input("Project", value=saved.project if saved else settings.default_project)
        pat = st.text_input("Personal access token", value=saved.pat if saved else "", type="password")
        remember = st.checkbox("Remember me on this machine", value=saved is not None)
        submitted = st.form_submit_button("Connect")

    if not submitted:
        return
    creds = Credentials(org.strip(), project.strip(), pat.strip())
    if not creds.is_complete():
        st.warning("Organization, project and token are all required.")
        return
    try:
        DevOpsClient.from_credentials(creds).verify()
    except DevOpsError as exc:
        st.error(str(exc))
        return
    if remember:
        store.save(creds)
    else:
        store.clear()
    st.session_state["creds"] = creds
    rerun()


creds = current_credentials()
if creds is None:
    login_form()
    st.stop()

with st.sidebar:
    st.caption(f"Connected to **{creds.organization} / {creds.project}**")
    c1, c2 = st.columns(2)
    if c1.button("🔄 Reload"):
        refresh_items()
    if c2.button("🚪 Sign out"):
        st.session_state.pop("creds", None)
        st.session_state.pop("browse_parent", None)
        rerun()

items, roots = load_items()

# ---------------- Sidebar Filters ----------------
st.sidebar.header("Filters")
devs = sorted({i.assignee for i in items if i.assignee})
types = sorted({i.type for i in items if i.type})
states = sorted({i.state for i in items if i.state})

selected_devs = st.sidebar.multiselect("👤 Developers", devs)
selected_types = st.sidebar.multiselect("🏷️ Types", types)
selected_states = st.sidebar.multiselect("📌 States", states)
search = st.sidebar.text_input("🔎 Search (id or title)")

parent_id = st.session_state.get("browse_parent")
visible = items
if parent_id is not None:
    visible = load_children(parent_id)
if selected_devs:
    visible = [i for i in visible if i.assignee in selected_devs]
if selected_types:
    visible = [i for i in visible if i.type in selected_types]
if selected_states:
    visible = [i for i in visible if i.state in selected_states]
if search.strip():
    term = search.strip().lower()
    visible = [i for i in visible if term in str(i.id) or term in i.title.lower()]

hierarchy = resolve_all(visible, settings.root_type, context=[*items, *roots])

# ---------------- KPIs ----------------
by_id = {i.id: i for i in [*roots, *items, *visible]}
if parent_id is not None:
    parent = by_id.get(parent_id)
    label = parent.label if parent else f"#{parent_id}"
    c1, c2 = st.columns([4, 1])
    c1.subheader(f"📂 Children of {label}")
    if c2.button("⬅️ Back to all items"):
        st.session_state.pop("browse_parent", None)
        rerun()
else:
    st.subheader(f"📁 {creds.project}")

k1, k2, k3, k4 = st.columns(4)
k1.metric("Items", f"{len(visible):,}")
k2.metric("Backlog items (unique)", f"{len({hierarchy.group_id(i.id) for i in visible}):,}")
k3.metric("Pending hours", f"{sum(i.pending_hours for i in visible):,.0f} h")
k4.metric("Developers", f"{len({i.assignee for i in visible if i.assignee})}")

# ---------------- Tabs ----------------
tab1, tab2 = st.tabs(["Work Items", "Item Detail"])

with tab1:
    if not visible:
        st.info("No items match the selected filters.")
    else:
        df = items_frame(visible, hierarchy.titles)
        df["State"] = df["State"].map(lambda s: f"{s} ({state_category(s)})" if state_category(s) != s else s)
        st.dataframe(
            df.style.format({"Pending (h)": "{:,.1f}", "Weekly Load (h)": "{:,.1f}"}),
            use_container_width=True,
            hide_index=True,
        )
        st.download_button(
            "⬇️ Download items (CSV)",
            df.to_csv(index=False).encode("utf-8"),
            file_name=f"work_items_{creds.project}.csv",
            mime="text/csv",
        )

with tab2:
    if not visible:
        st.info("No items to inspect.")
    else:
        options = [i.id for i in visible]
        item_id = st.selectbox("Item", options, format_func=lambda i: by_id[i].label)
        item = by_id[item_id]
        root = hierarchy.roots.get(item.id)
        detail = pd.DataFrame([
            ["Type", item.type],
            ["State", item.state],
            ["Assigned to", item.assignee or "-"],
            ["Parent", by_id[item.parent_id].label if item.parent_id in by_id else (item.parent_id or "-")],
            ["Backlog item", f"#{root.id} - {root.title}" if root else "-"],
            ["Tags", "; ".join(item.tags) or "-"],
            ["Pending hours", item.pending_hours],
            ["Weekly load", item.weekly_capacity],
            ["Estimated hours", item.estimated_hours],
            ["Logged hours", item.logged_hours],
        ], columns=["Field", "Value"])
        st.table(detail.astype(str))
        st.markdown(f"[Open in Azure DevOps]({DevOpsClient.from_credentials(creds).item_url(item.id)})")
        if st.button("📂 Show children"):
            st.session_state["browse_parent"] = item.id
            rerun()

st.caption("Items are grouped under their parent backlog item; items without one are shown on their own.")
