"""Streamlit UI for the bug tracker.

Talks to the FastAPI backend through ``BugService``. Filtering and sorting of
the list view happen client-side with the same query functions the API uses.
Run with: make ui
"""

from typing import cast

import streamlit as st

from src.bugs.models import SEVERITIES, STATUSES, Bug
from src.bugs.query import BugFilters, SortBy, filter_bugs, sort_bugs
from src.bugs.validation import sanitize_input, sanitize_tags, validate_bug_form
from src.client import ApiResponse, BugService

LIST_PAGE_SIZE = 100

SEVERITY_ICONS = {"low": ":large_green_circle:", "medium": ":large_yellow_circle:", "high": ":large_orange_circle:", "critical": ":red_circle:"}

st.set_page_config(page_title="Bug Tracker", layout="wide")


@st.cache_resource
def get_service() -> BugService:
    return BugService()


service = get_service()


def fetch_all_bugs() -> tuple[ApiResponse[list[Bug]], list[Bug]]:
    """Walk every page of the list endpoint. Returns the last response and all bugs seen."""
    bugs: list[Bug] = []
    page = 1
    while True:
        response = service.get_all_bugs(page=page, limit=LIST_PAGE_SIZE)
        bugs.extend(response.data or [])
        if not response.success or response.pagination is None or page >= response.pagination.pages:
            return response, bugs
        page += 1


# ---------------------------------------------------------------------------
# Sidebar: new bug form
# ---------------------------------------------------------------------------

with st.sidebar:
    st.title("Bug Tracker")
    st.subheader("Report a bug")

    with st.form("new_bug", clear_on_submit=False):
        title = st.text_input("Title")
        description = st.text_area("Description")
        severity = st.selectbox("Severity", SEVERITIES, index=1)
        assignee = st.text_input("Assignee")
        reporter = st.text_input("Reporter")
        tags_raw = st.text_input("Tags (comma-separated)")
        submitted = st.form_submit_button("Create bug")

    if submitted:
        form = {
            "title": sanitize_input(title),
            "description": sanitize_input(description),
            "severity": severity,
            "assignee": sanitize_input(assignee),
            "reporter": sanitize_input(reporter),
            "tags": sanitize_tags(tags_raw.split(",")),
        }
        errors = validate_bug_form(form)
        if errors:
            for message in errors.values():
                st.error(message)
        else:
            result = service.create_bug(form)
            if result.success:
                st.success(result.message or "Bug created")
            else:
                st.error(result.error or "Failed to create bug")

# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------

stats = service.get_stats()
if stats.success and stats.data:
    cols = st.columns(5)
    cols[0].metric("Total", stats.data.total)
    cols[1].metric("Open", stats.data.open)
    cols[2].metric("In progress", stats.data.in_progress)
    cols[3].metric("Resolved", stats.data.resolved)
    cols[4].metric("Closed", stats.data.closed)
else:
    st.error(f"Cannot reach API server: {stats.error}")

# ---------------------------------------------------------------------------
# Filters and sort
# ---------------------------------------------------------------------------

with st.expander("Filters", expanded=False):
    fcols = st.columns(4)
    search = fcols[0].text_input("Search", placeholder="Search bugs...")
    status_choice = fcols[1].selectbox("Status", ("all", *STATUSES))
    severity_choice = fcols[2].selectbox("Severity", ("all", *SEVERITIES))
    assignee_filter = fcols[3].text_input("Assignee")

sort_by = cast(SortBy, st.selectbox("Sort by", ("date", "severity", "status"), format_func=lambda s: f"Sort by {s.title()}"))

filters = BugFilters(
    status=None if status_choice == "all" else status_choice,
    severity=None if severity_choice == "all" else severity_choice,
    assignee=assignee_filter or None,
    search=search or None,
)

listing, all_bugs = fetch_all_bugs()
visible = sort_bugs(filter_bugs(all_bugs, filters), sort_by)

st.header(f"Bug Reports ({len(visible)})")

if not listing.success:
    st.error(listing.error or "Failed to fetch bugs")
elif not visible:
    if not all_bugs:
        st.info("No bugs reported yet. Create your first bug report to get started.")
    else:
        st.info("No bugs match your filters. Try adjusting your filters to see more results.")

# ---------------------------------------------------------------------------
# Bug cards
# ---------------------------------------------------------------------------

for bug in visible:
    with st.container(border=True):
        head, actions = st.columns([4, 1])
        with head:
            st.markdown(f"{SEVERITY_ICONS[bug.severity]} **#{bug.id} {bug.title}**  \n`{bug.status}` · {bug.severity}")
            st.write(bug.description)
            st.caption(
                f"Assignee: {bug.assignee} · Reporter: {bug.reporter} · "
                f"Updated {bug.updated_at:%Y-%m-%d %H:%M}"
            )
            if bug.tags:
                st.caption(" ".join(f"`{t}`" for t in bug.tags))
        with actions:
            new_status = st.selectbox(
                "Status",
                STATUSES,
                index=STATUSES.index(bug.status),
                key=f"status-{bug.id}",
                label_visibility="collapsed",
            )
            if new_status != bug.status:
                result = service.update_bug(bug.id, {"status": new_status})
                if result.success:
                    st.rerun()
                st.error(result.error or "Failed to update bug")
            if st.button("Delete", key=f"delete-{bug.id}"):
                result = service.delete_bug(bug.id)
                if result.success:
                    st.rerun()
                st.error(result.error or "Failed to delete bug")
