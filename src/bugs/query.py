"""Filter, search, sort and paginate a snapshot of bugs.

The same functions back the ``GET /api/bugs`` endpoint (always newest-first)
and the Streamlit list view (any sort mode).
"""

import math
from collections.abc import Iterable
from typing import Literal

from pydantic import Field

from src.bugs.models import SEVERITY_RANK, STATUS_RANK, Bug, CamelModel, Severity, Status

SortBy = Literal["date", "severity", "status"]

MAX_PAGE_LIMIT = 100


class BugFilters(CamelModel):
    """Conjunctive filters. ``None`` / empty string means "no filter"."""

    status: Status | None = None
    severity: Severity | None = None
    assignee: str | None = None
    search: str | None = None


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int


class BugPage(CamelModel):
    items: list[Bug] = Field(default_factory=list)
    pagination: Pagination


def filter_bugs(bugs: Iterable[Bug], filters: BugFilters) -> list[Bug]:
    """Apply status, severity, assignee and free-text search filters (AND-combined).

    Assignee and search are case-insensitive substring matches. Search
    matches if the term appears in the title, the description or any tag.
    """
    result = list(bugs)

    if filters.status:
        result = [b for b in result if b.status == filters.status]

    if filters.severity:
        result = [b for b in result if b.severity == filters.severity]

    if filters.assignee:
        needle = filters.assignee.lower()
        result = [b for b in result if needle in b.assignee.lower()]

    if filters.search:
        term = filters.search.lower()
        result = [
            b
            for b in result
            if term in b.title.lower() or term in b.description.lower() or any(term in t.lower() for t in b.tags)
        ]

    return result


def sort_bugs(bugs: Iterable[Bug], sort_by: SortBy = "date") -> list[Bug]:
    """Return a new list sorted descending by update time, severity rank or status rank.

    The sort is stable: equal keys keep their input order.
    """
    if sort_by == "severity":
        return sorted(bugs, key=lambda b: SEVERITY_RANK[b.severity], reverse=True)
    if sort_by == "status":
        return sorted(bugs, key=lambda b: STATUS_RANK[b.status], reverse=True)
    return sorted(bugs, key=lambda b: b.updated_at, reverse=True)


def paginate(bugs: list[Bug], page: int = 1, limit: int = 50) -> BugPage:
    """Slice one 1-indexed page. A page past the end is empty, not an error."""
    if page < 1:
        msg = f"page must be >= 1, got {page}"
        raise ValueError(msg)
    if not 1 <= limit <= MAX_PAGE_LIMIT:
        msg = f"limit must be between 1 and {MAX_PAGE_LIMIT}, got {limit}"
        raise ValueError(msg)

    total = len(bugs)
    start = (page - 1) * limit
    return BugPage(
        items=bugs[start : start + limit],
        pagination=Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
    )


def query_bugs(
    bugs: Iterable[Bug],
    filters: BugFilters | None = None,
    *,
    page: int = 1,
    limit: int = 50,
    sort_by: SortBy = "date",
) -> BugPage:
    """Filter, then sort, then paginate."""
    matched = filter_bugs(bugs, filters or BugFilters())
    return paginate(sort_bugs(matched, sort_by), page=page, limit=limit)
