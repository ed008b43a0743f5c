"""Bug REST endpoints under ``/api/bugs``."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, Query

from src.api.deps import StoreDep
from src.api.errors import AppError, ValidationFailedError
from src.api.schemas import BugListResponse, BugResponse, MessageResponse, StatsResponse
from src.bugs.models import BugCreate, BugPatch, Severity, Status
from src.bugs.query import MAX_PAGE_LIMIT, BugFilters, query_bugs
from src.bugs.validation import clean_bug_fields, validate_bug_form, validate_bug_update
from src.config import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bugs", tags=["bugs"])

JsonObject = Annotated[dict[str, Any], Body()]


@router.get("", response_model=BugListResponse)
async def list_bugs(
    store: StoreDep,
    status: Status | None = None,
    severity: Severity | None = None,
    assignee: str | None = None,
    search: str | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int | None, Query(ge=1, le=MAX_PAGE_LIMIT)] = None,
) -> BugListResponse:
    """List bugs, newest update first, with optional filters and pagination."""
    filters = BugFilters(
        status=status,
        severity=severity,
        assignee=assignee.strip() if assignee else None,
        search=search.strip() if search else None,
    )
    result = query_bugs(
        store.get_all_bugs(),
        filters,
        page=page,
        limit=limit or get_settings().default_page_limit,
    )
    return BugListResponse(data=result.items, pagination=result.pagination)


@router.get("/stats", response_model=StatsResponse)
async def bug_stats(store: StoreDep) -> StatsResponse:
    return StatsResponse(data=store.get_stats())


@router.get("/{bug_id}", response_model=BugResponse, response_model_exclude_none=True)
async def get_bug(bug_id: str, store: StoreDep) -> BugResponse:
    bug = store.get_bug_by_id(bug_id)
    if bug is None:
        raise AppError(f"Bug with ID {bug_id} not found", 404)
    return BugResponse(data=bug)


@router.post("", response_model=BugResponse, status_code=201)
async def create_bug(payload: JsonObject, store: StoreDep) -> BugResponse:
    """Validate, sanitise and store a new bug."""
    fields = clean_bug_fields(payload)
    errors = validate_bug_form(fields)
    if errors:
        raise ValidationFailedError(errors)

    bug = store.create_bug(
        BugCreate(
            title=fields["title"],
            description=fields["description"],
            severity=fields["severity"],
            assignee=fields["assignee"],
            reporter=fields["reporter"],
            tags=fields.get("tags", []),
        )
    )
    logger.info("Bug created: %s - %s", bug.id, bug.title)
    return BugResponse(data=bug, message="Bug created successfully")


@router.put("/{bug_id}", response_model=BugResponse)
async def update_bug(bug_id: str, payload: JsonObject, store: StoreDep) -> BugResponse:
    """Apply a partial update. Only the fields sent are changed."""
    if store.get_bug_by_id(bug_id) is None:
        raise AppError(f"Bug with ID {bug_id} not found", 404)

    fields = clean_bug_fields(payload)
    errors = validate_bug_update(fields)
    if errors:
        raise ValidationFailedError(errors)

    bug = store.update_bug(bug_id, BugPatch.model_validate(fields))
    if bug is None:
        raise AppError(f"Bug with ID {bug_id} not found", 404)
    logger.info("Bug updated: %s - %s", bug.id, bug.title)
    return BugResponse(data=bug, message="Bug updated successfully")


@router.delete("/{bug_id}", response_model=MessageResponse)
async def delete_bug(bug_id: str, store: StoreDep) -> MessageResponse:
    if not store.delete_bug(bug_id):
        raise AppError(f"Bug with ID {bug_id} not found", 404)
    logger.info("Bug deleted: %s", bug_id)
    return MessageResponse(message="Bug deleted successfully")


@router.delete("", response_model=MessageResponse)
async def clear_bugs(store: StoreDep) -> MessageResponse:
    """Remove every bug. Not available in production (403)."""
    store.clear_all_bugs()
    logger.info("All bugs cleared")
    return MessageResponse(message="All bugs cleared successfully")
