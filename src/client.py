"""HTTP client for the bug tracker API, used by the Streamlit UI.

Every method returns an ``ApiResponse`` instead of raising, so the UI can
show ``error`` directly. ISO-8601 date strings from the wire become
``datetime`` objects here.
"""

import logging
from typing import Any, Generic, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from src.bugs.models import Bug, BugStats, Status
from src.bugs.query import Pagination
from src.config import get_settings

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool
    data: T | None = None
    error: str | None = None
    message: str | None = None
    pagination: Pagination | None = None


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"HTTP error! status: {response.status_code}"


class BugService:
    """Thin wrapper over the ``/api/bugs`` endpoints."""

    def __init__(self, base_url: str | None = None, client: httpx.Client | None = None) -> None:
        self.base_url = (base_url or get_settings().api_url).rstrip("/")
        self._client = client or httpx.Client(timeout=DEFAULT_TIMEOUT_SECONDS)

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, *, action: str, **kwargs: Any) -> tuple[dict[str, Any] | None, str | None]:
        """Send a request; return ``(body, None)`` on success or ``(None, error)``."""
        try:
            response = self._client.request(method, f"{self.base_url}{path}", **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Error %s: %s", action, exc)
            return None, str(exc) or f"Failed {action}"

        if response.is_error:
            message = _error_message(response)
            logger.error("Error %s: %s", action, message)
            return None, message

        try:
            body = response.json()
        except ValueError:
            logger.error("Error %s: response is not JSON", action)
            return None, f"Failed {action}"
        return body, None

    def get_all_bugs(
        self,
        *,
        status: str | None = None,
        severity: str | None = None,
        assignee: str | None = None,
        search: str | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> ApiResponse[list[Bug]]:
        params = {
            k: v
            for k, v in {
                "status": status,
                "severity": severity,
                "assignee": assignee,
                "search": search,
                "page": page,
                "limit": limit,
            }.items()
            if v not in (None, "")
        }
        body, error = self._request("GET", "/bugs", action="fetching bugs", params=params)
        if body is None:
            return ApiResponse(success=False, error=error)
        try:
            bugs = [Bug.model_validate(item) for item in body.get("data", [])]
            pagination = Pagination.model_validate(body["pagination"]) if body.get("pagination") else None
        except ValidationError as exc:
            logger.error("Error fetching bugs: malformed response: %s", exc)
            return ApiResponse(success=False, error="Failed to fetch bugs")
        return ApiResponse(success=True, data=bugs, pagination=pagination)

    def get_bugs_by_status(self, status: Status) -> ApiResponse[list[Bug]]:
        return self.get_all_bugs(status=status)

    def get_bug_by_id(self, bug_id: str) -> ApiResponse[Bug]:
        body, error = self._request("GET", f"/bugs/{bug_id}", action="fetching bug")
        return self._bug_response(body, error, "Failed to fetch bug")

    def create_bug(self, form: dict[str, Any]) -> ApiResponse[Bug]:
        body, error = self._request("POST", "/bugs", action="creating bug", json=form)
        return self._bug_response(body, error, "Failed to create bug")

    def update_bug(self, bug_id: str, updates: dict[str, Any]) -> ApiResponse[Bug]:
        body, error = self._request("PUT", f"/bugs/{bug_id}", action="updating bug", json=updates)
        return self._bug_response(body, error, "Failed to update bug")

    def delete_bug(self, bug_id: str) -> ApiResponse[None]:
        body, error = self._request("DELETE", f"/bugs/{bug_id}", action="deleting bug")
        if body is None:
            return ApiResponse(success=False, error=error)
        return ApiResponse(success=True, message=body.get("message"))

    def get_stats(self) -> ApiResponse[BugStats]:
        body, error = self._request("GET", "/bugs/stats", action="fetching stats")
        if body is None:
            return ApiResponse(success=False, error=error)
        try:
            stats = BugStats.model_validate(body.get("data"))
        except ValidationError:
            return ApiResponse(success=False, error="Failed to fetch stats")
        return ApiResponse(success=True, data=stats)

    @staticmethod
    def _bug_response(body: dict[str, Any] | None, error: str | None, fallback: str) -> ApiResponse[Bug]:
        if body is None:
            return ApiResponse(success=False, error=error)
        try:
            bug = Bug.model_validate(body.get("data"))
        except ValidationError:
            return ApiResponse(success=False, error=fallback)
        return ApiResponse(success=True, data=bug, message=body.get("message"))
