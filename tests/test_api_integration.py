"""Integration tests for the FastAPI backend.

Uses TestClient against a store backed by a temp file. No real services needed.
"""

import json
from collections.abc import Generator
from typing import Any
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def client(mock_settings: Any) -> Generator[TestClient]:  # noqa: ARG001 - mock_settings activates patches
    """TestClient with a freshly seeded store (two sample bugs)."""
    from src.api.main import app

    with TestClient(app) as tc:
        yield tc


@pytest.fixture
def empty_client(client: TestClient) -> TestClient:
    """TestClient whose store has been cleared."""
    assert client.delete("/api/bugs").status_code == 200
    return client


def _bug_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "title": "Test Bug Title",
        "description": "This is a test bug description",
        "severity": "medium",
        "assignee": "John Doe",
        "reporter": "Jane Smith",
        "tags": ["test", "bug"],
    }
    payload.update(overrides)
    return payload


# ---------------------------------------------------------------------------
# GET /api/bugs
# ---------------------------------------------------------------------------


class TestListBugs:
    """Tests for GET /api/bugs."""

    @pytest.mark.integration
    def test_sample_data_newest_update_first(self, client: TestClient) -> None:
        resp = client.get("/api/bugs")

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        # Bug 2 was updated on 2024-01-16, bug 1 on 2024-01-15
        assert [b["id"] for b in body["data"]] == ["2", "1"]
        assert body["pagination"] == {"page": 1, "limit": 50, "total": 2, "pages": 1}

    @pytest.mark.integration
    def test_wire_format_is_camel_case(self, client: TestClient) -> None:
        bug = client.get("/api/bugs").json()["data"][0]
        assert {"createdAt", "updatedAt"} <= bug.keys()
        assert "created_at" not in bug

    @pytest.mark.integration
    def test_status_filter(self, empty_client: TestClient) -> None:
        first = empty_client.post("/api/bugs", json=_bug_payload()).json()["data"]
        empty_client.post("/api/bugs", json=_bug_payload())
        empty_client.put(f"/api/bugs/{first['id']}", json={"status": "resolved"})

        body = empty_client.get("/api/bugs", params={"status": "resolved"}).json()
        assert [b["id"] for b in body["data"]] == [first["id"]]
        assert all(b["status"] == "resolved" for b in body["data"])

    @pytest.mark.integration
    def test_search_filter(self, empty_client: TestClient) -> None:
        empty_client.post("/api/bugs", json=_bug_payload(title="Login Issue"))
        empty_client.post("/api/bugs", json=_bug_payload(title="Dashboard Problem"))

        body = empty_client.get("/api/bugs", params={"search": "login"}).json()
        assert [b["title"] for b in body["data"]] == ["Login Issue"]

    @pytest.mark.integration
    def test_pagination(self, client: TestClient) -> None:
        body = client.get("/api/bugs", params={"page": 2, "limit": 1}).json()

        assert [b["id"] for b in body["data"]] == ["1"]
        assert body["pagination"] == {"page": 2, "limit": 1, "total": 2, "pages": 2}

    @pytest.mark.integration
    def test_empty_store(self, empty_client: TestClient) -> None:
        body = empty_client.get("/api/bugs").json()
        assert body["data"] == []
        assert body["pagination"]["total"] == 0
        assert body["pagination"]["pages"] == 0

    @pytest.mark.integration
    @pytest.mark.parametrize(
        ("params", "field"),
        [({"limit": 0}, "limit"), ({"limit": 101}, "limit"), ({"page": 0}, "page"), ({"status": "done"}, "status")],
    )
    def test_invalid_query_returns_400(self, client: TestClient, params: dict[str, Any], field: str) -> None:
        resp = client.get("/api/bugs", params=params)

        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "Validation failed"
        assert body["details"][0]["field"] == field


# ---------------------------------------------------------------------------
# GET /api/bugs/{id}
# ---------------------------------------------------------------------------


class TestGetBug:
    """Tests for GET /api/bugs/{id}."""

    @pytest.mark.integration
    def test_found(self, client: TestClient) -> None:
        resp = client.get("/api/bugs/1")
        assert resp.status_code == 200
        assert resp.json()["data"]["title"] == "Login form validation error"

    @pytest.mark.integration
    def test_not_found(self, client: TestClient) -> None:
        resp = client.get("/api/bugs/999")
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "error": "Bug with ID 999 not found"}


# ---------------------------------------------------------------------------
# POST /api/bugs
# ---------------------------------------------------------------------------


class TestCreateBug:
    """Tests for POST /api/bugs."""

    @pytest.mark.integration
    def test_created(self, client: TestClient) -> None:
        resp = client.post("/api/bugs", json=_bug_payload())

        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        assert body["message"] == "Bug created successfully"
        assert body["data"]["id"] == "3"
        assert body["data"]["status"] == "open"
        assert body["data"]["createdAt"] == body["data"]["updatedAt"]

    @pytest.mark.integration
    def test_new_bug_listed_first(self, client: TestClient) -> None:
        created = client.post("/api/bugs", json=_bug_payload()).json()["data"]
        assert client.get("/api/bugs").json()["data"][0]["id"] == created["id"]

    @pytest.mark.integration
    def test_input_is_sanitised(self, client: TestClient) -> None:
        resp = client.post(
            "/api/bugs",
            json=_bug_payload(title="  <b>Broken</b> login  ", tags=[" ui ", "", "a", "b", "c", "d", "e"]),
        )

        data = resp.json()["data"]
        assert data["title"] == "bBroken/b login"
        assert data["tags"] == ["ui", "a", "b", "c", "d"]

    @pytest.mark.integration
    def test_client_supplied_status_and_id_ignored(self, client: TestClient) -> None:
        data = client.post("/api/bugs", json=_bug_payload(status="closed", id="77")).json()["data"]
        assert data["status"] == "open"
        assert data["id"] == "3"

    @pytest.mark.integration
    def test_validation_errors(self, client: TestClient) -> None:
        resp = client.post(
            "/api/bugs",
            json={"title": "Hi", "description": "Short", "severity": "invalid"},
        )

        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "Validation failed"
        fields = {d["field"]: d["message"] for d in body["details"]}
        assert fields["title"] == "Title must be at least 5 characters long"
        assert fields["severity"] == "Severity must be low, medium, high, or critical"
        assert {"description", "assignee", "reporter"} <= fields.keys()
        assert len(client.get("/api/bugs").json()["data"]) == 2

    @pytest.mark.integration
    def test_body_must_be_object(self, client: TestClient) -> None:
        resp = client.post("/api/bugs", json=["not", "an", "object"])
        assert resp.status_code == 400
        assert resp.json()["error"] == "Validation failed"

    @pytest.mark.integration
    def test_persisted_to_file(self, client: TestClient, mock_settings: Any) -> None:
        created = client.post("/api/bugs", json=_bug_payload()).json()["data"]

        with open(mock_settings.bug_db_path, encoding="utf-8") as f:
            doc = json.load(f)
        assert created["id"] in [b["id"] for b in doc["bugs"]]
        assert doc["nextBugId"] == 4


# ---------------------------------------------------------------------------
# PUT /api/bugs/{id}
# ---------------------------------------------------------------------------


class TestUpdateBug:
    """Tests for PUT /api/bugs/{id}."""

    @pytest.mark.integration
    def test_partial_update(self, client: TestClient) -> None:
        before = client.get("/api/bugs/1").json()["data"]
        resp = client.put("/api/bugs/1", json={"status": "resolved"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Bug updated successfully"
        assert body["data"]["status"] == "resolved"
        assert body["data"]["title"] == before["title"]
        assert body["data"]["createdAt"] == before["createdAt"]
        assert body["data"]["updatedAt"] > before["updatedAt"]

    @pytest.mark.integration
    def test_not_found(self, client: TestClient) -> None:
        resp = client.put("/api/bugs/999", json={"status": "resolved"})
        assert resp.status_code == 404
        assert resp.json()["error"] == "Bug with ID 999 not found"

    @pytest.mark.integration
    def test_invalid_field_values(self, client: TestClient) -> None:
        resp = client.put("/api/bugs/1", json={"status": "done", "title": "Hey"})

        assert resp.status_code == 400
        fields = {d["field"] for d in resp.json()["details"]}
        assert fields == {"status", "title"}
        assert client.get("/api/bugs/1").json()["data"]["status"] == "open"

    @pytest.mark.integration
    def test_unknown_field_rejected(self, client: TestClient) -> None:
        resp = client.put("/api/bugs/1", json={"createdAt": "2020-01-01T00:00:00Z"})

        assert resp.status_code == 400
        assert resp.json()["details"] == [{"field": "createdAt", "message": "Unknown field"}]


# ---------------------------------------------------------------------------
# DELETE
# ---------------------------------------------------------------------------


class TestDelete:
    """Tests for DELETE /api/bugs/{id} and DELETE /api/bugs."""

    @pytest.mark.integration
    def test_delete_one(self, client: TestClient) -> None:
        resp = client.delete("/api/bugs/1")

        assert resp.status_code == 200
        assert resp.json() == {"success": True, "message": "Bug deleted successfully"}
        assert client.get("/api/bugs/1").status_code == 404

    @pytest.mark.integration
    def test_delete_unknown(self, client: TestClient) -> None:
        resp = client.delete("/api/bugs/999")
        assert resp.status_code == 404
        assert resp.json()["success"] is False

    @pytest.mark.integration
    def test_clear_all_resets_ids(self, client: TestClient) -> None:
        resp = client.delete("/api/bugs")

        assert resp.status_code == 200
        assert resp.json()["message"] == "All bugs cleared successfully"
        assert client.get("/api/bugs").json()["data"] == []
        assert client.post("/api/bugs", json=_bug_payload()).json()["data"]["id"] == "1"

    @pytest.mark.integration
    def test_clear_all_forbidden_in_production(self, mock_settings: Any) -> None:
        mock_settings.is_production = True
        mock_settings.environment = "production"
        from src.api.main import app

        with TestClient(app) as tc:
            resp = tc.delete("/api/bugs")
            assert resp.status_code == 403
            assert resp.json()["success"] is False
            assert len(tc.get("/api/bugs").json()["data"]) == 2


# ---------------------------------------------------------------------------
# Stats, health, metrics and error envelope
# ---------------------------------------------------------------------------


class TestStats:
    @pytest.mark.integration
    def test_stats(self, empty_client: TestClient) -> None:
        empty_client.post("/api/bugs", json=_bug_payload(severity="high"))
        low = empty_client.post("/api/bugs", json=_bug_payload(severity="low")).json()["data"]
        critical = empty_client.post("/api/bugs", json=_bug_payload(severity="critical")).json()["data"]
        empty_client.put(f"/api/bugs/{low['id']}", json={"status": "resolved"})
        empty_client.put(f"/api/bugs/{critical['id']}", json={"status": "in-progress"})

        resp = empty_client.get("/api/bugs/stats")

        assert resp.status_code == 200
        assert resp.json()["data"] == {
            "total": 3,
            "open": 1,
            "inProgress": 1,
            "resolved": 1,
            "closed": 0,
            "severityStats": {"low": 1, "medium": 0, "high": 1, "critical": 1},
        }


class TestHealth:
    @pytest.mark.integration
    def test_healthy(self, client: TestClient) -> None:
        resp = client.get("/api/health")

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "OK"
        assert body["environment"] == "test"
        assert body["uptime"] >= 0
        assert "timestamp" in body
        assert body["components"] == [{"name": "store", "status": "healthy"}]

    @pytest.mark.integration
    def test_degraded_after_write_failure(self, client: TestClient, tmp_path: Any) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        client.app.state.store.path = blocker / "bugs.json"  # type: ignore[attr-defined]

        # The write fails but the request still succeeds from memory
        assert client.post("/api/bugs", json=_bug_payload()).status_code == 201

        body = client.get("/api/health").json()
        assert body["status"] == "degraded"
        assert body["components"][0]["status"] == "unhealthy"


class TestMetricsEndpoint:
    @pytest.mark.integration
    def test_exposes_request_metrics(self, client: TestClient) -> None:
        client.get("/api/bugs")
        resp = client.get("/metrics")

        assert resp.status_code == 200
        assert "bug_tracker_requests_total" in resp.text
        assert 'endpoint="/api/bugs"' in resp.text
        assert "bug_tracker_bugs" in resp.text


class TestErrorEnvelope:
    @pytest.mark.integration
    def test_unknown_route(self, client: TestClient) -> None:
        resp = client.get("/api/nope")
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "error": "Not found - /api/nope"}

    @pytest.mark.integration
    def test_unexpected_error_returns_500(self, mock_settings: Any) -> None:  # noqa: ARG002
        from src.api.main import app

        with TestClient(app, raise_server_exceptions=False) as tc:
            with patch.object(tc.app.state.store, "get_stats", side_effect=RuntimeError("disk on fire")):  # type: ignore[attr-defined]
                resp = tc.get("/api/bugs/stats")

        assert resp.status_code == 500
        assert resp.json() == {"success": False, "error": "Internal server error"}
