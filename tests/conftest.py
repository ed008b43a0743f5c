"""Shared pytest configuration and fixtures."""

from collections.abc import Callable, Generator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from src.bugs.models import BugCreate
from src.bugs.store import BugStore
from src.config import Settings, get_settings


@pytest.fixture(autouse=True)
def _no_dotenv() -> Generator[None]:
    """Block .env loading so a developer's local .env never leaks into tests.

    Sets Settings.model_config['env_file'] = None before each test.
    """
    get_settings.cache_clear()
    original = Settings.model_config.get("env_file")
    Settings.model_config["env_file"] = None

    try:
        yield
    finally:
        Settings.model_config["env_file"] = original
        get_settings.cache_clear()


@pytest.fixture
def mock_settings(tmp_path: Path) -> Generator[Any]:
    """Provide fake settings pointing the store at a temp file.

    Patches get_settings at every import site so cached references are overridden.
    """
    fake_settings = type(
        "FakeSettings",
        (),
        {
            "environment": "test",
            "is_production": False,
            "log_level": "INFO",
            "bug_db_path": str(tmp_path / "bugs.json"),
            "jwt_secret": "test-secret",
            "jwt_expires_days": 7,
            # Minimum cost keeps auth tests fast
            "bcrypt_rounds": 4,
            "cors_origins": "http://localhost:8501",
            "cors_origin_list": ["http://localhost:8501"],
            "default_page_limit": 50,
            "api_url": "http://bugs.test/api",
        },
    )()
    with (
        patch("src.config.get_settings", return_value=fake_settings),
        patch("src.api.main.get_settings", return_value=fake_settings),
        patch("src.api.bugs.get_settings", return_value=fake_settings),
        patch("src.auth.security.get_settings", return_value=fake_settings),
        patch("src.client.get_settings", return_value=fake_settings),
    ):
        yield fake_settings


class FakeClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 3, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        current = self.now
        self.now += timedelta(seconds=1)
        return current


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(tmp_path: Path, clock: FakeClock) -> BugStore:
    """An empty, initialized store backed by a temp file."""
    s = BugStore(tmp_path / "bugs.json", clock=clock)
    s.initialize()
    s.clear_all_bugs()
    return s


@pytest.fixture
def make_bug() -> Callable[..., BugCreate]:
    """Factory for valid bug fields, with per-test overrides."""

    def _make(**overrides: Any) -> BugCreate:
        fields: dict[str, Any] = {
            "title": "Test Bug",
            "description": "This is a test bug description",
            "severity": "medium",
            "assignee": "John Doe",
            "reporter": "Jane Smith",
            "tags": ["test", "bug"],
        }
        fields.update(overrides)
        return BugCreate(**fields)

    return _make
