"""Pydantic models for bug and user records.

Field names are snake_case in Python and camelCase on the wire and in the
backing JSON file (``createdAt``, ``nextBugId``...), so every model derives
from ``CamelModel``.
"""

from datetime import datetime
from typing import Literal, get_args

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Severity = Literal["low", "medium", "high", "critical"]
Status = Literal["open", "in-progress", "resolved", "closed"]

SEVERITIES: tuple[str, ...] = get_args(Severity)
STATUSES: tuple[str, ...] = get_args(Status)

# Higher rank sorts first
SEVERITY_RANK: dict[str, int] = {"critical": 4, "high": 3, "medium": 2, "low": 1}
STATUS_RANK: dict[str, int] = {"open": 4, "in-progress": 3, "resolved": 2, "closed": 1}

MAX_TAGS = 5


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Bugs
# ---------------------------------------------------------------------------


class BugCreate(CamelModel):
    """Candidate fields for a new bug. Id, status and timestamps are assigned by the store."""

    title: str
    description: str
    severity: Severity
    assignee: str
    reporter: str
    tags: list[str] = Field(default_factory=list)


class BugPatch(CamelModel):
    """Partial update. Only fields explicitly set are applied; unknown keys are rejected."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    title: str | None = None
    description: str | None = None
    severity: Severity | None = None
    status: Status | None = None
    assignee: str | None = None
    reporter: str | None = None
    tags: list[str] | None = None


class Bug(CamelModel):
    id: str
    title: str
    description: str
    severity: Severity
    status: Status = "open"
    assignee: str
    reporter: str
    tags: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserPublic(CamelModel):
    id: str
    name: str
    email: str
    role: str = "user"
    created_at: datetime


class User(UserPublic):
    password: str  # bcrypt hash, never the plain text

    def public(self) -> UserPublic:
        return UserPublic.model_validate(self.model_dump(exclude={"password"}))


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------


class SeverityStats(CamelModel):
    low: int = 0
    medium: int = 0
    high: int = 0
    critical: int = 0


class BugStats(CamelModel):
    total: int = 0
    open: int = 0
    in_progress: int = 0
    resolved: int = 0
    closed: int = 0
    severity_stats: SeverityStats = Field(default_factory=SeverityStats)


# ---------------------------------------------------------------------------
# Backing file
# ---------------------------------------------------------------------------


class StoreDocument(CamelModel):
    """Whole-file snapshot: ``{bugs, users, nextBugId, nextUserId}``."""

    bugs: list[Bug] = Field(default_factory=list)
    users: list[User] = Field(default_factory=list)
    next_bug_id: int = 1
    next_user_id: int = 1
