"""Response envelopes: ``{success, data, message?, pagination?}``."""

from datetime import datetime

from src.bugs.models import Bug, BugStats, CamelModel, UserPublic
from src.bugs.query import Pagination


class MessageResponse(CamelModel):
    success: bool = True
    message: str


class BugResponse(CamelModel):
    success: bool = True
    data: Bug
    message: str | None = None


class BugListResponse(CamelModel):
    success: bool = True
    data: list[Bug]
    pagination: Pagination


class StatsResponse(CamelModel):
    success: bool = True
    data: BugStats


class AuthData(CamelModel):
    user: UserPublic
    token: str


class AuthResponse(CamelModel):
    success: bool = True
    data: AuthData
    message: str


class UserResponse(CamelModel):
    success: bool = True
    data: UserPublic


class ComponentHealth(CamelModel):
    """Health status of a single component."""

    name: str
    status: str
    detail: str | None = None


class HealthResponse(CamelModel):
    """Response body for GET /api/health."""

    status: str
    timestamp: datetime
    uptime: float
    environment: str
    components: list[ComponentHealth]
