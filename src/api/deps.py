"""FastAPI dependencies: the shared store and the authenticated user."""

from collections.abc import Callable, Coroutine
from typing import Annotated, Any

from fastapi import Depends, Header, Request

from src.api.errors import AppError
from src.auth.security import InvalidTokenError, decode_access_token
from src.bugs.models import User
from src.bugs.store import BugStore


def get_store(request: Request) -> BugStore:
    """The store built by the application lifespan."""
    return request.app.state.store


StoreDep = Annotated[BugStore, Depends(get_store)]


async def get_current_user(store: StoreDep, authorization: Annotated[str | None, Header()] = None) -> User:
    """Resolve ``Authorization: Bearer <token>`` to a stored user, or fail with 401."""
    token = None
    if authorization and authorization.startswith("Bearer"):
        parts = authorization.split(" ", 1)
        token = parts[1].strip() if len(parts) == 2 else None
    if not token:
        raise AppError("You are not logged in! Please log in to get access.", 401)

    try:
        user_id = decode_access_token(token)
    except InvalidTokenError as exc:
        raise AppError("Invalid or expired token. Please log in again.", 401) from exc

    user = store.get_user_by_id(user_id)
    if user is None:
        raise AppError("The user belonging to this token does no longer exist.", 401)
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def restrict_to(*roles: str) -> Callable[[User], Coroutine[Any, Any, User]]:
    """Dependency factory allowing only users whose role is in ``roles``.

    Usage::

        @router.delete("/x", dependencies=[Depends(restrict_to("admin"))])
    """

    async def check_role(user: CurrentUser) -> User:
        if user.role not in roles:
            raise AppError("You do not have permission to perform this action", 403)
        return user

    return check_role
