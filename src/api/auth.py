"""User registration, login and current-user endpoints under ``/api/auth``."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body

from src.api.deps import CurrentUser, StoreDep
from src.api.errors import AppError, ValidationFailedError
from src.api.schemas import AuthData, AuthResponse, UserResponse
from src.auth.security import create_access_token, hash_password, verify_password
from src.bugs.validation import validate_login, validate_registration

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

JsonObject = Annotated[dict[str, Any], Body()]


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(payload: JsonObject, store: StoreDep) -> AuthResponse:
    errors = validate_registration(payload)
    if errors:
        raise ValidationFailedError(errors)

    email = payload["email"].strip().lower()
    if store.get_user_by_email(email) is not None:
        raise AppError("User with this email already exists", 400)

    user = store.create_user(
        name=payload["name"].strip(),
        email=email,
        password_hash=hash_password(payload["password"]),
    )
    logger.info("User registered: %s", user.email)
    return AuthResponse(
        data=AuthData(user=user.public(), token=create_access_token(user.id)),
        message="User registered successfully",
    )


@router.post("/login", response_model=AuthResponse)
async def login(payload: JsonObject, store: StoreDep) -> AuthResponse:
    errors = validate_login(payload)
    if errors:
        raise ValidationFailedError(errors)

    user = store.get_user_by_email(payload["email"].strip().lower())
    if user is None or not verify_password(payload["password"], user.password):
        raise AppError("Invalid email or password", 401)

    logger.info("User logged in: %s", user.email)
    return AuthResponse(
        data=AuthData(user=user.public(), token=create_access_token(user.id)),
        message="Login successful",
    )


@router.get("/me", response_model=UserResponse)
async def me(user: CurrentUser) -> UserResponse:
    return UserResponse(data=user.public())
