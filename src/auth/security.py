"""Password hashing and bearer-token helpers."""

from datetime import UTC, datetime, timedelta

import bcrypt
import jwt

from src.config import get_settings

JWT_ALGORITHM = "HS256"


class InvalidTokenError(Exception):
    """Raised when a bearer token is malformed, expired or signed with another key."""


def hash_password(password: str) -> str:
    rounds = get_settings().bcrypt_rounds
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def create_access_token(user_id: str) -> str:
    """Sign a token carrying the user id, valid for ``jwt_expires_days``."""
    settings = get_settings()
    expires = datetime.now(UTC) + timedelta(days=settings.jwt_expires_days)
    return jwt.encode({"userId": user_id, "exp": expires}, settings.jwt_secret, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> str:
    """Return the user id stored in ``token``.

    Raises:
        InvalidTokenError: If the signature, expiry or payload is invalid.
    """
    try:
        payload = jwt.decode(token, get_settings().jwt_secret, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError as exc:
        raise InvalidTokenError(str(exc)) from exc

    user_id = payload.get("userId")
    if not isinstance(user_id, str) or not user_id:
        msg = "Token has no userId claim"
        raise InvalidTokenError(msg)
    return user_id
