"""Field-level validation and sanitisation for bug and user input.

Validators never raise. They return an error map of ``field -> message``;
an empty map means the input is valid. Every rule is evaluated so the caller
can show all problems at once.

Sanitisation only trims whitespace and strips ``<`` / ``>``. It is a minimal
mitigation against markup injection, not a security boundary.
"""

import re
from collections.abc import Mapping
from typing import Any

from src.bugs.models import MAX_TAGS, SEVERITIES, STATUSES, BugPatch

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_ANGLE_BRACKETS_RE = re.compile(r"[<>]")

TEXT_FIELDS = ("title", "description", "assignee", "reporter")
PATCH_FIELDS = frozenset(BugPatch.model_fields)


def sanitize_input(value: str) -> str:
    """Trim whitespace and remove angle brackets."""
    return _ANGLE_BRACKETS_RE.sub("", value.strip())


def sanitize_tags(tags: list[Any]) -> list[str]:
    """Drop non-string and blank tags, sanitise the rest, keep the first five."""
    kept = [t for t in tags if isinstance(t, str) and t.strip()]
    return [sanitize_input(t) for t in kept][:MAX_TAGS]


def clean_bug_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of ``fields`` with free-text fields and tags sanitised.

    Values of the wrong type are passed through untouched so validation can
    report them.
    """
    cleaned = dict(fields)
    for key in TEXT_FIELDS:
        if isinstance(cleaned.get(key), str):
            cleaned[key] = sanitize_input(cleaned[key])
    if isinstance(cleaned.get("tags"), list):
        cleaned["tags"] = sanitize_tags(cleaned["tags"])
    return cleaned


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email))


# ---------------------------------------------------------------------------
# Per-field rules
# ---------------------------------------------------------------------------


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _check_length(label: str, value: Any, min_len: int, max_len: int | None = None, *, name: bool = False) -> str | None:
    text = _text(value)
    if not text:
        return f"{label} is required"
    subject = f"{label} name" if name else label
    if len(text) < min_len:
        return f"{subject} must be at least {min_len} characters long"
    if max_len is not None and len(text) > max_len:
        return f"{subject} must be less than {max_len} characters"
    return None


def _check_choice(label: str, value: Any, choices: tuple[str, ...]) -> str | None:
    if value is None or value == "":
        return f"{label} is required"
    if value not in choices:
        *head, last = choices
        return f"{label} must be {', '.join(head)}, or {last}"
    return None


_RULES = {
    "title": lambda v: _check_length("Title", v, 5, 100),
    "description": lambda v: _check_length("Description", v, 10, 1000),
    "severity": lambda v: _check_choice("Severity", v, SEVERITIES),
    "status": lambda v: _check_choice("Status", v, STATUSES),
    "assignee": lambda v: _check_length("Assignee", v, 2, name=True),
    "reporter": lambda v: _check_length("Reporter", v, 2, name=True),
    "tags": lambda v: None if isinstance(v, list) else "Tags must be a list",
}

_REQUIRED_ON_CREATE = ("title", "description", "severity", "assignee", "reporter")


def validate_bug_form(fields: Mapping[str, Any]) -> dict[str, str]:
    """Validate a complete candidate bug.

    Title 5-100, description 10-1000, severity in the enum, assignee and
    reporter at least 2 characters. Lengths are measured after trimming.
    ``tags`` is optional but must be a list when present.
    """
    errors: dict[str, str] = {}
    for field in _REQUIRED_ON_CREATE:
        message = _RULES[field](fields.get(field))
        if message:
            errors[field] = message
    if "tags" in fields:
        message = _RULES["tags"](fields["tags"])
        if message:
            errors["tags"] = message
    return errors


def validate_bug_update(fields: Mapping[str, Any]) -> dict[str, str]:
    """Validate a partial update: only keys present are checked, unknown keys are errors."""
    errors: dict[str, str] = {}
    for field, value in fields.items():
        if field not in PATCH_FIELDS:
            errors[field] = "Unknown field"
            continue
        message = _RULES[field](value)
        if message:
            errors[field] = message
    return errors


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def validate_registration(fields: Mapping[str, Any]) -> dict[str, str]:
    errors: dict[str, str] = {}
    name = _text(fields.get("name"))
    if not 2 <= len(name) <= 50:
        errors["name"] = "Name must be between 2 and 50 characters"
    email = fields.get("email")
    if not isinstance(email, str) or not is_valid_email(email.strip()):
        errors["email"] = "Please provide a valid email"
    password = fields.get("password")
    if not isinstance(password, str) or len(password) < 6:
        errors["password"] = "Password must be at least 6 characters long"
    elif len(password.encode("utf-8")) > 72:
        # bcrypt only hashes the first 72 bytes
        errors["password"] = "Password must be at most 72 bytes long"
    return errors


def validate_login(fields: Mapping[str, Any]) -> dict[str, str]:
    errors: dict[str, str] = {}
    email = fields.get("email")
    if not isinstance(email, str) or not is_valid_email(email.strip()):
        errors["email"] = "Please provide a valid email"
    password = fields.get("password")
    if not isinstance(password, str) or not password:
        errors["password"] = "Password is required"
    return errors
