"""JSON-file backed record store for bugs and users.

The store keeps the whole collection in memory and rewrites the backing
file after every mutation. A failed write is logged and counted but never
raised: the in-memory state stays authoritative and later operations keep
working ("in-memory only" degradation).

One ``BugStore`` is built at process start and shared by request handlers.
Handlers run on a single event loop, so each operation runs to completion
before the next one starts; there is no locking and concurrent updates to the
same bug are last-write-wins.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError

from src.bugs.models import Bug, BugCreate, BugPatch, BugStats, StoreDocument, User
from src.bugs.stats import compute_stats
from src.bugs.validation import sanitize_tags
from src.observability.metrics import BUGS_CURRENT, STORE_WRITES_TOTAL

logger = logging.getLogger(__name__)


class ForbiddenOperationError(Exception):
    """Raised when an operation is not allowed in the current environment."""


def utcnow() -> datetime:
    return datetime.now(UTC)


def _sample_bugs() -> list[Bug]:
    return [
        Bug(
            id="1",
            title="Login form validation error",
            description="Users are unable to login when password contains special characters",
            severity="high",
            status="open",
            assignee="John Doe",
            reporter="Jane Smith",
            tags=["authentication", "validation"],
            created_at=datetime(2024, 1, 15, tzinfo=UTC),
            updated_at=datetime(2024, 1, 15, tzinfo=UTC),
        ),
        Bug(
            id="2",
            title="Dashboard loading performance issue",
            description="Dashboard takes more than 5 seconds to load with large datasets",
            severity="medium",
            status="in-progress",
            assignee="Mike Johnson",
            reporter="Sarah Wilson",
            tags=["performance", "dashboard"],
            created_at=datetime(2024, 1, 14, tzinfo=UTC),
            updated_at=datetime(2024, 1, 16, tzinfo=UTC),
        ),
    ]


class BugStore:
    """Owns the bug and user collections, their id counters and the backing file."""

    def __init__(
        self,
        path: str | Path,
        *,
        production: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.path = Path(path)
        self.production = production
        self._clock = clock
        self._doc = StoreDocument()
        self.last_save_error: str | None = None

    # ------------------------------------------------------------------
    # Lifecycle / persistence
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Load the backing file, or seed sample data when it does not exist."""
        if self.path.exists():
            try:
                self._doc = StoreDocument.model_validate_json(self.path.read_text(encoding="utf-8"))
                logger.info("Loaded %d bugs from %s", len(self._doc.bugs), self.path)
            except (OSError, ValidationError):
                # Leave the unreadable file in place for inspection; serve from memory.
                logger.exception("Failed to load store from %s, starting empty", self.path)
                self._doc = StoreDocument()
        else:
            self._doc = StoreDocument(bugs=_sample_bugs(), next_bug_id=3)
            self._save()
            logger.info("Initialized store at %s with sample data", self.path)
        BUGS_CURRENT.set(len(self._doc.bugs))

    def _save(self) -> None:
        """Rewrite the whole document. Errors are logged, never raised."""
        BUGS_CURRENT.set(len(self._doc.bugs))
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(self._doc.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
        except OSError as exc:
            self.last_save_error = str(exc)
            STORE_WRITES_TOTAL.labels(status="error").inc()
            logger.error("Failed to save store to %s: %s", self.path, exc)
            return
        self.last_save_error = None
        STORE_WRITES_TOTAL.labels(status="success").inc()

    # ------------------------------------------------------------------
    # Bugs
    # ------------------------------------------------------------------

    def get_all_bugs(self) -> list[Bug]:
        """All bugs in insertion order. Callers sort as needed."""
        return [b.model_copy(deep=True) for b in self._doc.bugs]

    def get_bug_by_id(self, bug_id: str) -> Bug | None:
        index = self._index_of(bug_id)
        if index is None:
            return None
        return self._doc.bugs[index].model_copy(deep=True)

    def create_bug(self, fields: BugCreate) -> Bug:
        """Assign the next id, status ``open`` and equal timestamps, then persist."""
        now = self._clock()
        bug = Bug(
            id=str(self._doc.next_bug_id),
            title=fields.title,
            description=fields.description,
            severity=fields.severity,
            status="open",
            assignee=fields.assignee,
            reporter=fields.reporter,
            tags=sanitize_tags(fields.tags),
            created_at=now,
            updated_at=now,
        )
        self._doc.bugs.append(bug)
        self._doc.next_bug_id += 1
        self._save()
        return bug.model_copy(deep=True)

    def update_bug(self, bug_id: str, patch: BugPatch) -> Bug | None:
        """Apply every field set on ``patch`` and refresh ``updated_at``. ``None`` if unknown."""
        index = self._index_of(bug_id)
        if index is None:
            return None

        current = self._doc.bugs[index]
        changes = patch.model_dump(exclude_unset=True)
        if changes.get("tags") is not None:
            changes["tags"] = sanitize_tags(changes["tags"])
        # Never move updated_at before created_at, even if the clock steps back.
        changes["updated_at"] = max(self._clock(), current.created_at)

        updated = Bug.model_validate({**current.model_dump(), **changes})
        self._doc.bugs[index] = updated
        self._save()
        return updated.model_copy(deep=True)

    def delete_bug(self, bug_id: str) -> bool:
        index = self._index_of(bug_id)
        if index is None:
            return False
        del self._doc.bugs[index]
        self._save()
        return True

    def clear_all_bugs(self) -> None:
        """Remove every bug and reset the id counter. Refused in production."""
        if self.production:
            msg = "This operation is not allowed in production"
            raise ForbiddenOperationError(msg)
        self._doc.bugs = []
        self._doc.next_bug_id = 1
        self._save()

    def get_stats(self) -> BugStats:
        return compute_stats(self._doc.bugs)

    def _index_of(self, bug_id: str) -> int | None:
        for i, bug in enumerate(self._doc.bugs):
            if bug.id == bug_id:
                return i
        return None

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def create_user(self, *, name: str, email: str, password_hash: str, role: str = "user") -> User:
        user = User(
            id=str(self._doc.next_user_id),
            name=name,
            email=email,
            password=password_hash,
            role=role,
            created_at=self._clock(),
        )
        self._doc.users.append(user)
        self._doc.next_user_id += 1
        self._save()
        return user.model_copy()

    def get_user_by_email(self, email: str) -> User | None:
        for user in self._doc.users:
            if user.email == email:
                return user.model_copy()
        return None

    def get_user_by_id(self, user_id: str) -> User | None:
        for user in self._doc.users:
            if user.id == user_id:
                return user.model_copy()
        return None
