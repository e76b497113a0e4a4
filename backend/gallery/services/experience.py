"""
Experience (EXP) mutation with optimistic local update and rollback.

The in-memory mirror is bumped first so readers see the new value right away,
then the delta is sent to the store. On failure exactly the same delta is
subtracted again and the failure goes to the notification channel. Only
relative deltas are ever sent, so concurrent awards from several clients
commute as long as the store applies them atomically.
"""
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Union

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gallery.core.config import settings
from gallery.core.errors import InvalidInput, PermissionDenied, PersistenceError
from gallery.models import Profile
from gallery.schemas.records import UserRecord
from gallery.services.notifications import NotificationChannel

logger = logging.getLogger(__name__)

ACTION_COMMENT = "comment"
ACTION_LIKE = "like"
ACTION_POST = "post"
ACTION_PROFILE_EDIT = "profile_edit"
ACTION_IDLE_TICK = "idle_tick"


def exp_awards() -> Dict[str, int]:
    return {
        ACTION_COMMENT: settings.EXP_AWARD_COMMENT,
        ACTION_LIKE: settings.EXP_AWARD_LIKE,
        ACTION_POST: settings.EXP_AWARD_POST,
        ACTION_PROFILE_EDIT: settings.EXP_AWARD_PROFILE_EDIT,
        ACTION_IDLE_TICK: settings.EXP_AWARD_IDLE_TICK,
    }


class OptimisticDelta:
    """
    Apply a delta locally, push it remotely, and invert exactly that delta if
    the remote call fails.

    Each instance tracks only its own contribution, so overlapping deltas on
    the same counter never undo each other.
    """

    def __init__(self, amount: int, local: Callable[[int], Any], remote: Callable[[int], Any]):
        self.amount = amount
        self._local = local
        self._remote = remote
        self.applied = False
        self.rolled_back = False
        self.error: Optional[Exception] = None

    def run(self) -> bool:
        self._local(self.amount)
        self.applied = True
        try:
            self._remote(self.amount)
        except Exception as e:
            self._local(-self.amount)
            self.rolled_back = True
            self.error = e
            return False
        return True


class ExpMirror:
    """
    Thread-safe in-memory copy of users' EXP.

    Only users that were seeded with `set` are tracked; adjustments for
    unknown users are ignored so a rollback can never invent a value.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._exp: Dict[str, int] = {}

    def get(self, user_id: str) -> Optional[int]:
        with self._lock:
            return self._exp.get(user_id)

    def set(self, user_id: str, exp: int) -> None:
        with self._lock:
            self._exp[user_id] = int(exp or 0)

    def adjust(self, user_id: str, delta: int) -> Optional[int]:
        with self._lock:
            if user_id not in self._exp:
                return None
            self._exp[user_id] += delta
            return self._exp[user_id]

    def current(self, user: UserRecord) -> UserRecord:
        """The user with exp taken from the mirror when it tracks them."""
        exp = self.get(user.id)
        if exp is None or exp == user.exp:
            return user
        return user.model_copy(update={"exp": exp})


class IdleTickGate:
    """
    Accepts at most one idle tick per user per interval.

    A tick is recorded only when accepted, so a burst of early ticks does not
    push the next accepted one further out.
    """

    def __init__(self, interval_seconds: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.interval = settings.EXP_IDLE_TICK_INTERVAL_SECONDS if interval_seconds is None else interval_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._last: Dict[str, float] = {}

    def allow(self, user_id: str) -> bool:
        now = self._clock()
        with self._lock:
            last = self._last.get(user_id)
            if last is not None and now - last < self.interval:
                return False
            self._last[user_id] = now
            return True


class SqlExpDeltaSink:
    """
    Applies EXP deltas with a single `exp = exp + :amount` UPDATE.

    Uses the given session, or opens one per call from session_factory (needed
    for background tasks that outlive the request session).
    """

    def __init__(self, session: Optional[Session] = None, session_factory: Optional[Callable[[], Session]] = None):
        if session is None and session_factory is None:
            raise ValueError("SqlExpDeltaSink needs a session or a session_factory")
        self._session = session
        self._session_factory = session_factory

    def apply_delta(self, user_id: str, amount: int) -> None:
        db = self._session if self._session is not None else self._session_factory()
        try:
            result = db.execute(
                update(Profile)
                .where(Profile.id == user_id)
                .values(exp=Profile.exp + amount)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                db.rollback()
                raise PersistenceError(f"Profile {user_id} not found")
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"Failed to apply EXP delta for {user_id}") from e
        finally:
            if self._session is None:
                db.close()


class ExperienceService:
    """addExp and the per-action awards built on it."""

    def __init__(self, mirror: ExpMirror, sink, notifications: Optional[NotificationChannel] = None):
        self.mirror = mirror
        self.sink = sink
        self.notifications = notifications

    def add_exp(self, user: Union[UserRecord, str, None], amount: int) -> bool:
        """
        Add a signed EXP delta for an authenticated user.

        Returns:
            True if the store accepted the delta. False if it failed; the
            mirror is rolled back and the failure is reported to the
            notification channel.

        Raises:
            PermissionDenied: no authenticated user
            InvalidInput: amount is not an integer
        """
        if user is None:
            raise PermissionDenied("You must be signed in to earn EXP.")
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise InvalidInput(f"EXP amount must be an integer, got {amount!r}")
        user_id = user.id if isinstance(user, UserRecord) else str(user)
        if amount == 0:
            return True
        if isinstance(user, UserRecord) and self.mirror.get(user_id) is None:
            self.mirror.set(user_id, user.exp)

        delta = OptimisticDelta(
            amount,
            local=lambda d: self.mirror.adjust(user_id, d),
            remote=lambda d: self.sink.apply_delta(user_id, d),
        )
        if delta.run():
            logger.info(f"Added {amount} EXP to user {user_id}")
            return True

        logger.error(f"Failed to add {amount} EXP to user {user_id}, rolled back: {delta.error}")
        if self.notifications is not None:
            self.notifications.error("Could not update your EXP. Please try again.", user_id=user_id)
        return False

    def award(self, user: Union[UserRecord, str, None], action: str) -> bool:
        awards = exp_awards()
        if action not in awards:
            raise InvalidInput(f"Unknown EXP action: {action}")
        return self.add_exp(user, awards[action])
