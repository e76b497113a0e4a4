"""
Profile store: reads for ranking/leaderboards and permission-checked updates.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from gallery.core.errors import InvalidInput, NotFound, PermissionDenied, PersistenceError
from gallery.models import Profile
from gallery.schemas.records import ROLE_ADMIN, ROLE_USER, UserRecord

logger = logging.getLogger(__name__)

SELF_EDITABLE_FIELDS = {"username", "avatar_url"}
ADMIN_EDITABLE_FIELDS = {"username", "role", "custom_title", "custom_title_color", "avatar_url"}
CLEARABLE_FIELDS = {"custom_title", "custom_title_color", "avatar_url"}


class ProfileStore:

    def __init__(self, db: Session):
        self.db = db

    def _get_row(self, user_id: str) -> Profile:
        row = self.db.query(Profile).filter(Profile.id == user_id).first()
        if row is None:
            raise NotFound(f"Profile {user_id} not found")
        return row

    def get(self, user_id: str) -> Optional[UserRecord]:
        row = self.db.query(Profile).filter(Profile.id == user_id).first()
        return UserRecord.from_row(row) if row is not None else None

    def list_all(self) -> List[UserRecord]:
        rows = self.db.query(Profile).order_by(Profile.created_at, Profile.id).all()
        return [r for r in (UserRecord.from_row(row) for row in rows) if r is not None]

    @staticmethod
    def changed_fields(user: UserRecord, fields: Dict[str, Any]) -> Dict[str, Any]:
        """The subset of fields whose value differs from what the user already has."""
        changed = {}
        for key, value in fields.items():
            stored = getattr(user, key, None)
            if key in CLEARABLE_FIELDS and value == "":
                value = None
            if value != stored:
                changed[key] = fields[key]
        return changed

    def update(self, user_id: str, fields: Dict[str, Any]) -> UserRecord:
        """Write partial fields with no permission check. Empty strings clear optional fields."""
        row = self._get_row(user_id)
        for key, value in fields.items():
            if key in CLEARABLE_FIELDS and value == "":
                value = None
            setattr(row, key, value)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise InvalidInput("This username is already taken.") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to update profile {user_id}: {e}", exc_info=True)
            raise PersistenceError("Could not save the profile.") from e
        self.db.refresh(row)
        return UserRecord.from_row(row)

    def update_profile(self, actor: Optional[UserRecord], user_id: str, fields: Dict[str, Any]) -> UserRecord:
        """A user editing their own username/avatar."""
        if actor is None or actor.id != user_id:
            raise PermissionDenied("You are not allowed to edit this user's profile.")
        disallowed = set(fields) - SELF_EDITABLE_FIELDS
        if disallowed:
            raise PermissionDenied(f"You cannot change: {', '.join(sorted(disallowed))}")
        if "username" in fields and not (fields["username"] or "").strip():
            raise InvalidInput("Username must not be empty.")
        return self.update(user_id, fields)

    def update_by_admin(self, actor: Optional[UserRecord], user_id: str, fields: Dict[str, Any]) -> UserRecord:
        """Admin edits, including role and custom title/color."""
        if actor is None or not actor.is_admin:
            raise PermissionDenied("Only administrators can perform this action.")
        unknown = set(fields) - ADMIN_EDITABLE_FIELDS
        if unknown:
            raise InvalidInput(f"Unknown profile fields: {', '.join(sorted(unknown))}")
        if "role" in fields and fields["role"] not in (ROLE_ADMIN, ROLE_USER):
            raise InvalidInput(f"Invalid role: {fields['role']}")
        if "username" in fields and not (fields["username"] or "").strip():
            raise InvalidInput("Username must not be empty.")
        logger.info(f"Admin {actor.id} updating profile {user_id}: {sorted(fields)}")
        return self.update(user_id, fields)
