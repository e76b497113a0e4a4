"""
Typed records normalized at the store boundary.

Rows arrive as ORM objects or dicts (including legacy camelCase exports) and
may be partially populated. `from_row` never raises on dirty numeric or
collection fields: they normalize to zero/empty. A row missing its identity
returns None so callers can skip it.
"""
import logging
from datetime import datetime
from typing import Any, FrozenSet, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError

logger = logging.getLogger(__name__)

NEUTRAL_COLOR = "#A0A0A0"
ADMIN_COLOR = "#FF4141"

ADMIN_REQUIRED_EXP = -1
DEFAULT_REQUIRED_EXP = 0

ROLE_ADMIN = "admin"
ROLE_USER = "user"


def _field(row: Any, *names: str, default: Any = None) -> Any:
    for name in names:
        if isinstance(row, dict):
            if name in row:
                return row[name]
        elif hasattr(row, name):
            return getattr(row, name)
    return default


def _as_int(value: Any, default: int = 0) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class RankTier(BaseModel):
    name: str
    icon: str = ""
    color: str = NEUTRAL_COLOR
    required_exp: int

    model_config = ConfigDict(frozen=True, from_attributes=True)

    @property
    def is_admin_tier(self) -> bool:
        return self.required_exp == ADMIN_REQUIRED_EXP

    @classmethod
    def from_row(cls, row: Any) -> Optional["RankTier"]:
        required = _field(row, "required_exp", "requiredExp")
        if required is None or isinstance(required, bool):
            logger.warning("Skipping rank tier without a required_exp: %r", row)
            return None
        try:
            required = int(required)
        except (TypeError, ValueError):
            logger.warning("Skipping rank tier with non-integer required_exp: %r", row)
            return None
        try:
            return cls(
                name=str(_field(row, "name", default="") or ""),
                icon=str(_field(row, "icon", default="") or ""),
                color=str(_field(row, "color", default="") or NEUTRAL_COLOR),
                required_exp=required,
            )
        except ValidationError as e:
            logger.warning("Skipping malformed rank tier %r: %s", row, e)
            return None


class UserRecord(BaseModel):
    id: str
    username: str = ""
    role: str = ROLE_USER
    exp: int = 0
    custom_title: Optional[str] = None
    custom_title_color: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @classmethod
    def from_row(cls, row: Any) -> Optional["UserRecord"]:
        user_id = _field(row, "id")
        if user_id is None or str(user_id) == "":
            logger.warning("Skipping profile row without an id")
            return None
        role = _field(row, "role", default=ROLE_USER)
        created_at = _field(row, "created_at")
        return cls(
            id=str(user_id),
            username=str(_field(row, "username", default="") or ""),
            role=ROLE_ADMIN if role == ROLE_ADMIN else ROLE_USER,
            exp=_as_int(_field(row, "exp")),
            custom_title=_as_text(_field(row, "custom_title", "customTitle")),
            custom_title_color=_as_text(_field(row, "custom_title_color", "customTitleColor")),
            avatar_url=_as_text(_field(row, "avatar_url")),
            created_at=created_at if isinstance(created_at, datetime) else None,
        )


class ImageRecord(BaseModel):
    id: Union[int, str]
    user_id: Optional[str] = None
    likes: FrozenSet[str] = frozenset()
    views: int = 0
    comments_count: int = 0

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_row(cls, row: Any) -> Optional["ImageRecord"]:
        image_id = _field(row, "id")
        if image_id is None:
            logger.warning("Skipping image row without an id")
            return None

        likes = _field(row, "likes")
        if isinstance(likes, (list, tuple, set, frozenset)):
            likes = frozenset(str(liker) for liker in likes if liker is not None)
        else:
            likes = frozenset()

        comments_count = _field(row, "comments_count")
        if comments_count is None:
            # Joined shape from the hosted store: comments=[{"count": n}]
            nested = _field(row, "comments")
            if isinstance(nested, list) and nested and isinstance(nested[0], dict):
                comments_count = nested[0].get("count")

        owner = _field(row, "user_id")
        return cls(
            id=image_id if isinstance(image_id, (int, str)) else str(image_id),
            user_id=str(owner) if owner is not None else None,
            likes=likes,
            views=max(0, _as_int(_field(row, "views"))),
            comments_count=max(0, _as_int(comments_count)),
        )
