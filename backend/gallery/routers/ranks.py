"""
Rank ladder endpoints: public read, admin replace
"""
import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..dependencies.auth import get_current_user
from ..dependencies.services import get_notifications, get_tier_registry
from ..schemas.api import RankTiersReplaceRequest
from ..schemas.records import RankTier, UserRecord
from ..services.notifications import LEVEL_SUCCESS, NotificationChannel
from ..services.rank_tiers import RankTierRegistry, RankTierStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/ranks", tags=["ranks"])


@router.get("", response_model=List[RankTier])
def list_ranks(registry: RankTierRegistry = Depends(get_tier_registry)):
    """Current rank ladder, lowest threshold first (administrator tier is -1)."""
    return sorted(registry.snapshot(), key=lambda t: t.required_exp)


@router.put(
    "",
    response_model=List[RankTier],
    summary="Replace the rank ladder",
    description="""
    Replace every rank tier in one write. Administrators only.

    Rejected with 400 when a name is empty, a required EXP value is repeated,
    or the default (0) or administrator (-1) tier is missing.
    """
)
def replace_ranks(
    request: RankTiersReplaceRequest,
    user: UserRecord = Depends(get_current_user),
    registry: RankTierRegistry = Depends(get_tier_registry),
    db: Session = Depends(get_db),
    notifications: NotificationChannel = Depends(get_notifications),
):
    tiers = [RankTier(**t.model_dump()) for t in request.tiers]
    saved = RankTierStore(db).replace_all(user, tiers)
    registry.replace(saved)
    notifications.publish("Rank system saved.", level=LEVEL_SUCCESS, user_id=user.id)
    return saved
