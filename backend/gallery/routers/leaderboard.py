"""
Leaderboard endpoint
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..dependencies.services import get_exp_mirror, get_rank_resolver, get_tier_registry
from ..schemas.ranking import Leaderboard
from ..services.experience import ExpMirror
from ..services.images import ImageStore
from ..services.leaderboard import LeaderboardAggregator, ScoreWeights
from ..services.profiles import ProfileStore
from ..services.rank_tiers import RankTierRegistry
from ..services.ranking import RankResolver

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/leaderboard", tags=["leaderboard"])


@router.get(
    "",
    response_model=Leaderboard,
    summary="Get the leaderboard",
    description="""
    Every user ranked by score = likes*5 + comments*3 + posts*10 + views*1
    (weights configurable). Ties are ordered by user id. Positions 1-3 carry
    a gold/silver/bronze podium marker.
    """
)
def get_leaderboard(
    db: Session = Depends(get_db),
    registry: RankTierRegistry = Depends(get_tier_registry),
    resolver: RankResolver = Depends(get_rank_resolver),
    mirror: ExpMirror = Depends(get_exp_mirror),
):
    users = [mirror.current(u) for u in ProfileStore(db).list_all()]
    images = ImageStore(db).list_all()
    aggregator = LeaderboardAggregator(ScoreWeights.from_settings())
    entries = aggregator.build(users, images, registry.snapshot(), resolver=resolver)
    return Leaderboard(entries=entries)
