"""
Profile endpoints: rank info, EXP progress, self/admin edits, idle EXP tick
"""
import logging

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from ..core.errors import NotFound
from ..db import get_db
from ..dependencies.auth import get_current_user
from ..dependencies.services import (
    get_exp_mirror,
    get_experience_service,
    get_idle_tick_gate,
    get_rank_resolver,
    get_tier_registry,
)
from ..schemas.api import AdminProfileUpdateRequest, ExpTickResponse, ProfileOut, ProfileUpdateRequest
from ..schemas.ranking import ExpProgress, RankInfo
from ..schemas.records import UserRecord
from ..services.experience import (
    ACTION_IDLE_TICK,
    ACTION_PROFILE_EDIT,
    ExperienceService,
    ExpMirror,
    IdleTickGate,
    exp_awards,
)
from ..services.images import ImageStore
from ..services.profiles import ProfileStore
from ..services.rank_tiers import RankTierRegistry
from ..services.ranking import RankResolver

logger = logging.getLogger(__name__)

router = APIRouter(tags=["profiles"])


def _load_profile(db: Session, user_id: str) -> UserRecord:
    user = ProfileStore(db).get(user_id)
    if user is None:
        raise NotFound(f"Profile {user_id} not found")
    return user


@router.get("/v1/profiles/me", response_model=ProfileOut)
def get_me(
    user: UserRecord = Depends(get_current_user),
    mirror: ExpMirror = Depends(get_exp_mirror),
):
    return ProfileOut(**mirror.current(user).model_dump())


@router.get("/v1/profiles/{user_id}/rank", response_model=RankInfo)
def get_profile_rank(
    user_id: str,
    db: Session = Depends(get_db),
    registry: RankTierRegistry = Depends(get_tier_registry),
    resolver: RankResolver = Depends(get_rank_resolver),
    mirror: ExpMirror = Depends(get_exp_mirror),
):
    user = mirror.current(_load_profile(db, user_id))
    post_count = ImageStore(db).count_by_owner(user.id)
    return resolver.resolve(user, registry.snapshot(), post_count=post_count)


@router.get("/v1/profiles/{user_id}/progress", response_model=ExpProgress)
def get_profile_progress(
    user_id: str,
    db: Session = Depends(get_db),
    registry: RankTierRegistry = Depends(get_tier_registry),
    resolver: RankResolver = Depends(get_rank_resolver),
    mirror: ExpMirror = Depends(get_exp_mirror),
):
    user = mirror.current(_load_profile(db, user_id))
    return resolver.progress(user, registry.snapshot())


@router.patch("/v1/profiles/me", response_model=ProfileOut)
def update_my_profile(
    request: ProfileUpdateRequest,
    background_tasks: BackgroundTasks,
    user: UserRecord = Depends(get_current_user),
    db: Session = Depends(get_db),
    mirror: ExpMirror = Depends(get_exp_mirror),
    experience: ExperienceService = Depends(get_experience_service),
):
    store = ProfileStore(db)
    changed = store.changed_fields(user, request.model_dump(exclude_unset=True))
    if not changed:
        # Nothing to write, and nothing earned
        return ProfileOut(**mirror.current(user).model_dump())
    updated = store.update_profile(user, user.id, changed)
    background_tasks.add_task(experience.award, user, ACTION_PROFILE_EDIT)
    return ProfileOut(**mirror.current(updated).model_dump())


@router.patch("/v1/admin/profiles/{user_id}", response_model=ProfileOut)
def update_profile_as_admin(
    user_id: str,
    request: AdminProfileUpdateRequest,
    user: UserRecord = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    fields = request.model_dump(exclude_unset=True)
    updated = ProfileStore(db).update_by_admin(user, user_id, fields)
    return ProfileOut(**updated.model_dump())


@router.post("/v1/profiles/me/exp/tick", response_model=ExpTickResponse, status_code=202)
def idle_exp_tick(
    background_tasks: BackgroundTasks,
    user: UserRecord = Depends(get_current_user),
    gate: IdleTickGate = Depends(get_idle_tick_gate),
    experience: ExperienceService = Depends(get_experience_service),
):
    """Called by clients once per active minute. Early ticks are ignored."""
    if not gate.allow(user.id):
        logger.info("Ignoring early idle tick from user %s", user.id)
        return ExpTickResponse(status="ignored", amount=0)
    background_tasks.add_task(experience.award, user, ACTION_IDLE_TICK)
    return ExpTickResponse(status="scheduled", amount=exp_awards()[ACTION_IDLE_TICK])
