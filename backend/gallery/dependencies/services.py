"""
Dependencies exposing process-lifetime objects kept on app.state
"""
from fastapi import Depends, Request

from ..db import get_session_local
from ..services.experience import ExperienceService, ExpMirror, IdleTickGate, SqlExpDeltaSink
from ..services.notifications import NotificationChannel
from ..services.rank_tiers import RankTierRegistry
from ..services.ranking import RankResolver


def get_tier_registry(request: Request) -> RankTierRegistry:
    return request.app.state.tier_registry


def get_exp_mirror(request: Request) -> ExpMirror:
    return request.app.state.exp_mirror


def get_notifications(request: Request) -> NotificationChannel:
    return request.app.state.notifications


def get_rank_resolver() -> RankResolver:
    return RankResolver()


def get_exp_sink() -> SqlExpDeltaSink:
    # Own session per delta: awards run as background tasks after the request session closes
    return SqlExpDeltaSink(session_factory=get_session_local())


def get_experience_service(
    mirror: ExpMirror = Depends(get_exp_mirror),
    sink: SqlExpDeltaSink = Depends(get_exp_sink),
    notifications: NotificationChannel = Depends(get_notifications),
) -> ExperienceService:
    return ExperienceService(mirror, sink, notifications)


def get_idle_tick_gate(request: Request) -> IdleTickGate:
    return request.app.state.idle_ticks
