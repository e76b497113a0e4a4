"""
Rank Resolution Service.

Maps a user and the rank ladder to the displayed rank (name, color, icon) and
username style class. Pure: no database access, inputs are snapshots.
"""
from typing import Iterable, Optional, Sequence

from gallery.core.config import settings
from gallery.schemas.ranking import ExpProgress, RankInfo
from gallery.schemas.records import ImageRecord, RankTier, UserRecord
from gallery.services.rank_tiers import admin_tier, default_tier, ordinary_tiers

STYLE_NEUTRAL = "neutral"
STYLE_BASE = "base"
STYLE_ADVANCED = "advanced"
STYLE_EXPERT = "expert"
STYLE_MASTER = "master"
STYLE_ADMIN = "admin"


def count_posts(user_id: str, images: Iterable[ImageRecord]) -> int:
    """Number of images owned by user_id."""
    return sum(1 for image in images if image.user_id == user_id)


class RankResolver:
    """
    Resolve displayed rank info for users.

    Style bands are keyed off raw EXP, independent of the active tier, so a
    custom title never hides the escalating treatment.
    """

    def __init__(
        self,
        advanced_at: Optional[int] = None,
        expert_at: Optional[int] = None,
        master_at: Optional[int] = None,
    ):
        self.advanced_at = settings.STYLE_BAND_ADVANCED if advanced_at is None else advanced_at
        self.expert_at = settings.STYLE_BAND_EXPERT if expert_at is None else expert_at
        self.master_at = settings.STYLE_BAND_MASTER if master_at is None else master_at

    def style_class(self, exp: int) -> str:
        if exp >= self.master_at:
            return STYLE_MASTER
        if exp >= self.expert_at:
            return STYLE_EXPERT
        if exp >= self.advanced_at:
            return STYLE_ADVANCED
        return STYLE_BASE

    def select_tier(self, exp: int, tiers: Sequence[RankTier]) -> RankTier:
        """Highest ordinary tier whose threshold is <= exp, else the default tier."""
        for tier in ordinary_tiers(tiers):
            if tier.required_exp <= exp:
                return tier
        return default_tier(tiers)

    def resolve(
        self,
        user: Optional[UserRecord],
        tiers: Sequence[RankTier],
        post_count: int = 0,
    ) -> RankInfo:
        """
        Resolve the displayed rank for a user.

        Args:
            user: The user, or None for an anonymous viewer
            tiers: Rank ladder snapshot (may lack the default/admin tiers)
            post_count: Images owned by the user (see count_posts)
        """
        if user is None:
            fallback = default_tier(tiers)
            return RankInfo(
                name=fallback.name,
                color=fallback.color,
                icon=fallback.icon,
                style_class=STYLE_NEUTRAL,
                post_count=0,
            )

        if user.is_admin:
            tier = admin_tier(tiers)
            style = STYLE_ADMIN
        else:
            tier = self.select_tier(user.exp, tiers)
            style = self.style_class(user.exp)

        # Custom fields override display only, each independently
        return RankInfo(
            name=user.custom_title or tier.name,
            color=user.custom_title_color or tier.color,
            icon=tier.icon,
            style_class=style,
            post_count=post_count,
        )

    def resolve_with_images(
        self,
        user: Optional[UserRecord],
        tiers: Sequence[RankTier],
        images: Iterable[ImageRecord],
    ) -> RankInfo:
        post_count = count_posts(user.id, images) if user is not None else 0
        return self.resolve(user, tiers, post_count=post_count)

    def progress(self, user: UserRecord, tiers: Sequence[RankTier]) -> ExpProgress:
        """
        Current tier, next tier and percentage progress between them.

        Admins are measured against the ordinary ladder like everyone else.
        """
        exp = user.exp or 0
        ladder = list(reversed(ordinary_tiers(tiers)))  # ascending
        current = self.select_tier(exp, tiers)

        next_tier = None
        for tier in ladder:
            if tier.required_exp > current.required_exp:
                next_tier = tier
                break

        if next_tier is None:
            return ExpProgress(exp=exp, current_tier=current, progress_percent=100.0)

        span = next_tier.required_exp - current.required_exp
        progress = (exp - current.required_exp) / span * 100 if span > 0 else 100.0
        return ExpProgress(
            exp=exp,
            current_tier=current,
            next_tier=next_tier,
            exp_for_next=next_tier.required_exp,
            progress_percent=max(0.0, min(100.0, progress)),
        )
