"""
Leaderboard aggregation.

Computes per-user stats from the full user and image sets and orders them for
display. Stats are derived fresh on every call and never persisted.

Score policy: a post is worth 10 flat, a like 5, a comment 3, a view 1.
The ordering post > like > comment > view must hold for any override.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

from gallery.core.config import settings
from gallery.schemas.ranking import LeaderboardEntry, UserStats
from gallery.schemas.records import ImageRecord, RankTier, UserRecord
from gallery.services.ranking import RankResolver

logger = logging.getLogger(__name__)

PODIUM = {1: "gold", 2: "silver", 3: "bronze"}


@dataclass(frozen=True)
class ScoreWeights:
    post: int = 10
    like: int = 5
    comment: int = 3
    view: int = 1

    def __post_init__(self):
        if not (self.post > self.like > self.comment > self.view >= 0):
            raise ValueError(
                "Score weights must keep post > like > comment > view >= 0, got "
                f"post={self.post} like={self.like} comment={self.comment} view={self.view}"
            )

    @classmethod
    def from_settings(cls) -> "ScoreWeights":
        return cls(**settings.score_weights)

    def score(self, posts: int, likes: int, comments: int, views: int) -> int:
        return likes * self.like + comments * self.comment + posts * self.post + views * self.view


DEFAULT_WEIGHTS = ScoreWeights()


def _coerce_images(images: Iterable[Any]) -> List[ImageRecord]:
    records = []
    for image in images or []:
        if isinstance(image, ImageRecord):
            records.append(image)
            continue
        try:
            record = ImageRecord.from_row(image)
        except Exception as e:
            # One bad row must not abort the batch
            logger.warning(f"Skipping malformed image record: {e}")
            continue
        if record is not None:
            records.append(record)
    return records


def _coerce_users(users: Iterable[Any]) -> List[UserRecord]:
    records = []
    for user in users or []:
        if isinstance(user, UserRecord):
            records.append(user)
            continue
        try:
            record = UserRecord.from_row(user)
        except Exception as e:
            logger.warning(f"Skipping malformed profile record: {e}")
            continue
        if record is not None:
            records.append(record)
    return records


class LeaderboardAggregator:
    """Aggregate gallery activity into ranked user stats."""

    def __init__(self, weights: Optional[ScoreWeights] = None):
        self.weights = weights or DEFAULT_WEIGHTS

    def aggregate(self, users: Iterable[Any], images: Iterable[Any]) -> List[UserStats]:
        """
        One UserStats per input user, in input order. No ranking applied.

        Users with no images get a zero-filled record. Images owned by unknown
        users are ignored.
        """
        users = _coerce_users(users)
        images = _coerce_images(images)

        totals: Dict[str, Dict[str, int]] = defaultdict(
            lambda: {"posts": 0, "likes": 0, "comments": 0, "views": 0}
        )
        for image in images:
            if image.user_id is None:
                continue
            bucket = totals[image.user_id]
            bucket["posts"] += 1
            bucket["likes"] += len(image.likes)
            bucket["comments"] += image.comments_count
            bucket["views"] += image.views

        stats = []
        for user in users:
            t = totals.get(user.id, {"posts": 0, "likes": 0, "comments": 0, "views": 0})
            stats.append(UserStats(
                user=user,
                total_posts=t["posts"],
                total_likes=t["likes"],
                total_comments=t["comments"],
                total_views=t["views"],
                score=self.weights.score(t["posts"], t["likes"], t["comments"], t["views"]),
            ))
        return stats

    @staticmethod
    def rank(stats: Sequence[UserStats]) -> List[LeaderboardEntry]:
        """
        Order stats by score descending, ties broken by user id ascending.
        """
        ordered = sorted(stats, key=lambda s: (-s.score, s.user.id))
        return [
            LeaderboardEntry(position=i, podium=PODIUM.get(i), stats=s)
            for i, s in enumerate(ordered, start=1)
        ]

    def build(
        self,
        users: Iterable[Any],
        images: Iterable[Any],
        tiers: Sequence[RankTier],
        resolver: Optional[RankResolver] = None,
    ) -> List[LeaderboardEntry]:
        """Aggregate, rank and attach each user's resolved rank info."""
        resolver = resolver or RankResolver()
        entries = self.rank(self.aggregate(users, images))
        for entry in entries:
            entry.rank = resolver.resolve(
                entry.stats.user, tiers, post_count=entry.stats.total_posts
            )
        logger.debug("Built leaderboard with %d entries", len(entries))
        return entries
