"""
Schemas for rank resolution and leaderboard output
"""
from typing import List, Optional
from pydantic import BaseModel

from .records import RankTier, UserRecord


class RankInfo(BaseModel):
    name: str  # custom title or tier name
    color: str  # custom color or tier color
    icon: str
    style_class: str  # neutral | base | advanced | expert | master | admin
    post_count: int


class ExpProgress(BaseModel):
    exp: int
    current_tier: RankTier
    next_tier: Optional[RankTier] = None
    exp_for_next: Optional[int] = None  # None at max tier
    progress_percent: float  # 0-100, 100 at max tier


class UserStats(BaseModel):
    user: UserRecord
    total_posts: int = 0
    total_likes: int = 0
    total_comments: int = 0
    total_views: int = 0
    score: int = 0


class LeaderboardEntry(BaseModel):
    position: int  # 1-based
    podium: Optional[str] = None  # gold | silver | bronze, presentation only
    stats: UserStats
    rank: Optional[RankInfo] = None


class Leaderboard(BaseModel):
    entries: List[LeaderboardEntry]
