# Schemas package
from .records import RankTier, UserRecord, ImageRecord
from .ranking import RankInfo, ExpProgress, UserStats, LeaderboardEntry, Leaderboard

__all__ = [
    "RankTier", "UserRecord", "ImageRecord",
    "RankInfo", "ExpProgress", "UserStats", "LeaderboardEntry", "Leaderboard",
]
