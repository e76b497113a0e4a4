"""
Models package
"""
from .profile import Profile
from .category import Category
from .image import Image, Comment, LikeAward
from .rank_tier import RankTier

__all__ = ["Profile", "Category", "Image", "Comment", "LikeAward", "RankTier"]
