"""
RankTier model for the admin-editable rank ladder
"""
from sqlalchemy import Column, Integer, String
from ..db import Base


class RankTier(Base):
    __tablename__ = "rank_tiers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    icon = Column(String, nullable=False, default="")
    color = Column(String, nullable=False, default="#A0A0A0")
    # -1 is the administrator sentinel, 0 the default tier
    required_exp = Column(Integer, nullable=False, unique=True)
