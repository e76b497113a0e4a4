"""
Profile model: the user fields the gallery reads for ranks and leaderboards
"""
from datetime import datetime
import uuid
from sqlalchemy import Column, Integer, String, DateTime
from ..db import Base


def generate_profile_id():
    """Generate a UUID string for profile ids"""
    return str(uuid.uuid4())


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String, primary_key=True, default=generate_profile_id)
    username = Column(String, unique=True, nullable=False, index=True)
    email = Column(String, nullable=True)
    role = Column(String, nullable=False, default="user")  # admin | user
    exp = Column(Integer, nullable=False, default=0)
    custom_title = Column(String, nullable=True)
    custom_title_color = Column(String, nullable=True)
    avatar_url = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
