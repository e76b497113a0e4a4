"""
Category model: admin-managed buckets for gallery images
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime
from ..db import Base


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, unique=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
