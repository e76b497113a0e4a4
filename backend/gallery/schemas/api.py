"""
Request/response bodies for the HTTP API
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class RankTierIn(BaseModel):
    name: str
    icon: str = ""
    color: str = "#A0A0A0"
    required_exp: int


class RankTiersReplaceRequest(BaseModel):
    tiers: List[RankTierIn]


class ProfileOut(BaseModel):
    id: str
    username: str
    role: str
    exp: int
    custom_title: Optional[str] = None
    custom_title_color: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdateRequest(BaseModel):
    username: Optional[str] = None
    avatar_url: Optional[str] = None


class AdminProfileUpdateRequest(BaseModel):
    username: Optional[str] = None
    role: Optional[str] = None
    custom_title: Optional[str] = None
    custom_title_color: Optional[str] = None
    avatar_url: Optional[str] = None


class ImageCreateRequest(BaseModel):
    title: str = Field(..., min_length=1)
    prompt: str = ""
    image_url: str = Field(..., min_length=1)
    category_id: Optional[int] = None


class ImageOut(BaseModel):
    id: int
    user_id: str
    title: str
    prompt: str
    image_url: str
    category_id: Optional[int] = None
    likes: List[str]
    views: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LikeToggleResponse(BaseModel):
    image_id: int
    liked: bool
    like_count: int


class ViewResponse(BaseModel):
    image_id: int
    views: int


class CommentCreateRequest(BaseModel):
    text: str


class CommentOut(BaseModel):
    id: int
    image_id: int
    user_id: str
    text: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ExpTickResponse(BaseModel):
    status: str  # scheduled | ignored
    amount: int


class NotificationOut(BaseModel):
    id: str
    level: str  # info | success | error
    message: str
    user_id: Optional[str] = None
    created_at: datetime


class ImageUpdateRequest(BaseModel):
    title: Optional[str] = None
    prompt: Optional[str] = None
    category_id: Optional[int] = None


class CategoryIn(BaseModel):
    name: str


class CategoryOut(BaseModel):
    id: int
    name: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
