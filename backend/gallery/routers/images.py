"""
Gallery image actions that feed the leaderboard and award EXP
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..dependencies.auth import get_current_user
from ..dependencies.services import get_experience_service
from ..schemas.api import (
    CommentCreateRequest,
    CommentOut,
    ImageCreateRequest,
    ImageOut,
    ImageUpdateRequest,
    LikeToggleResponse,
    ViewResponse,
)
from ..schemas.records import UserRecord
from ..services.experience import ACTION_COMMENT, ACTION_LIKE, ACTION_POST, ExperienceService
from ..services.images import ImageStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/images", tags=["images"])


@router.get("", response_model=List[ImageOut])
def list_images(category_id: Optional[int] = None, db: Session = Depends(get_db)):
    """Gallery images, newest first. Filter by category with ?category_id=."""
    return ImageStore(db).list_images(category_id=category_id)


@router.post("", response_model=ImageOut, status_code=201)
def create_image(
    request: ImageCreateRequest,
    background_tasks: BackgroundTasks,
    user: UserRecord = Depends(get_current_user),
    db: Session = Depends(get_db),
    experience: ExperienceService = Depends(get_experience_service),
):
    image = ImageStore(db).create_image(
        user,
        title=request.title,
        image_url=request.image_url,
        prompt=request.prompt,
        category_id=request.category_id,
    )
    background_tasks.add_task(experience.award, user, ACTION_POST)
    return image


@router.post("/{image_id}/like", response_model=LikeToggleResponse)
def toggle_like(
    image_id: int,
    background_tasks: BackgroundTasks,
    user: UserRecord = Depends(get_current_user),
    db: Session = Depends(get_db),
    experience: ExperienceService = Depends(get_experience_service),
):
    store = ImageStore(db)
    liked, like_count = store.toggle_like(user, image_id)
    # Only the first like of an image earns EXP
    if liked and store.claim_like_award(user, image_id):
        background_tasks.add_task(experience.award, user, ACTION_LIKE)
    return LikeToggleResponse(image_id=image_id, liked=liked, like_count=like_count)


@router.post("/{image_id}/view", response_model=ViewResponse)
def record_view(image_id: int, db: Session = Depends(get_db)):
    views = ImageStore(db).record_view(image_id)
    return ViewResponse(image_id=image_id, views=views)


@router.post("/{image_id}/comments", response_model=CommentOut, status_code=201)
def add_comment(
    image_id: int,
    request: CommentCreateRequest,
    background_tasks: BackgroundTasks,
    user: UserRecord = Depends(get_current_user),
    db: Session = Depends(get_db),
    experience: ExperienceService = Depends(get_experience_service),
):
    comment = ImageStore(db).add_comment(user, image_id, request.text)
    background_tasks.add_task(experience.award, user, ACTION_COMMENT)
    return comment


@router.patch("/{image_id}", response_model=ImageOut)
def update_image(
    image_id: int,
    request: ImageUpdateRequest,
    user: UserRecord = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ImageStore(db).update_image(user, image_id, request.model_dump(exclude_unset=True))


@router.delete("/{image_id}", status_code=204)
def delete_image(
    image_id: int,
    user: UserRecord = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ImageStore(db).delete_image(user, image_id)


@router.get("/{image_id}/comments", response_model=List[CommentOut])
def list_comments(image_id: int, db: Session = Depends(get_db)):
    return ImageStore(db).list_comments(image_id)
