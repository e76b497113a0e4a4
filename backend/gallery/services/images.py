"""
Image store: listings for aggregation plus the gallery actions that earn EXP
(posting, liking, commenting), owner/admin edits and deletes, and view
counting.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from gallery.core.errors import InvalidInput, NotFound, PermissionDenied, PersistenceError
from gallery.models import Category, Comment, Image, LikeAward
from gallery.schemas.records import ImageRecord, UserRecord

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {"title", "prompt", "category_id"}


def _require_user(actor: Optional[UserRecord], action: str) -> UserRecord:
    if actor is None:
        raise PermissionDenied(f"You must be signed in to {action}.")
    return actor


def _require_owner_or_admin(actor: Optional[UserRecord], image: Image, action: str) -> UserRecord:
    if actor is None or (actor.id != image.user_id and not actor.is_admin):
        raise PermissionDenied(f"You are not allowed to {action} this image.")
    return actor


class ImageStore:

    def __init__(self, db: Session):
        self.db = db

    def _commit(self, what: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to {what}: {e}", exc_info=True)
            raise PersistenceError(f"Could not {what}.") from e

    def _check_category(self, category_id: Optional[int]) -> None:
        if category_id is None:
            return
        if self.db.query(Category.id).filter(Category.id == category_id).first() is None:
            raise InvalidInput(f"Category {category_id} does not exist.")

    def get(self, image_id: int) -> Image:
        image = self.db.query(Image).filter(Image.id == image_id).first()
        if image is None:
            raise NotFound(f"Image {image_id} not found")
        return image

    def list_images(self, category_id: Optional[int] = None) -> List[Image]:
        """Image rows newest first, optionally limited to one category."""
        query = self.db.query(Image)
        if category_id is not None:
            query = query.filter(Image.category_id == category_id)
        return query.order_by(Image.created_at.desc(), Image.id.desc()).all()

    def list_all(self) -> List[ImageRecord]:
        """All images as records with their comment counts joined."""
        counts = (
            self.db.query(Comment.image_id, func.count(Comment.id).label("comments_count"))
            .group_by(Comment.image_id)
            .subquery()
        )
        rows = (
            self.db.query(Image, counts.c.comments_count)
            .outerjoin(counts, counts.c.image_id == Image.id)
            .order_by(Image.created_at.desc(), Image.id.desc())
            .all()
        )
        records = []
        for image, comments_count in rows:
            record = ImageRecord.from_row({
                "id": image.id,
                "user_id": image.user_id,
                "likes": image.likes,
                "views": image.views,
                "comments_count": comments_count,
            })
            if record is not None:
                records.append(record)
        return records

    def count_by_owner(self, user_id: str) -> int:
        return self.db.query(func.count(Image.id)).filter(Image.user_id == user_id).scalar() or 0

    def create_image(
        self,
        owner: Optional[UserRecord],
        title: str,
        image_url: str,
        prompt: str = "",
        category_id: Optional[int] = None,
    ) -> Image:
        owner = _require_user(owner, "post images")
        if not title.strip() or not image_url.strip():
            raise InvalidInput("Title and image URL are required.")
        self._check_category(category_id)
        image = Image(
            user_id=owner.id,
            title=title.strip(),
            prompt=prompt,
            image_url=image_url,
            category_id=category_id,
            likes=[],
            views=0,
        )
        self.db.add(image)
        self._commit("save the image")
        self.db.refresh(image)
        logger.info(f"User {owner.id} posted image {image.id}")
        return image

    def update_image(self, actor: Optional[UserRecord], image_id: int, fields: Dict[str, Any]) -> Image:
        """Edit title, prompt or category. Owner or admin only."""
        image = self.get(image_id)
        _require_owner_or_admin(actor, image, "edit")
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise InvalidInput(f"Unknown image fields: {', '.join(sorted(unknown))}")
        if "title" in fields:
            if not (fields["title"] or "").strip():
                raise InvalidInput("Title must not be empty.")
            fields = dict(fields, title=fields["title"].strip())
        if "prompt" in fields and fields["prompt"] is None:
            fields = dict(fields, prompt="")
        if "category_id" in fields:
            self._check_category(fields["category_id"])
        for key, value in fields.items():
            setattr(image, key, value)
        self._commit("update the image")
        self.db.refresh(image)
        return image

    def delete_image(self, actor: Optional[UserRecord], image_id: int) -> None:
        """
        Delete an image with its comments and like awards. Owner or admin only.

        The owner's leaderboard totals drop accordingly; EXP already earned is kept.
        """
        image = self.get(image_id)
        actor = _require_owner_or_admin(actor, image, "delete")
        try:
            self.db.query(Comment).filter(Comment.image_id == image_id).delete(synchronize_session=False)
            self.db.query(LikeAward).filter(LikeAward.image_id == image_id).delete(synchronize_session=False)
            self.db.delete(image)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to delete image {image_id}: {e}", exc_info=True)
            raise PersistenceError("Could not delete the image.") from e
        logger.info(f"User {actor.id} deleted image {image_id}")

    def toggle_like(self, actor: Optional[UserRecord], image_id: int) -> Tuple[bool, int]:
        """
        Like or unlike an image for the actor.

        Returns:
            (liked, like_count) after the toggle
        """
        actor = _require_user(actor, "like images")
        image = self.get(image_id)
        likes = list(dict.fromkeys(str(x) for x in (image.likes or [])))
        if actor.id in likes:
            likes.remove(actor.id)
            liked = False
        else:
            likes.append(actor.id)
            liked = True
        # Reassign so the JSON column is marked dirty
        image.likes = likes
        self._commit("update the like")
        return liked, len(likes)

    def claim_like_award(self, actor: UserRecord, image_id: int) -> bool:
        """
        Record that actor's like on image_id earned EXP.

        Returns False if it already did, so unlike/re-like cycles earn nothing.
        """
        exists = (
            self.db.query(LikeAward.id)
            .filter(LikeAward.user_id == actor.id, LikeAward.image_id == image_id)
            .first()
        )
        if exists is not None:
            return False
        self.db.add(LikeAward(user_id=actor.id, image_id=image_id))
        try:
            self.db.commit()
        except IntegrityError:
            # Concurrent first like from the same user
            self.db.rollback()
            return False
        return True

    def record_view(self, image_id: int) -> int:
        result = self.db.execute(
            update(Image)
            .where(Image.id == image_id)
            .values(views=Image.views + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self.db.rollback()
            raise NotFound(f"Image {image_id} not found")
        self._commit("record the view")
        return self.db.query(Image.views).filter(Image.id == image_id).scalar()

    def list_comments(self, image_id: int) -> List[Comment]:
        """Comments on an image, oldest first."""
        self.get(image_id)
        return (
            self.db.query(Comment)
            .filter(Comment.image_id == image_id)
            .order_by(Comment.created_at, Comment.id)
            .all()
        )

    def add_comment(self, actor: Optional[UserRecord], image_id: int, text: str) -> Comment:
        actor = _require_user(actor, "comment")
        text = (text or "").strip()
        if not text:
            raise InvalidInput("Comment must not be empty.")
        self.get(image_id)
        comment = Comment(image_id=image_id, user_id=actor.id, text=text)
        self.db.add(comment)
        self._commit("save the comment")
        self.db.refresh(comment)
        return comment
