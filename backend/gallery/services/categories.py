"""
Category store: public listing, admin-only create/rename/delete.

Deleting a category never deletes its images; they become uncategorized.
"""
import logging
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from gallery.core.errors import InvalidInput, NotFound, PermissionDenied, PersistenceError
from gallery.models import Category, Image
from gallery.schemas.records import UserRecord

logger = logging.getLogger(__name__)


def _require_admin(actor: Optional[UserRecord]) -> UserRecord:
    if actor is None or not actor.is_admin:
        raise PermissionDenied("Only administrators can manage categories.")
    return actor


def _clean_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not name:
        raise InvalidInput("Category name must not be empty.")
    return name


class CategoryStore:

    def __init__(self, db: Session):
        self.db = db

    def _commit(self, what: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise InvalidInput("This category name already exists.") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to {what}: {e}", exc_info=True)
            raise PersistenceError(f"Could not {what}.") from e

    def get(self, category_id: int) -> Category:
        category = self.db.query(Category).filter(Category.id == category_id).first()
        if category is None:
            raise NotFound(f"Category {category_id} not found")
        return category

    def exists(self, category_id: int) -> bool:
        return self.db.query(Category.id).filter(Category.id == category_id).first() is not None

    def list_all(self) -> List[Category]:
        return self.db.query(Category).order_by(Category.name).all()

    def create(self, actor: Optional[UserRecord], name: str) -> Category:
        actor = _require_admin(actor)
        category = Category(name=_clean_name(name))
        self.db.add(category)
        self._commit("save the category")
        self.db.refresh(category)
        logger.info(f"Admin {actor.id} created category {category.id} ({category.name})")
        return category

    def rename(self, actor: Optional[UserRecord], category_id: int, name: str) -> Category:
        _require_admin(actor)
        name = _clean_name(name)
        category = self.get(category_id)
        category.name = name
        self._commit("rename the category")
        self.db.refresh(category)
        return category

    def delete(self, actor: Optional[UserRecord], category_id: int) -> None:
        actor = _require_admin(actor)
        category = self.get(category_id)
        try:
            self.db.execute(
                update(Image)
                .where(Image.category_id == category_id)
                .values(category_id=None)
                .execution_options(synchronize_session=False)
            )
            self.db.delete(category)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to delete category {category_id}: {e}", exc_info=True)
            raise PersistenceError("Could not delete the category.") from e
        logger.info(f"Admin {actor.id} deleted category {category_id}")
