"""
Category endpoints: public list, admin create/rename/delete
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..dependencies.auth import get_current_user
from ..schemas.api import CategoryIn, CategoryOut
from ..schemas.records import UserRecord
from ..services.categories import CategoryStore

router = APIRouter(prefix="/v1/categories", tags=["categories"])


@router.get("", response_model=List[CategoryOut])
def list_categories(db: Session = Depends(get_db)):
    return CategoryStore(db).list_all()


@router.post("", response_model=CategoryOut, status_code=201)
def create_category(
    request: CategoryIn,
    user: UserRecord = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return CategoryStore(db).create(user, request.name)


@router.patch("/{category_id}", response_model=CategoryOut)
def rename_category(
    category_id: int,
    request: CategoryIn,
    user: UserRecord = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return CategoryStore(db).rename(user, category_id, request.name)


@router.delete("/{category_id}", status_code=204)
def delete_category(
    category_id: int,
    user: UserRecord = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Images in the category are kept and become uncategorized."""
    CategoryStore(db).delete(user, category_id)
