# routes/category_routes.py
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from agridoctor.core.database import MAX_ID, get_db
from agridoctor.core.security import Principal, get_admin_user
from agridoctor.models.models import Category, Disease
from agridoctor.schema.category import CategoryCreate, CategoryResponse, CategoryUpdate

logger = logging.getLogger(__name__)

category_router = APIRouter()


def find_category_by_name(db: Session, name: str, exclude_id: int = None):
    """Case-insensitive lookup, optionally ignoring one record."""
    query = db.query(Category).filter(func.lower(Category.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    return query.first()


def get_category_or_404(db: Session, category_id: int) -> Category:
    category = db.get(Category, category_id)
    if category is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@category_router.get("/", response_model=List[CategoryResponse])
def get_all_categories(db: Session = Depends(get_db)):
    return db.query(Category).order_by(Category.name).all()


@category_router.get("/{category_id}", response_model=CategoryResponse)
def get_category(category_id: int = Path(..., le=MAX_ID), db: Session = Depends(get_db), admin: Principal = Depends(get_admin_user)):
    return get_category_or_404(db, category_id)


@category_router.post("/", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(category: CategoryCreate, db: Session = Depends(get_db), admin: Principal = Depends(get_admin_user)):
    if find_category_by_name(db, category.name):
        raise HTTPException(status_code=400, detail="Category with this name already exists")

    db_category = Category(name=category.name, description=category.description)
    db.add(db_category)
    db.commit()
    db.refresh(db_category)
    logger.info("Category %s created: %s", db_category.id, db_category.name)
    return db_category


@category_router.put("/{category_id}", response_model=CategoryResponse)
def update_category(
    update_data: CategoryUpdate,
    category_id: int = Path(..., le=MAX_ID),
    db: Session = Depends(get_db),
    admin: Principal = Depends(get_admin_user),
):
    category = get_category_or_404(db, category_id)

    fields = update_data.model_dump(exclude_unset=True)
    name = fields.get("name")
    if name and name.lower() != category.name.lower():
        if find_category_by_name(db, name, exclude_id=category.id):
            raise HTTPException(status_code=400, detail="Another category with this name already exists")

    for field, value in fields.items():
        if field == "name" and not value:
            continue
        setattr(category, field, value)

    db.commit()
    db.refresh(category)
    return category


@category_router.delete("/{category_id}")
def delete_category(category_id: int = Path(..., le=MAX_ID), db: Session = Depends(get_db), admin: Principal = Depends(get_admin_user)):
    category = get_category_or_404(db, category_id)

    disease_count = db.query(Disease).filter(Disease.category_id == category.id).count()
    if disease_count > 0:
        raise HTTPException(
            status_code=400,
            detail={
                "msg": f"Cannot delete category. It is assigned to {disease_count} disease(s).",
                "count": disease_count,
            },
        )

    db.delete(category)
    db.commit()
    logger.info("Category %s removed", category_id)
    return {"msg": "Category removed"}
