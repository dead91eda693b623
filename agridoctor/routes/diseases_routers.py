# routes/diseases_routers.py
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Path, Query, UploadFile, status
from pydantic import ValidationError
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from agridoctor.core import config
from agridoctor.core.database import MAX_ID, get_db
from agridoctor.core.errors import validation_details
from agridoctor.core.security import Principal, get_admin_user
from agridoctor.core.storage import ImageStaging, find_orphaned_images, is_image_path, remove_image_files
from agridoctor.models.models import Category, Disease
from agridoctor.schema.diseases import DiseaseCreate, DiseasesResponse, DiseaseUpdate, ReconcileResponse

logger = logging.getLogger(__name__)

diseases_router = APIRouter()


def load_disease(db: Session, disease_id: int) -> Optional[Disease]:
    return (
        db.query(Disease)
        .options(joinedload(Disease.category), joinedload(Disease.creator))
        .filter(Disease.id == disease_id)
        .first()
    )


def parse_category_id(raw: Optional[str]) -> int:
    value = (raw or "").strip()
    if not (value.isascii() and value.isdigit()) or int(value) > MAX_ID:
        raise HTTPException(status_code=400, detail="Invalid Category ID format")
    return int(value)


def ensure_category_exists(db: Session, category_id: int):
    if db.get(Category, category_id) is None:
        raise HTTPException(status_code=400, detail="Category not found")


def check_images(paths: List[str]):
    if not 1 <= len(paths) <= config.MAX_IMAGES:
        raise HTTPException(status_code=400, detail=f"Number of images must be between 1 and {config.MAX_IMAGES}")
    invalid = [path for path in paths if not is_image_path(path)]
    if invalid:
        raise HTTPException(status_code=400, detail=f"{invalid[0]} is not a valid image format")


def name_taken(db: Session, name: str, exclude_id: int = None) -> bool:
    query = db.query(Disease).filter(Disease.name == name)
    if exclude_id is not None:
        query = query.filter(Disease.id != exclude_id)
    return query.first() is not None


@diseases_router.get("/", response_model=List[DiseasesResponse])
def get_all_diseases(db: Session = Depends(get_db)):
    return (
        db.query(Disease)
        .options(joinedload(Disease.category))
        .order_by(Disease.created_at.desc(), Disease.id.desc())
        .all()
    )


@diseases_router.get("/search", response_model=List[DiseasesResponse])
def search_diseases(query: Optional[str] = Query(None), db: Session = Depends(get_db)):
    if not query or not query.strip():
        raise HTTPException(status_code=400, detail="Search query is required")
    # LIKE wildcards in the user text match literally
    text = query.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{text}%"
    results = (
        db.query(Disease)
        .join(Disease.category)
        .options(joinedload(Disease.category))
        .filter(
            or_(
                Disease.name.ilike(pattern, escape="\\"),
                Disease.symptoms.ilike(pattern, escape="\\"),
                Disease.description.ilike(pattern, escape="\\"),
                Category.name.ilike(pattern, escape="\\"),
            )
        )
        .order_by(Disease.name)
        .all()
    )
    logger.debug("Search %r matched %d disease(s)", query, len(results))
    return results


@diseases_router.post("/images/reconcile", response_model=ReconcileResponse)
def reconcile_images(db: Session = Depends(get_db), admin: Principal = Depends(get_admin_user)):
    """Delete uploaded files that no disease references any more."""
    referenced = [path for (images,) in db.query(Disease.images).all() for path in (images or [])]
    orphans = find_orphaned_images(referenced)
    remove_image_files(orphans)
    if orphans:
        logger.info("Reconciliation removed %d orphaned image(s)", len(orphans))
    return {"removed": orphans}


@diseases_router.get("/{disease_id}", response_model=DiseasesResponse)
def get_disease(disease_id: int = Path(..., le=MAX_ID), db: Session = Depends(get_db)):
    disease = load_disease(db, disease_id)
    if disease is None:
        raise HTTPException(status_code=404, detail="Disease not found")
    return disease


@diseases_router.post("/", response_model=DiseasesResponse, status_code=status.HTTP_201_CREATED)
def create_disease(
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    symptoms: Optional[str] = Form(None),
    causes: Optional[str] = Form(None),
    prevention: Optional[str] = Form(None),
    treatment: Optional[str] = Form(None),
    category_id: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
    admin: Principal = Depends(get_admin_user),
):
    with ImageStaging() as staging:
        image_paths = staging.save_uploads(images or [])

        try:
            fields = DiseaseCreate(
                name=name or "",
                description=description or "",
                symptoms=symptoms or "",
                causes=causes or None,
                prevention=prevention or "",
                treatment=treatment or "",
            )
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=validation_details(e))

        category_pk = parse_category_id(category_id)
        ensure_category_exists(db, category_pk)

        if name_taken(db, fields.name):
            raise HTTPException(status_code=400, detail="Disease with this name already exists")

        check_images(image_paths)

        db_disease = Disease(
            **fields.model_dump(),
            category_id=category_pk,
            images=image_paths,
            created_by=admin.id,
        )
        db.add(db_disease)
        db.commit()
        staging.commit()

    logger.info("Disease %s created with %d image(s)", db_disease.id, len(image_paths))
    return load_disease(db, db_disease.id)


@diseases_router.put("/{disease_id}", response_model=DiseasesResponse)
def update_disease(
    disease_id: int = Path(..., le=MAX_ID),
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    symptoms: Optional[str] = Form(None),
    causes: Optional[str] = Form(None),
    prevention: Optional[str] = Form(None),
    treatment: Optional[str] = Form(None),
    category_id: Optional[str] = Form(None),
    existing_images: Optional[List[str]] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
    admin: Principal = Depends(get_admin_user),
):
    with ImageStaging() as staging:
        new_paths = staging.save_uploads(images or [])

        disease = db.get(Disease, disease_id)
        if disease is None:
            raise HTTPException(status_code=404, detail="Disease not found")

        update_data = DiseaseUpdate(
            name=name,
            description=description,
            symptoms=symptoms,
            causes=causes,
            prevention=prevention,
            treatment=treatment,
        )

        if category_id:
            category_pk = parse_category_id(category_id)
            ensure_category_exists(db, category_pk)
            disease.category_id = category_pk

        # Final set: stored paths the client kept, in stored order, then the new uploads
        keep = set(existing_images or [])
        current = list(disease.images or [])
        kept = [path for path in current if path in keep]
        removed = [path for path in current if path not in keep]
        final_images = kept + new_paths
        check_images(final_images)

        if update_data.name and update_data.name != disease.name:
            if name_taken(db, update_data.name, exclude_id=disease.id):
                raise HTTPException(status_code=400, detail="Disease with this name already exists")

        # Empty form values leave the stored field untouched
        for field, value in update_data.model_dump().items():
            if value:
                setattr(disease, field, value)
        disease.images = final_images
        disease.updated_at = datetime.utcnow()

        staging.remove_after_commit(removed)
        db.commit()
        staging.commit()

    logger.info("Disease %s updated: %d kept, %d removed, %d added", disease_id, len(kept), len(removed), len(new_paths))
    return load_disease(db, disease_id)


@diseases_router.delete("/{disease_id}")
def delete_disease(disease_id: int = Path(..., le=MAX_ID), db: Session = Depends(get_db), admin: Principal = Depends(get_admin_user)):
    disease = db.get(Disease, disease_id)
    if disease is None:
        raise HTTPException(status_code=404, detail="Disease not found")

    image_paths = list(disease.images or [])
    db.delete(disease)
    db.commit()

    # Best effort, a file that cannot be removed is left for reconciliation
    removed = remove_image_files(image_paths)
    logger.info("Disease %s removed, %d/%d image file(s) deleted", disease_id, removed, len(image_paths))
    return {"msg": "Disease removed"}
