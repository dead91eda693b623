# routes/user_routes.py
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.orm import Session

from agridoctor.core.database import MAX_ID, get_db
from agridoctor.core.security import (
    Principal,
    get_admin_user,
    get_current_user,
    get_password_hash,
    token_for_user,
    verify_password,
)
from agridoctor.models.models import User
from agridoctor.schema.user import Token, UserCreate, UserLogin, UserResponse, UserUpdate

logger = logging.getLogger(__name__)

auth_router = APIRouter()
user_router = APIRouter()


def get_user_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@auth_router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
def register_user(user: UserCreate, db: Session = Depends(get_db)):
    email_lower = user.email.lower()
    existing_user = db.query(User).filter(User.email == email_lower).first()
    if existing_user:
        raise HTTPException(status_code=400, detail="User already exists")

    db_user = User(
        name=user.name,
        email=email_lower,
        password=get_password_hash(user.password),
        role=user.role,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    logger.info("Registered user %s (%s)", db_user.id, db_user.role)

    return {"token": token_for_user(db_user)}


@auth_router.post("/login", response_model=Token)
def login_user(credentials: UserLogin, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == credentials.email.lower()).first()
    if not user or not verify_password(credentials.password, user.password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return {"token": token_for_user(user)}


@auth_router.get("/", response_model=UserResponse)
def get_logged_in_user(current_user: Principal = Depends(get_current_user), db: Session = Depends(get_db)):
    return get_user_or_404(db, current_user.id)


@user_router.get("/", response_model=List[UserResponse])
def get_all_users(db: Session = Depends(get_db), admin: Principal = Depends(get_admin_user)):
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


@user_router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int = Path(..., le=MAX_ID), db: Session = Depends(get_db), admin: Principal = Depends(get_admin_user)):
    return get_user_or_404(db, user_id)


@user_router.put("/{user_id}", response_model=UserResponse)
def update_user(
    update_data: UserUpdate,
    user_id: int = Path(..., le=MAX_ID),
    db: Session = Depends(get_db),
    admin: Principal = Depends(get_admin_user),
):
    user = get_user_or_404(db, user_id)

    for field, value in update_data.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        if field == "email":
            value = value.lower()
            clash = db.query(User).filter(User.email == value, User.id != user.id).first()
            if clash:
                raise HTTPException(status_code=400, detail="Email already registered")
        elif field == "password":
            value = get_password_hash(value)
        setattr(user, field, value)

    db.commit()
    db.refresh(user)
    return user


@user_router.delete("/{user_id}")
def delete_user(user_id: int = Path(..., le=MAX_ID), db: Session = Depends(get_db), admin: Principal = Depends(get_admin_user)):
    user = get_user_or_404(db, user_id)
    db.delete(user)
    db.commit()
    logger.info("User %s removed", user_id)
    return {"msg": "User removed"}
