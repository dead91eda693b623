# routes/message_routes.py
"""Moderated messages: contact feedback, disease reviews and post comments.

All three share the ``messages`` table and the same moderation flow. A
submission is stored unapproved, admins list/approve/delete, and the public
only ever sees approved rows.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from agridoctor.core.database import MAX_ID, get_db
from agridoctor.core.errors import validation_details
from agridoctor.core.security import Principal, check_capability, get_admin_user, get_optional_user
from agridoctor.models.models import Disease, Message, User
from agridoctor.schema.message import (
    CommentSubmission,
    FeedbackSubmission,
    MessageResponse,
    PublicMessageResponse,
    ReviewSubmission,
    StatusUpdate,
    submission_adapter,
)

logger = logging.getLogger(__name__)

ANONYMOUS_NAME = "Anonymous"


def build_message(db: Session, submission, principal: Optional[Principal]) -> Message:
    if isinstance(submission, ReviewSubmission):
        check = check_capability(principal)
        if not check.allowed:
            raise HTTPException(status_code=check.status_code, detail=check.detail)
        if db.get(Disease, submission.disease_id) is None:
            raise HTTPException(status_code=404, detail="Disease not found")
        reviewer = db.get(User, principal.id)
        return Message(
            kind="review",
            target_type="disease",
            target_id=submission.disease_id,
            author_name=reviewer.name if reviewer else None,
            content=submission.content,
            submitted_by=principal.id,
        )
    if isinstance(submission, CommentSubmission):
        return Message(
            kind="comment",
            target_type="post",
            target_id=submission.post_id,
            author_name=submission.author_name or ANONYMOUS_NAME,
            content=submission.content,
        )
    return Message(
        kind="feedback",
        target_type="none",
        author_name=submission.author_name,
        email=submission.email.lower(),
        subject=submission.subject,
        content=submission.content,
        topic=submission.topic,
        status="new",
        submitted_by=principal.id if principal else None,
    )


def submit_message(db: Session, submission, principal: Optional[Principal]) -> Message:
    message = build_message(db, submission, principal)
    db.add(message)
    db.commit()
    db.refresh(message)
    logger.info("New %s %s awaiting moderation", message.kind, message.id)
    return message


def get_message_or_404(db: Session, kind: str, message_id: int) -> Message:
    message = db.query(Message).filter(Message.id == message_id, Message.kind == kind).first()
    if message is None:
        raise HTTPException(status_code=404, detail="Message not found")
    return message


def build_message_router(kind: str, submission_model) -> APIRouter:
    """Mount the moderation endpoints for one message ``kind``."""
    router = APIRouter()

    @router.post("/", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
    def submit(
        submission: submission_model,
        db: Session = Depends(get_db),
        principal: Optional[Principal] = Depends(get_optional_user),
    ):
        return submit_message(db, submission, principal)

    @router.get("/approved", response_model=List[PublicMessageResponse])
    def list_approved(target_id: Optional[int] = Query(None, le=MAX_ID), db: Session = Depends(get_db)):
        query = db.query(Message).filter(Message.kind == kind, Message.approved.is_(True))
        if target_id is not None:
            query = query.filter(Message.target_id == target_id)
        return query.order_by(Message.created_at.desc(), Message.id.desc()).all()

    @router.get("/", response_model=List[MessageResponse])
    def list_all(
        approved: Optional[bool] = Query(None),
        db: Session = Depends(get_db),
        admin: Principal = Depends(get_admin_user),
    ):
        query = db.query(Message).filter(Message.kind == kind)
        if approved is not None:
            query = query.filter(Message.approved == approved)
        return query.order_by(Message.created_at.desc(), Message.id.desc()).all()

    @router.get("/{message_id}", response_model=MessageResponse)
    def get_one(message_id: int = Path(..., le=MAX_ID), db: Session = Depends(get_db), admin: Principal = Depends(get_admin_user)):
        return get_message_or_404(db, kind, message_id)

    @router.patch("/{message_id}/approve", response_model=MessageResponse)
    def approve(message_id: int = Path(..., le=MAX_ID), db: Session = Depends(get_db), admin: Principal = Depends(get_admin_user)):
        message = get_message_or_404(db, kind, message_id)
        message.approved = True
        db.commit()
        db.refresh(message)
        logger.info("Approved %s %s", kind, message_id)
        return message

    @router.delete("/{message_id}")
    def delete(message_id: int = Path(..., le=MAX_ID), db: Session = Depends(get_db), admin: Principal = Depends(get_admin_user)):
        message = get_message_or_404(db, kind, message_id)
        db.delete(message)
        db.commit()
        return {"msg": "Message removed"}

    return router


feedback_router = build_message_router("feedback", FeedbackSubmission)
review_router = build_message_router("review", ReviewSubmission)
comment_router = build_message_router("comment", CommentSubmission)


@feedback_router.put("/{message_id}", response_model=MessageResponse)
def update_feedback_status(
    update_data: StatusUpdate,
    message_id: int = Path(..., le=MAX_ID),
    db: Session = Depends(get_db),
    admin: Principal = Depends(get_admin_user),
):
    message = get_message_or_404(db, "feedback", message_id)
    message.status = update_data.status
    db.commit()
    db.refresh(message)
    return message


# Single entry point taking any variant, tagged by "kind"
message_router = APIRouter()


@message_router.post("/", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def submit_any(
    payload: dict = Body(...),
    db: Session = Depends(get_db),
    principal: Optional[Principal] = Depends(get_optional_user),
):
    try:
        submission = submission_adapter.validate_python(payload)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=validation_details(e))
    return submit_message(db, submission, principal)
