from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, EmailStr, Field, TypeAdapter

from agridoctor.core.database import MAX_ID

FeedbackTopic = Literal["general", "feedback", "question", "bug_report"]
FeedbackStatus = Literal["new", "read", "replied", "closed"]


class FeedbackSubmission(BaseModel):
    """Contact form message, not tied to any record."""
    kind: Literal["feedback"] = "feedback"
    author_name: str = Field(..., min_length=1)
    email: EmailStr
    subject: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    topic: FeedbackTopic = "general"

    class Config:
        str_strip_whitespace = True


class ReviewSubmission(BaseModel):
    kind: Literal["review"] = "review"
    disease_id: int = Field(..., le=MAX_ID)
    content: str = Field(..., min_length=1)

    class Config:
        str_strip_whitespace = True


class CommentSubmission(BaseModel):
    kind: Literal["comment"] = "comment"
    post_id: int = Field(..., le=MAX_ID)
    author_name: Optional[str] = None
    content: str = Field(..., min_length=1)

    class Config:
        str_strip_whitespace = True


MessageSubmission = Annotated[
    Union[FeedbackSubmission, ReviewSubmission, CommentSubmission],
    Field(discriminator="kind"),
]

submission_adapter = TypeAdapter(MessageSubmission)


class StatusUpdate(BaseModel):
    status: FeedbackStatus


class PublicMessageResponse(BaseModel):
    id: int
    kind: str
    target_type: str
    target_id: Optional[int] = None
    author_name: Optional[str] = None
    subject: Optional[str] = None
    content: str
    created_at: datetime

    class Config:
        from_attributes = True


class MessageResponse(PublicMessageResponse):
    email: Optional[str] = None
    topic: Optional[str] = None
    status: Optional[str] = None
    submitted_by: Optional[int] = None
    approved: bool
