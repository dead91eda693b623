from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from agridoctor.core.database import Base

USER_ROLES = ("admin", "farmer", "student_lecturer")

MESSAGE_KINDS = ("feedback", "review", "comment")
TARGET_TYPES = ("none", "disease", "post")
FEEDBACK_TOPICS = ("general", "feedback", "question", "bug_report")
FEEDBACK_STATUSES = ("new", "read", "replied", "closed")


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)  # bcrypt hash
    role = Column(String, nullable=False, default="farmer")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    diseases = relationship("Disease", back_populates="creator")
    messages = relationship("Message", back_populates="submitter")


class Category(Base):
    __tablename__ = "categories"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, index=True, nullable=False)
    description = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    diseases = relationship("Disease", back_populates="category")


class Disease(Base):
    __tablename__ = "diseases"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, index=True, nullable=False)
    description = Column(Text, nullable=False)
    symptoms = Column(Text, nullable=False)
    causes = Column(Text, nullable=True)
    prevention = Column(Text, nullable=False)
    treatment = Column(Text, nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    images = Column(JSON, nullable=False, default=list)  # ["/uploads/<file>", ...]
    # Soft reference: deleting the user keeps the disease
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    category = relationship("Category", back_populates="diseases")
    creator = relationship("User", back_populates="diseases")


class Message(Base):
    """User-submitted text awaiting moderation.

    ``kind`` selects the variant: contact ``feedback`` (no target),
    disease ``review`` and post ``comment``. Only approved rows are shown
    publicly.
    """
    __tablename__ = "messages"
    id = Column(Integer, primary_key=True, index=True)
    kind = Column(String, index=True, nullable=False)
    target_type = Column(String, nullable=False, default="none")
    target_id = Column(Integer, index=True, nullable=True)
    content = Column(Text, nullable=False)
    author_name = Column(String, nullable=True)
    email = Column(String, nullable=True)
    subject = Column(String, nullable=True)
    topic = Column(String, nullable=True)
    status = Column(String, nullable=True)
    submitted_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    submitter = relationship("User", back_populates="messages")
