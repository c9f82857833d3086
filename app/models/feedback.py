"""
Feedback Model
==============

Stores free-form site feedback (bugs, feature requests, content issues).
Feedback has no per-submitter ownership: only moderators triage, edit or
delete it.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field as PydanticField,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel
from sqlalchemy import Column, Text
from sqlmodel import Field, SQLModel

from app.utils.sanitization import blank_to_none, collapse_whitespace, is_http_url


class FeedbackCategory(str, Enum):
    BUG = "bug"
    FEATURE = "feature"
    CONTENT = "content"
    OTHER = "other"


class FeedbackStatus(str, Enum):
    NEW = "new"
    TRIAGED = "triaged"
    CLOSED = "closed"


class Feedback(SQLModel, table=True):
    __tablename__ = "feedback"

    id: str = Field(
        default_factory=lambda: uuid4().hex, primary_key=True, max_length=32
    )
    category: str = Field(index=True, max_length=16)
    message: str = Field(sa_column=Column(Text, nullable=False))
    email: Optional[str] = Field(default=None, max_length=254)
    page_url: Optional[str] = Field(default=None, max_length=2000)
    user_agent: Optional[str] = Field(default=None, max_length=512)
    status: str = Field(default=FeedbackStatus.NEW.value, index=True, max_length=16)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


# Columns exposed by the public (unauthenticated) listing
PUBLIC_FEEDBACK_FIELDS = ("category", "message", "page_url", "status", "created_at")


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class FeedbackCreate(_WireModel):
    category: FeedbackCategory
    message: str = PydanticField(..., min_length=5, max_length=3000)
    email: Optional[EmailStr] = None
    page_url: Optional[str] = PydanticField(None, max_length=2000)
    hp: Optional[str] = None

    @field_validator("message", mode="before")
    @classmethod
    def normalize_message(cls, v):
        return collapse_whitespace(v) if isinstance(v, str) else v

    @field_validator("email", "page_url", mode="before")
    @classmethod
    def blank_optional(cls, v):
        return blank_to_none(v)

    @field_validator("page_url")
    @classmethod
    def absolute_url(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not is_http_url(v):
            raise ValueError("pageUrl must be an absolute http(s) URL")
        return v


class FeedbackUpdate(_WireModel):
    """Moderator edit: at least one of message/status."""

    message: Optional[str] = PydanticField(None, min_length=5, max_length=3000)
    status: Optional[FeedbackStatus] = None

    @field_validator("message", mode="before")
    @classmethod
    def normalize_message(cls, v):
        return collapse_whitespace(v) if isinstance(v, str) else v

    @model_validator(mode="after")
    def require_change(self):
        if self.message is None and self.status is None:
            raise ValueError("No changes provided")
        return self


class FeedbackCreated(_WireModel):
    id: str
    status: FeedbackStatus = FeedbackStatus.NEW


class PublicFeedback(_WireModel):
    model_config = ConfigDict(from_attributes=True)

    category: str
    message: str
    page_url: Optional[str] = None
    status: str
    created_at: datetime


class ModerationFeedback(_WireModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    category: str
    message: str
    email: Optional[str] = None
    page_url: Optional[str] = None
    user_agent: Optional[str] = None
    status: str
    created_at: datetime
    updated_at: datetime
