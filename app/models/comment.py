"""
Comment Models
==============

SQLModel table plus wire schemas for catalog-entry comments.

Tables:
    comments — one row per submitted comment. ``edit_key_hash`` holds the
               SHA-256 digest of the ownership secret; the raw secret is
               never stored and the digest is never serialized.

Wire schemas use camelCase aliases (``normalizedKey``, ``authorEmail``,
``editKey``) and also accept snake_case input.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, EmailStr, Field as PydanticField, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy import Column, Index, Text
from sqlmodel import Field, SQLModel

from app.utils.sanitization import blank_to_none, collapse_whitespace


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CommentType(str, Enum):
    MISSING_DATA = "missing-data"
    CORRECTION = "correction"
    GENERAL = "general"


class CommentStatus(str, Enum):
    PENDING = "pending"
    VISIBLE = "visible"
    HIDDEN = "hidden"


# ---------------------------------------------------------------------------
# Database model (SQLModel)
# ---------------------------------------------------------------------------

class Comment(SQLModel, table=True):
    """Persistent comment attached to a catalog entry (``normalized_key``)."""

    __tablename__ = "comments"
    __table_args__ = (
        Index("ix_comments_key_created", "normalized_key", "created_at"),
    )

    id: str = Field(
        default_factory=lambda: uuid4().hex,
        primary_key=True,
        max_length=32,
    )
    normalized_key: str = Field(index=True, max_length=200)
    brand: Optional[str] = Field(default=None, max_length=120)
    model: Optional[str] = Field(default=None, max_length=120)
    type: str = Field(max_length=32)
    body: str = Field(sa_column=Column(Text, nullable=False))
    author_name: Optional[str] = Field(default=None, max_length=120)
    author_email: Optional[str] = Field(default=None, max_length=254, index=True)
    author_id: Optional[str] = Field(default=None, max_length=64, index=True)
    edit_key_hash: Optional[str] = Field(default=None, max_length=64)
    status: str = Field(default=CommentStatus.PENDING.value, index=True, max_length=16)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


# Columns a public read may load. Email and digest are deliberately absent.
PUBLIC_COMMENT_FIELDS = (
    "id",
    "normalized_key",
    "brand",
    "model",
    "type",
    "body",
    "author_name",
    "author_id",
    "status",
    "created_at",
    "updated_at",
)


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class CommentCreate(_WireModel):
    """Public create payload. ``hp`` is the decoy field and must stay empty."""

    normalized_key: str = PydanticField(..., min_length=1, max_length=200)
    brand: Optional[str] = PydanticField(None, max_length=120)
    model: Optional[str] = PydanticField(None, max_length=120)
    type: CommentType
    body: str = PydanticField(..., min_length=5, max_length=2000)
    author_name: Optional[str] = PydanticField(None, max_length=120)
    author_email: Optional[EmailStr] = None
    hp: Optional[str] = None

    @field_validator("body", mode="before")
    @classmethod
    def normalize_body(cls, v):
        return collapse_whitespace(v) if isinstance(v, str) else v

    @field_validator("brand", "model", "author_name", "author_email", mode="before")
    @classmethod
    def blank_optional(cls, v):
        return blank_to_none(v)


class CommentSelfEdit(_WireModel):
    body: str = PydanticField(..., min_length=5, max_length=2000)
    edit_key: Optional[str] = PydanticField(None, max_length=256)

    @field_validator("body", mode="before")
    @classmethod
    def normalize_body(cls, v):
        return collapse_whitespace(v) if isinstance(v, str) else v


class CommentSelfDelete(_WireModel):
    edit_key: Optional[str] = PydanticField(None, max_length=256)


class CommentStatusUpdate(_WireModel):
    status: CommentStatus


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------

class CommentCreated(_WireModel):
    """Create result. ``edit_key`` is the raw ownership secret, shown ONCE."""

    id: str
    status: CommentStatus
    edit_key: str


class PublicComment(_WireModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    normalized_key: str
    brand: Optional[str] = None
    model: Optional[str] = None
    type: str
    body: str
    author_name: Optional[str] = None
    author_id: Optional[str] = None
    status: str
    created_at: datetime
    updated_at: datetime


class ModerationComment(PublicComment):
    """Moderator view: adds the submitter email, still never the digest."""

    author_email: Optional[str] = None
