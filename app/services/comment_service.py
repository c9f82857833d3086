"""
Comment Service — lifecycle of catalog-entry comments.

Covers:
    - create (decoy check, ownership secret minted once, configurable
      initial status)
    - public listing (visible only, email/digest never loaded)
    - moderator listing and status transitions, moderator delete
    - owner self-edit / self-delete gated by the ownership secret

Moderator authorization is enforced by the caller (see app.core.auth);
everything here trusts schema-validated input and performs only semantic
checks: existence, ownership proof, transition legality.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Union
from uuid import uuid4

from app.core.database import Store
from app.core.errors import Forbidden, NotFound, Unexpected, ValidationFailed
from app.core.repository import Repository
from app.models.comment import (
    PUBLIC_COMMENT_FIELDS,
    Comment,
    CommentCreate,
    CommentCreated,
    CommentStatus,
    ModerationComment,
    PublicComment,
)
from app.services import ownership_token, spam_guard
from app.services.moderation import (
    PUBLIC_COMMENT_STATUS,
    allowed_sources,
    ensure_transition,
    initial_comment_status,
)
from app.utils.sanitization import clamp_limit, collapse_whitespace

logger = logging.getLogger(__name__)

PUBLIC_LIST_LIMIT = 200
MODERATION_LIST_DEFAULT = 200
MODERATION_LIST_MAX = 500


def _now() -> datetime:
    return datetime.now(timezone.utc)


class CommentService:
    """Create, read and mutate comments against one store handle."""

    def __init__(self, store: Store, auto_visible: bool = False) -> None:
        self.repo: Repository[Comment] = Repository(store, Comment)
        self.auto_visible = auto_visible

    # -----------------------------------------------------------------------
    # Create
    # -----------------------------------------------------------------------

    def create(self, payload: CommentCreate) -> CommentCreated:
        """Store a new comment and return its id, status and raw edit key.

        A tripped decoy field yields the same response shape (fresh id and
        key) with nothing persisted.
        """
        status = initial_comment_status(self.auto_visible)
        issued = ownership_token.issue()

        if spam_guard.is_decoy_filled(payload.hp, source="comments"):
            return CommentCreated(id=uuid4().hex, status=status, edit_key=issued.secret)

        record = Comment(
            normalized_key=payload.normalized_key,
            brand=payload.brand,
            model=payload.model,
            type=payload.type.value,
            body=collapse_whitespace(payload.body),
            author_name=payload.author_name,
            author_email=str(payload.author_email) if payload.author_email else None,
            edit_key_hash=issued.digest,
            status=status.value,
        )
        created = self.repo.insert_one(record)

        logger.info(
            "Comment created: id=%s key=%s status=%s",
            created.id, created.normalized_key, created.status,
        )
        return CommentCreated(id=created.id, status=status, edit_key=issued.secret)

    # -----------------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------------

    def list_public(self, normalized_key: str) -> List[PublicComment]:
        """Visible comments for one catalog entry, newest first (max 200)."""
        key = (normalized_key or "").strip()
        if not key:
            raise ValidationFailed(
                detail="missing slug",
                details=[{"loc": ["slug"], "msg": "Missing slug", "type": "missing"}],
            )

        rows = self.repo.find_projected(
            PUBLIC_COMMENT_FIELDS,
            Comment.normalized_key == key,
            Comment.status == PUBLIC_COMMENT_STATUS.value,
            order_by=(Comment.created_at.desc(),),
            limit=PUBLIC_LIST_LIMIT,
        )
        return [PublicComment.model_validate(row) for row in rows]

    def list_for_moderation(
        self,
        status: Union[CommentStatus, str, None] = None,
        normalized_key: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[ModerationComment]:
        """All comments (any status) for moderators; includes author email."""
        clauses = []
        if status:
            clauses.append(Comment.status == CommentStatus(status).value)
        if normalized_key and normalized_key.strip():
            clauses.append(Comment.normalized_key == normalized_key.strip())

        records = self.repo.find_many(
            *clauses,
            order_by=(Comment.created_at.desc(),),
            limit=clamp_limit(limit, MODERATION_LIST_DEFAULT, MODERATION_LIST_MAX),
        )
        return [ModerationComment.model_validate(r) for r in records]

    # -----------------------------------------------------------------------
    # Moderation
    # -----------------------------------------------------------------------

    def set_status(self, comment_id: str, target: Union[CommentStatus, str]) -> Comment:
        """Apply a moderator transition in one conditional write."""
        try:
            target = CommentStatus(target)
        except ValueError:
            raise ValidationFailed(
                detail=f"unknown status {target!r}",
                details=[{"loc": ["status"], "msg": "Invalid status", "type": "enum"}],
            )

        sources = allowed_sources(target)
        updated = None
        if sources:
            updated = self.repo.update_one(
                comment_id,
                {"status": target.value, "updated_at": _now()},
                Comment.status.in_([s.value for s in sources]),  # type: ignore[attr-defined]
            )
        if updated is not None:
            logger.info("Comment status set: id=%s status=%s", comment_id, target.value)
            return updated

        current = self.repo.get(comment_id)
        if current is None:
            raise NotFound(detail=f"comment {comment_id} not found")
        ensure_transition(current.status, target)
        raise Unexpected(detail=f"status write for comment {comment_id} matched no row")

    def approve(self, comment_id: str) -> Comment:
        return self.set_status(comment_id, CommentStatus.VISIBLE)

    def hide(self, comment_id: str) -> Comment:
        return self.set_status(comment_id, CommentStatus.HIDDEN)

    def delete(self, comment_id: str) -> None:
        if not self.repo.delete_one(comment_id):
            raise NotFound(detail=f"comment {comment_id} not found")
        logger.info("Comment deleted by moderator: id=%s", comment_id)

    # -----------------------------------------------------------------------
    # Owner self-service
    # -----------------------------------------------------------------------

    def _load_owned(self, comment_id: str, presented_secret: Optional[str]) -> Comment:
        record = self.repo.get(comment_id)
        if record is None:
            raise NotFound(detail=f"comment {comment_id} not found")
        if not ownership_token.verify(presented_secret, record.edit_key_hash):
            raise Forbidden(detail="ownership proof rejected", context={"comment_id": comment_id})
        return record

    def self_edit(self, comment_id: str, new_body: str, presented_secret: Optional[str]) -> Comment:
        """Replace the body of an owned comment. Status is left as is."""
        record = self._load_owned(comment_id, presented_secret)

        updated = self.repo.update_one(
            comment_id,
            {"body": collapse_whitespace(new_body), "updated_at": _now()},
            Comment.edit_key_hash == record.edit_key_hash,
        )
        if updated is None:
            # Deleted between the ownership check and the write
            raise NotFound(detail=f"comment {comment_id} not found")

        logger.info("Comment self-edited: id=%s", comment_id)
        return updated

    def self_delete(self, comment_id: str, presented_secret: Optional[str]) -> None:
        self._load_owned(comment_id, presented_secret)
        if not self.repo.delete_one(comment_id):
            raise NotFound(detail=f"comment {comment_id} not found")
        logger.info("Comment self-deleted: id=%s", comment_id)
