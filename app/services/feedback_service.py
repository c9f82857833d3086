"""
Feedback Service — creation and moderator triage of site feedback.

Feedback has a single moderation axis (new -> triaged -> closed, freely
reassignable) and no owner self-service. The public listing exposes only
category, message, page URL, status and creation time.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Union
from uuid import uuid4

from app.core.database import Store
from app.core.errors import NotFound, ValidationFailed
from app.core.repository import Repository
from app.models.feedback import (
    PUBLIC_FEEDBACK_FIELDS,
    Feedback,
    FeedbackCategory,
    FeedbackCreate,
    FeedbackCreated,
    FeedbackStatus,
    ModerationFeedback,
    PublicFeedback,
)
from app.services import spam_guard
from app.services.moderation import public_feedback_statuses
from app.utils.sanitization import clamp_limit, clip_user_agent, collapse_whitespace

logger = logging.getLogger(__name__)

PUBLIC_LIST_DEFAULT = 50
PUBLIC_LIST_MAX = 200
MODERATION_LIST_DEFAULT = 200
MODERATION_LIST_MAX = 500


class FeedbackService:
    def __init__(self, store: Store) -> None:
        self.repo: Repository[Feedback] = Repository(store, Feedback)

    def create(self, payload: FeedbackCreate, user_agent: Optional[str] = None) -> FeedbackCreated:
        """Store feedback as ``new``. A tripped decoy field stores nothing."""
        if spam_guard.is_decoy_filled(payload.hp, source="feedback"):
            return FeedbackCreated(id=uuid4().hex)

        created = self.repo.insert_one(
            Feedback(
                category=payload.category.value,
                message=collapse_whitespace(payload.message),
                email=str(payload.email) if payload.email else None,
                page_url=payload.page_url,
                user_agent=clip_user_agent(user_agent),
                status=FeedbackStatus.NEW.value,
            )
        )
        logger.info("Feedback created: id=%s category=%s", created.id, created.category)
        return FeedbackCreated(id=created.id, status=FeedbackStatus(created.status))

    def list_public_safe(
        self,
        mode: str = "recent",
        status: Union[FeedbackStatus, str, None] = None,
        limit: Optional[int] = None,
    ) -> List[PublicFeedback]:
        statuses = public_feedback_statuses(mode, status)
        if not statuses:
            return []

        rows = self.repo.find_projected(
            PUBLIC_FEEDBACK_FIELDS,
            Feedback.status.in_(sorted(s.value for s in statuses)),  # type: ignore[attr-defined]
            order_by=(Feedback.created_at.desc(),),
            limit=clamp_limit(limit, PUBLIC_LIST_DEFAULT, PUBLIC_LIST_MAX),
        )
        return [PublicFeedback.model_validate(row) for row in rows]

    def list_for_moderation(
        self,
        status: Union[FeedbackStatus, str, None] = None,
        category: Union[FeedbackCategory, str, None] = None,
        limit: Optional[int] = None,
    ) -> List[ModerationFeedback]:
        clauses = []
        if status:
            clauses.append(Feedback.status == FeedbackStatus(status).value)
        if category:
            clauses.append(Feedback.category == FeedbackCategory(category).value)

        records = self.repo.find_many(
            *clauses,
            order_by=(Feedback.created_at.desc(),),
            limit=clamp_limit(limit, MODERATION_LIST_DEFAULT, MODERATION_LIST_MAX),
        )
        return [ModerationFeedback.model_validate(r) for r in records]

    def update(
        self,
        feedback_id: str,
        message: Optional[str] = None,
        status: Union[FeedbackStatus, str, None] = None,
    ) -> Feedback:
        """Moderator edit of message and/or triage status."""
        patch = {}
        if message is not None:
            patch["message"] = collapse_whitespace(message)
        if status is not None:
            patch["status"] = FeedbackStatus(status).value
        if not patch:
            raise ValidationFailed(
                detail="no changes provided",
                details=[{"loc": [], "msg": "No changes provided", "type": "value_error"}],
            )

        patch["updated_at"] = datetime.now(timezone.utc)
        updated = self.repo.update_one(feedback_id, patch)
        if updated is None:
            raise NotFound(detail=f"feedback {feedback_id} not found")

        logger.info("Feedback updated: id=%s fields=%s", feedback_id, sorted(patch))
        return updated

    def delete(self, feedback_id: str) -> None:
        if not self.repo.delete_one(feedback_id):
            raise NotFound(detail=f"feedback {feedback_id} not found")
        logger.info("Feedback deleted: id=%s", feedback_id)
