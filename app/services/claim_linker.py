"""
Claim Linker — attaches anonymous comments to a user identity.

When a visitor signs up with the email they used while commenting
anonymously, a trusted internal caller invokes ``claim_by_email``. Every
comment with no ``author_id`` and a matching ``author_email`` (exact match,
as stored) gets the user's id in one bulk write. Status and the ownership
digest are untouched, so a browser still holding the edit key keeps working.

Re-running with the same arguments matches nothing; that is a no-op, not an
error. Comments created after a run wait for the next one.
"""

import logging
from datetime import datetime, timezone

from app.core.database import Store
from app.core.errors import ValidationFailed
from app.core.repository import Repository
from app.models.claim import ClaimResult
from app.models.comment import Comment

logger = logging.getLogger(__name__)


class ClaimLinker:
    def __init__(self, store: Store) -> None:
        self.repo: Repository[Comment] = Repository(store, Comment)

    def claim_by_email(self, user_id: str, email: str) -> ClaimResult:
        if not user_id or not email:
            raise ValidationFailed(
                detail="missing userId or email",
                details=[{"loc": ["userId", "email"], "msg": "Missing userId or email", "type": "missing"}],
            )

        result = self.repo.update_many(
            [
                Comment.author_id.is_(None),  # type: ignore[union-attr]
                Comment.author_email == email,
            ],
            {"author_id": user_id},
            also_set={"updated_at": datetime.now(timezone.utc)},
        )

        logger.info(
            "Comments claimed: user_id=%s matched=%d modified=%d",
            user_id, result.matched, result.modified,
        )
        return ClaimResult(matched=result.matched, modified=result.modified)
