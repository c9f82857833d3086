"""
Feedback Router
===============

Mounted at /api/feedback.

    POST   /               public submit (rate limited, decoy-checked)
    GET    /               public-safe listing (?mode=recent|all&status&limit)
    GET    /admin/list     moderator listing, all fields
    PATCH  /{id}           moderator edit of message / status
    DELETE /{id}           moderator delete

Moderator routes use X-Admin-Key checked against the feedback admin key.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from app.core.async_utils import run_sync
from app.core.auth import require_feedback_moderator
from app.models.feedback import (
    FeedbackCategory,
    FeedbackCreate,
    FeedbackStatus,
    FeedbackUpdate,
    ModerationFeedback,
)
from app.models.responses import ErrorResponse, ok
from app.services.feedback_service import FeedbackService
from app.services.rate_limiter import rate_limit


router = APIRouter(responses={400: {"model": ErrorResponse}})


def get_feedback_service(request: Request) -> FeedbackService:
    return FeedbackService(request.app.state.store)


@router.post(
    "",
    summary="Submit feedback",
    dependencies=[Depends(rate_limit("feedback.create"))],
)
async def create_feedback(
    body: FeedbackCreate,
    request: Request,
    service: FeedbackService = Depends(get_feedback_service),
):
    created = await run_sync(service.create, body, request.headers.get("user-agent"))
    return ok(created)


@router.get("", summary="Public-safe feedback listing")
async def list_feedback(
    mode: str = Query("recent"),
    status: Optional[FeedbackStatus] = Query(None),
    limit: Optional[int] = Query(None),
    service: FeedbackService = Depends(get_feedback_service),
):
    items = await run_sync(service.list_public_safe, mode, status, limit)
    return ok({"items": items})


@router.get(
    "/admin/list",
    summary="List feedback for triage",
    dependencies=[Depends(require_feedback_moderator)],
)
async def admin_list_feedback(
    status: Optional[FeedbackStatus] = Query(None),
    category: Optional[FeedbackCategory] = Query(None),
    limit: Optional[int] = Query(None),
    service: FeedbackService = Depends(get_feedback_service),
):
    items = await run_sync(service.list_for_moderation, status, category, limit)
    return ok({"items": items})


@router.patch(
    "/{feedback_id}",
    summary="Edit feedback message or status",
    dependencies=[Depends(require_feedback_moderator)],
    responses={404: {"model": ErrorResponse}},
)
async def update_feedback(
    feedback_id: str,
    body: FeedbackUpdate,
    service: FeedbackService = Depends(get_feedback_service),
):
    record = await run_sync(service.update, feedback_id, body.message, body.status)
    return ok({"feedback": ModerationFeedback.model_validate(record)})


@router.delete(
    "/{feedback_id}",
    summary="Delete feedback",
    dependencies=[Depends(require_feedback_moderator)],
    responses={404: {"model": ErrorResponse}},
)
async def delete_feedback(
    feedback_id: str,
    service: FeedbackService = Depends(get_feedback_service),
):
    await run_sync(service.delete, feedback_id)
    return ok()
