"""
Comments Router
===============

Mounted at /api/comments.

Public:
    POST   /                 create (rate limited, decoy-checked)
    GET    /{slug}           visible comments for one catalog entry
    PATCH  /{id}/self        owner edit   (body carries editKey)
    DELETE /{id}/self        owner delete (body carries editKey)

Moderator (X-Admin-Key):
    GET    /admin/list       any status, includes author email
    PATCH  /{id}/visible     approve
    PATCH  /{id}/hide        hide
    PATCH  /{id}/status      set status explicitly
    DELETE /{id}             hard delete

/admin/list is declared before /{slug} so it is not captured as a slug.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from app.core.async_utils import run_sync
from app.core.auth import require_moderator
from app.models.comment import (
    CommentCreate,
    CommentSelfDelete,
    CommentSelfEdit,
    CommentStatus,
    CommentStatusUpdate,
    ModerationComment,
)
from app.models.responses import ErrorResponse, ok
from app.services.comment_service import CommentService
from app.services.rate_limiter import rate_limit


router = APIRouter(responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}})


def get_comment_service(request: Request) -> CommentService:
    return CommentService(
        request.app.state.store,
        auto_visible=request.app.state.settings.auto_visible,
    )


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

@router.post(
    "",
    summary="Submit a comment",
    dependencies=[Depends(rate_limit("comments.create"))],
)
async def create_comment(
    body: CommentCreate,
    service: CommentService = Depends(get_comment_service),
):
    created = await run_sync(service.create, body)
    return ok(created)


# ---------------------------------------------------------------------------
# Moderator
# ---------------------------------------------------------------------------

@router.get(
    "/admin/list",
    summary="List comments for moderation",
    dependencies=[Depends(require_moderator)],
)
async def admin_list_comments(
    status: Optional[CommentStatus] = Query(None),
    slug: Optional[str] = Query(None, max_length=200),
    limit: Optional[int] = Query(None),
    service: CommentService = Depends(get_comment_service),
):
    items = await run_sync(service.list_for_moderation, status, slug, limit)
    return ok({"items": items})


@router.patch(
    "/{comment_id}/visible",
    summary="Approve a comment",
    dependencies=[Depends(require_moderator)],
)
async def approve_comment(comment_id: str, service: CommentService = Depends(get_comment_service)):
    record = await run_sync(service.approve, comment_id)
    return ok({"comment": ModerationComment.model_validate(record)})


@router.patch(
    "/{comment_id}/hide",
    summary="Hide a comment",
    dependencies=[Depends(require_moderator)],
)
async def hide_comment(comment_id: str, service: CommentService = Depends(get_comment_service)):
    record = await run_sync(service.hide, comment_id)
    return ok({"comment": ModerationComment.model_validate(record)})


@router.patch(
    "/{comment_id}/status",
    summary="Set a comment's moderation status",
    dependencies=[Depends(require_moderator)],
)
async def set_comment_status(
    comment_id: str,
    body: CommentStatusUpdate,
    service: CommentService = Depends(get_comment_service),
):
    record = await run_sync(service.set_status, comment_id, body.status)
    return ok({"comment": ModerationComment.model_validate(record)})


@router.delete(
    "/{comment_id}",
    summary="Delete a comment",
    dependencies=[Depends(require_moderator)],
)
async def delete_comment(comment_id: str, service: CommentService = Depends(get_comment_service)):
    await run_sync(service.delete, comment_id)
    return ok()


# ---------------------------------------------------------------------------
# Public reads and owner self-service
# ---------------------------------------------------------------------------

@router.get("/{slug}", summary="Visible comments for a catalog entry")
async def list_comments(slug: str, service: CommentService = Depends(get_comment_service)):
    comments = await run_sync(service.list_public, slug)
    return ok({"comments": comments})


@router.patch("/{comment_id}/self", summary="Edit your own comment")
async def self_edit_comment(
    comment_id: str,
    body: CommentSelfEdit,
    service: CommentService = Depends(get_comment_service),
):
    await run_sync(service.self_edit, comment_id, body.body, body.edit_key)
    return ok({"id": comment_id})


@router.delete("/{comment_id}/self", summary="Delete your own comment")
async def self_delete_comment(
    comment_id: str,
    body: Optional[CommentSelfDelete] = None,
    service: CommentService = Depends(get_comment_service),
):
    edit_key = body.edit_key if body else None
    await run_sync(service.self_delete, comment_id, edit_key)
    return ok()
