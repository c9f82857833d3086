"""
Internal Router
===============

Mounted at /api/internal. Service-to-service calls only, authenticated by
X-Service-Key (distinct from the moderator keys).

    POST /comments/claim-by-email   attach anonymous comments to a user id
"""


from fastapi import APIRouter, Depends, Request

from app.core.async_utils import run_sync
from app.core.auth import require_service
from app.models.claim import ClaimByEmailRequest
from app.models.responses import ok
from app.services.claim_linker import ClaimLinker


router = APIRouter(dependencies=[Depends(require_service)])


@router.post("/comments/claim-by-email", summary="Claim anonymous comments by email")
async def claim_by_email(body: ClaimByEmailRequest, request: Request):
    linker = ClaimLinker(request.app.state.store)
    result = await run_sync(linker.claim_by_email, body.user_id, str(body.email))
    return ok(result)
