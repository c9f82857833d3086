"""
Shared-key Authorization
========================

Operator endpoints are guarded by static keys sent in a request header:

    moderator           X-Admin-Key    comment moderation (admin_key)
    feedback_moderator  X-Admin-Key    feedback triage (feedback_admin_key)
    service             X-Service-Key  internal identity claim (service_key)

Each role has its own Authorizer with a three-way decision:

    UNCONFIGURED  no key configured for the role -> NotConfigured (501)
    DENIED        header missing or wrong        -> Unauthorized (401)
    GRANTED       constant-time match

Keys are never logged.
"""

import hmac
import logging
from enum import Enum
from typing import Dict, Optional

from fastapi import Request

from app.config import Settings
from app.core.errors import NotConfigured, Unauthorized

logger = logging.getLogger(__name__)

ADMIN_KEY_HEADER = "X-Admin-Key"
SERVICE_KEY_HEADER = "X-Service-Key"


class AuthDecision(str, Enum):
    UNCONFIGURED = "unconfigured"
    DENIED = "denied"
    GRANTED = "granted"


class SharedKeyAuthorizer:
    """Compares a presented header value with one configured key."""

    def __init__(self, role: str, configured_key: Optional[str], header: str = ADMIN_KEY_HEADER):
        self.role = role
        self.header = header
        self._key = configured_key or None

    @property
    def configured(self) -> bool:
        return self._key is not None

    def decide(self, presented: Optional[str]) -> AuthDecision:
        if self._key is None:
            return AuthDecision.UNCONFIGURED
        if not presented:
            return AuthDecision.DENIED
        if hmac.compare_digest(presented.encode("utf-8"), self._key.encode("utf-8")):
            return AuthDecision.GRANTED
        return AuthDecision.DENIED

    def require(self, presented: Optional[str]) -> str:
        """Return the granted role or raise the matching ServiceError."""
        decision = self.decide(presented)
        if decision is AuthDecision.GRANTED:
            return self.role
        if decision is AuthDecision.UNCONFIGURED:
            logger.warning("Operator key not configured: role=%s", self.role)
            raise NotConfigured(detail=f"no key configured for role {self.role}")
        logger.info("Operator key rejected: role=%s header=%s", self.role, self.header)
        raise Unauthorized(detail=f"bad or missing {self.header}")


def build_authorizers(settings: Settings) -> Dict[str, SharedKeyAuthorizer]:
    """One authorizer per operator role, read from settings once at startup."""
    return {
        "moderator": SharedKeyAuthorizer("moderator", settings.admin_key, ADMIN_KEY_HEADER),
        "feedback_moderator": SharedKeyAuthorizer(
            "feedback_moderator", settings.feedback_admin_key, ADMIN_KEY_HEADER
        ),
        "service": SharedKeyAuthorizer("service", settings.service_key, SERVICE_KEY_HEADER),
    }


def require_role(role: str):
    """
    Dependency factory guarding a route with the authorizer for ``role``.

    Usage:
        @router.delete("/{id}", dependencies=[Depends(require_role("moderator"))])
    """

    async def checker(request: Request) -> str:
        authorizer: SharedKeyAuthorizer = request.app.state.authorizers[role]
        return authorizer.require(request.headers.get(authorizer.header))

    return checker


require_moderator = require_role("moderator")
require_feedback_moderator = require_role("feedback_moderator")
require_service = require_role("service")
