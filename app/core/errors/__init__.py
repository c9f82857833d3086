"""
Error code system.

ServiceError is the base exception for all structured errors. Each subclass
is one kind of the service's error taxonomy and carries a default code from
the registry; the error middleware turns it into a structured JSON response.

Usage:
    from app.core.errors import NotFound
    raise NotFound(detail=f"comment {comment_id} not found")
"""

from __future__ import annotations

import re
from typing import Any

CODE_PATTERN = re.compile(r"^CMT-[A-Z]{2,6}-\d{3}$")


class ServiceError(Exception):
    """Structured application error tied to the error registry.

    Args:
        code: Registry error code, e.g. "CMT-API-404". Defaults to the
            class-level ``default_code``.
        detail: Internal-only detail message (never exposed to callers).
        context: Arbitrary key-value context for structured logging.
        details: Caller-facing field-level details (validation errors only).
    """

    default_code = "CMT-SYS-001"

    def __init__(
        self,
        code: str | None = None,
        detail: str | None = None,
        context: dict | None = None,
        details: Any = None,
    ) -> None:
        code = code or self.default_code
        if not CODE_PATTERN.match(code):
            raise ValueError(f"Invalid error code format: {code!r}")
        self.code = code
        self.detail = detail
        self.context = context or {}
        self.details = details
        super().__init__(f"{code}: {detail}" if detail else code)


class ValidationFailed(ServiceError):
    """Malformed or out-of-range input; not retried."""

    default_code = "CMT-API-001"


class RateLimited(ServiceError):
    default_code = "CMT-API-002"


class PayloadTooLarge(ServiceError):
    """Request body over the configured size cap; rejected before parsing."""

    default_code = "CMT-API-413"


class NotFound(ServiceError):
    default_code = "CMT-API-404"


class Unauthorized(ServiceError):
    """Missing or wrong operator credential."""

    default_code = "CMT-SEC-001"


class Forbidden(ServiceError):
    """Ownership proof failed."""

    default_code = "CMT-SEC-002"


class NotConfigured(ServiceError):
    """A required operator credential has no configured value."""

    default_code = "CMT-CFG-001"


class Unexpected(ServiceError):
    """Lower-layer failure; logged with detail, generic to the caller."""

    default_code = "CMT-SYS-001"
