"""
Request/response guards applied to every route.

- BodySizeLimitMiddleware   — rejects a declared Content-Length above the cap
                              with CMT-API-413 before any body is read
- SecurityHeadersMiddleware — sets conservative browser security headers on
                              every response, error envelopes included
"""
from __future__ import annotations

from typing import Mapping, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from app.core.errors import PayloadTooLarge, ValidationFailed
from app.core.errors.middleware import service_error_handler

DEFAULT_MAX_BODY_BYTES = 16 * 1024

DEFAULT_SECURITY_HEADERS: Mapping[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Resource-Policy": "same-origin",
    "X-DNS-Prefetch-Control": "off",
}


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, max_body_bytes: int = DEFAULT_MAX_BODY_BYTES) -> None:
        super().__init__(app)
        self.max_body_bytes = max_body_bytes

    async def dispatch(self, request: Request, call_next) -> Response:
        declared = request.headers.get("content-length")
        if declared is not None:
            try:
                size = int(declared)
            except ValueError:
                return await service_error_handler(
                    request, ValidationFailed(detail=f"malformed Content-Length {declared[:32]!r}")
                )
            if size > self.max_body_bytes:
                return await service_error_handler(
                    request,
                    PayloadTooLarge(
                        detail=f"body of {size} bytes over {self.max_body_bytes}",
                        context={"limit_bytes": self.max_body_bytes, "declared_bytes": size},
                    ),
                )
        return await call_next(request)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, headers: Optional[Mapping[str, str]] = None) -> None:
        super().__init__(app)
        self.headers = dict(headers or DEFAULT_SECURITY_HEADERS)

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        for name, value in self.headers.items():
            # A route that set its own value keeps it
            response.headers.setdefault(name, value)
        return response
