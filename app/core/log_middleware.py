"""
Request correlation middleware.

Binds request_id / correlation_id contextvars for the duration of a request
so every log line emitted while serving it carries them, logs one
``request_completed`` line per request and echoes both ids back as headers.

Caller-supplied ids are only trusted when they look like ids (1-64 chars of
[A-Za-z0-9._-]); anything else is replaced by a fresh uuid so request
headers cannot inject content into the logs.
"""
from __future__ import annotations

import logging
import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.structured_logging import correlation_id_var, request_id_var

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "x-request-id"
CORRELATION_ID_HEADER = "x-correlation-id"

_ID_SHAPE = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

# Probes hit these every few seconds; keep them out of INFO logs
_QUIET_PATHS = frozenset({"/api/health"})


def _incoming_id(request: Request, header: str) -> str:
    value = request.headers.get(header)
    if value and _ID_SHAPE.match(value):
        return value
    return uuid.uuid4().hex


class CorrelationMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = _incoming_id(request, REQUEST_ID_HEADER)
        correlation_id = _incoming_id(request, CORRELATION_ID_HEADER)
        tokens = (request_id_var.set(request_id), correlation_id_var.set(correlation_id))

        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            log = logger.debug if request.url.path in _QUIET_PATHS else logger.info
            log(
                "request_completed",
                extra={
                    "http.method": request.method,
                    "http.path": request.url.path,
                    "http.status_code": status_code,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                },
            )
            request_id_var.reset(tokens[0])
            correlation_id_var.reset(tokens[1])

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response
