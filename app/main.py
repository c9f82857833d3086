from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from app.config import Settings, settings as default_settings
from app.routers import comments, feedback, health, internal
from app.core.auth import build_authorizers
from app.core.database import Store
from app.core.structured_logging import APP_VERSION, setup_logging
from app.core.errors import ServiceError
from app.core.errors.registry import error_registry, exception_codes
from app.core.errors.middleware import (
    request_validation_handler,
    service_error_handler,
    unhandled_exception_handler,
)
from app.core.http_guards import BodySizeLimitMiddleware, SecurityHeadersMiddleware
from app.core.log_middleware import CorrelationMiddleware
from app.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

API_TITLE = "Catalog Comments API"

API_DESCRIPTION = """
## Catalog Comments API

Comments and free-form feedback attached to catalog entries, held for
moderation before public display.

### Authentication

- Public endpoints need no credentials. Anonymous comment authors receive an
  `editKey` once, at creation, and present it to edit or delete their comment.
- Moderation endpoints: `X-Admin-Key`.
- Internal endpoints: `X-Service-Key`.

Every response is wrapped as `{"ok": true, "data": ...}` or
`{"ok": false, "error": {...}}`.
"""

TAGS_METADATA = [
    {
        "name": "health",
        "description": "Health check endpoints for monitoring. No authentication required.",
    },
    {
        "name": "comments",
        "description": "Submit, read, self-edit and moderate catalog-entry comments.",
    },
    {
        "name": "feedback",
        "description": "Site feedback submission and triage.",
    },
    {
        "name": "internal",
        "description": "Service-to-service endpoints. **Requires X-Service-Key.**",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    cfg: Settings = app.state.settings

    setup_logging(log_dir=cfg.log_dir, log_file=cfg.log_file, log_level=cfg.log_level)
    logger.info("Starting %s v%s", cfg.app_name, APP_VERSION)

    error_registry.load()
    unregistered = error_registry.missing(exception_codes())
    if unregistered:
        logger.error("Error classes without a registry entry: %s", ", ".join(unregistered))

    for role, authorizer in app.state.authorizers.items():
        if not authorizer.configured:
            logger.warning("No key configured for role %s; its endpoints will answer 501", role)

    app.state.store.init(run_migrations=cfg.run_migrations)
    logger.info("Database initialized")

    yield

    logger.info("Shutting down %s...", cfg.app_name)
    app.state.store.close()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or default_settings

    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=APP_VERSION,
        openapi_tags=TAGS_METADATA,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.store = Store(settings.database_url, echo=settings.debug)
    app.state.authorizers = build_authorizers(settings)
    app.state.rate_limiters = {
        "comments.create": RateLimiter(
            "comments.create", settings.comment_create_limit, settings.comment_create_window_s
        ),
        "feedback.create": RateLimiter(
            "feedback.create", settings.feedback_create_limit, settings.feedback_create_window_s
        ),
    }

    # Innermost; 413 responses pass back through CORS
    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=settings.max_body_bytes)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(CorrelationMiddleware)

    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(comments.router, prefix="/api/comments", tags=["comments"])
    app.include_router(feedback.router, prefix="/api/feedback", tags=["feedback"])
    app.include_router(internal.router, prefix="/api/internal", tags=["internal"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host=default_settings.host, port=default_settings.port)
