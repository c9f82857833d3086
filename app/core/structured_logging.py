"""
Structured logging for the comments service.

structlog renders every record as one JSON line, to stderr and to a rotating
file. Plain ``logging.getLogger(__name__)`` loggers go through the same
formatter, so module code never imports structlog directly.

Each line carries:
    ts, level, logger, event      standard fields
    service, version              process identity
    request_id, correlation_id    set per request by CorrelationMiddleware

Fields whose name marks them as an ownership secret, digest, operator key or
email are replaced with "[redacted]" before rendering.
"""
from __future__ import annotations

import logging
import logging.handlers
import os
import sys
import time
from contextvars import ContextVar

import structlog

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

APP_VERSION = "1.2.0"
SERVICE_NAME = "catalog-comments-api"

REDACTED = "[redacted]"
_SENSITIVE_MARKERS = ("edit_key", "editkey", "secret", "digest", "email", "admin_key", "service_key")

_QUIET_LOGGERS = ("httpcore", "httpx", "asyncio", "watchfiles", "sqlalchemy.engine", "alembic.runtime")

_process_started = time.time()


def get_uptime_s() -> float:
    return time.time() - _process_started


def _add_service_context(logger, method_name: str, event_dict: dict) -> dict:
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("version", APP_VERSION)
    for key, var in (("request_id", request_id_var), ("correlation_id", correlation_id_var)):
        value = var.get()
        if value:
            event_dict[key] = value
    return event_dict


def _redact_sensitive(logger, method_name: str, event_dict: dict) -> dict:
    for key in list(event_dict):
        lowered = key.lower()
        if any(marker in lowered for marker in _SENSITIVE_MARKERS):
            event_dict[key] = REDACTED
    return event_dict


def _normalize_level(logger, method_name: str, event_dict: dict) -> dict:
    if "level" in event_dict:
        event_dict["level"] = str(event_dict["level"]).lower()
    return event_dict


def _build_formatter() -> structlog.stdlib.ProcessorFormatter:
    pre_chain = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        _normalize_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(),
        _add_service_context,
        _redact_sensitive,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
        structlog.processors.StackInfoRenderer(),
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(default=str),
        ],
    )


def _file_handler(log_dir: str, log_file: str, max_bytes: int, backup_count: int) -> logging.Handler | None:
    try:
        os.makedirs(log_dir, exist_ok=True)
        return logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, log_file),
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
    except OSError as exc:
        # Read-only filesystem: keep going with stderr only
        sys.stderr.write(f"log file disabled ({exc}); logging to stderr only\n")
        return None


def setup_logging(
    log_dir: str = "logs",
    log_file: str = "comments.jsonl",
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    log_level: int | str = logging.INFO,
) -> None:
    """Route all logging through the JSON formatter. Safe to call again (handlers are replaced)."""
    formatter = _build_formatter()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    file_handler = _file_handler(log_dir, log_file, max_bytes, backup_count)
    if file_handler is not None:
        handlers.append(file_handler)

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_comments_owned", False):
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        handler.setFormatter(formatter)
        handler._comments_owned = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(log_level.upper() if isinstance(log_level, str) else log_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
