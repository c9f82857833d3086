"""Text normalization helpers shared by request schemas and services."""

import re
from typing import Optional
from urllib.parse import urlparse

_WHITESPACE_RUN = re.compile(r"\s+")

MAX_USER_AGENT_LENGTH = 512


def collapse_whitespace(value: str) -> str:
    """Collapse every run of whitespace (newlines included) to one space and trim.

    Comment bodies and feedback messages are stored in this form so that
    length limits apply to what is actually displayed.
    """
    return _WHITESPACE_RUN.sub(" ", value).strip()


def blank_to_none(value: Optional[str]) -> Optional[str]:
    """Treat empty / whitespace-only optional fields as absent."""
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value


def is_http_url(value: str) -> bool:
    """True for absolute http(s) URLs with a host."""
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def clip_user_agent(value: Optional[str]) -> Optional[str]:
    """Header values are stored as-is but bounded in length."""
    if not value:
        return None
    return value[:MAX_USER_AGENT_LENGTH]


def clamp_limit(value: Optional[int], default: int, maximum: int) -> int:
    """Bound a caller-supplied page size to 1..maximum; 0 / None mean default."""
    if not value:
        return default
    return min(max(int(value), 1), maximum)
