"""
Response envelope shared by every route.

Success:  {"ok": true,  "data": ...}
Failure:  {"ok": false, "error": {...}}  (rendered by app.core.errors.middleware)
"""

from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(..., examples=["ok"], description="Service health status")
    version: str = Field(..., examples=["1.2.0"])
    service: str = Field(..., examples=["catalog-comments-api"])
    uptime_s: float = Field(..., description="Seconds since process start")
    timestamp: str = Field(..., description="ISO timestamp")


class ErrorBody(BaseModel):
    code: str = Field(..., examples=["CMT-API-404"])
    title: str
    message: str
    retryable: bool
    user_action_required: bool
    remediation: List[str] = []
    details: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Error envelope (documentation only; produced by the exception handlers)."""
    ok: bool = False
    error: ErrorBody


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, (list, tuple)):
        return [_dump(item) for item in value]
    if isinstance(value, dict):
        return {key: _dump(item) for key, item in value.items()}
    return value


def ok(data: Union[BaseModel, Sequence[Any], Dict[str, Any], None] = None) -> Dict[str, Any]:
    """Wrap a payload in the success envelope, camelCasing model fields.

    ``ok()`` with no payload renders as ``{"ok": true}``.
    """
    if data is None:
        return {"ok": True}
    return {"ok": True, "data": _dump(data)}
