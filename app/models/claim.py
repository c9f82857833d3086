"""Wire schemas for the internal identity-claim endpoint."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class ClaimByEmailRequest(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    user_id: str = Field(..., min_length=1, max_length=64)
    email: EmailStr


class ClaimResult(BaseModel):
    """Counts from one bulk claim. ``matched`` == 0 on an idempotent re-run."""

    matched: int = 0
    modified: int = 0
