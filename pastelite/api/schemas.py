from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class PasteCreateRequest(BaseModel):
    content: str = Field(..., min_length=1, strict=True, description="Paste content")
    ttl_seconds: Optional[int] = Field(
        default=None,
        ge=1,
        description="Optional lifetime in seconds (>= 1)",
    )
    max_views: Optional[int] = Field(
        default=None,
        ge=1,
        description="Optional maximum number of successful views (>= 1)",
    )

    @field_validator("ttl_seconds", "max_views", mode="before")
    @classmethod
    def _require_json_number(cls, value: Any) -> Any:
        # Integral floats such as 60.0 pass; strings and booleans do not.
        if isinstance(value, (bool, str)):
            raise ValueError("must be an integer")
        return value


class PasteCreatedResponse(BaseModel):
    id: str
    url: str


class PasteViewResponse(BaseModel):
    content: str
    remaining_views: Optional[int]
    expires_at: Optional[str] = Field(
        description="ISO-8601 UTC timestamp, or null when the paste never expires",
    )


class HealthResponse(BaseModel):
    ok: bool = True
