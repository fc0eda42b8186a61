from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from pastebin.services.paste_service import MAX_VIEWS_LIMIT

# Largest duration a timedelta can hold; longer TTLs are capped here.
MAX_TTL_SECONDS = timedelta.max.total_seconds()


class PasteCreateRequest(BaseModel):
    content: Optional[str] = Field(default=None, description="Paste content")
    ttl_seconds: Optional[float] = Field(
        default=None,
        description="Seconds until the paste expires; non-positive means no limit",
    )
    max_views: Optional[int] = Field(
        default=None,
        ge=1,
        le=MAX_VIEWS_LIMIT,
        description="Maximum allowed views (>= 1); omitted means unlimited",
    )

    @field_validator("ttl_seconds", mode="before")
    @classmethod
    def _drop_unusable_ttl(cls, value: Any) -> Optional[float]:
        if value is None or isinstance(value, bool):
            return None
        try:
            ttl = float(value)
        except (TypeError, ValueError):
            return None
        if not math.isfinite(ttl) or ttl <= 0:
            return None
        return min(ttl, MAX_TTL_SECONDS)

    @field_validator("max_views", mode="before")
    @classmethod
    def _reject_boolean_max_views(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("max_views must be an integer")
        return value


class PasteCreateResponse(BaseModel):
    id: str
    url: str


class PasteResponse(BaseModel):
    content: str
    remaining_views: Optional[int]
    expires_at: Optional[datetime]


class HealthResponse(BaseModel):
    ok: bool = True
