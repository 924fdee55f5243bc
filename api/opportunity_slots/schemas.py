"""
Pydantic schemas for opportunity-slot payloads.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SlotPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    starts_at: datetime | None = Field(default=None, alias="startsAt")
    ends_at: datetime | None = Field(default=None, alias="endsAt")
    capacity: int | None = Field(default=None, ge=0)
    opportunity: dict[str, Any] | None = None

    @field_validator("starts_at", "ends_at")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        # Naive timestamps from the form are UTC.
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
