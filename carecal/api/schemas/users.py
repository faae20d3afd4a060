"""Pydantic schemas for user timezone preferences."""
from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, Field


class TimezoneUpdate(BaseModel):
    timezone: str = Field(..., max_length=64, examples=["Europe/Berlin"])


class TimezoneResponse(BaseModel):
    user_id: UUID
    timezone: str
