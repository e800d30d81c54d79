# app/modules/slots/schemas.py
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from app.modules.slots.models import BlockReason


class EditableKind(str, Enum):
    """Kinds a provider may set directly; `booked` is reserved for the reservation flow."""

    available = "available"
    blocked = "blocked"


class SlotKindOut(str, Enum):
    available = "available"
    blocked = "blocked"
    booked = "booked"


class StyleHint(str, Enum):
    positive = "positive"            # available
    neutral = "neutral"              # blocked
    informational = "informational"  # booked


def _require_aware(v: Optional[datetime]) -> Optional[datetime]:
    if v is not None and v.tzinfo is None:
        raise ValueError("datetime must include a timezone offset")
    return v


class SlotCreate(BaseModel):
    start_time: datetime = Field(..., description="ISO time with timezone")
    end_time: datetime = Field(..., description="ISO time with timezone")
    kind: EditableKind = EditableKind.available
    resource_id: Optional[UUID] = None
    staff_member_id: Optional[UUID] = None
    block_reason: Optional[BlockReason] = None
    block_note: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("start_time", "end_time")
    @classmethod
    def check_aware(cls, v):
        return _require_aware(v)

    @field_validator("end_time")
    @classmethod
    def end_after_start(cls, v, info):
        start = info.data.get("start_time")
        if start and v <= start:
            raise ValueError("end_time must be after start_time")
        return v


class SlotUpdate(BaseModel):
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    kind: Optional[EditableKind] = None
    staff_member_id: Optional[UUID] = None
    block_reason: Optional[BlockReason] = None
    block_note: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("start_time", "end_time")
    @classmethod
    def check_aware(cls, v):
        return _require_aware(v)

    @model_validator(mode="after")
    def end_after_start(self):
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class SlotPublic(BaseModel):
    id: UUID
    provider_id: UUID
    resource_id: Optional[UUID] = None
    staff_member_id: Optional[UUID] = None
    start_time: datetime
    end_time: datetime
    slot_type: SlotKindOut
    block_reason: Optional[str] = None
    block_note: Optional[str] = None
    booking_id: Optional[UUID] = None

    class Config:
        from_attributes = True


class CalendarEntry(BaseModel):
    """A slot prepared for the provider calendar surface."""

    slot: SlotPublic
    title: str
    style: StyleHint
