# app/modules/providers/schemas.py
from __future__ import annotations

from datetime import date, time
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, computed_field

from app.modules.availability.timefmt import format_clock


class ResourceKind(str, Enum):
    practitioner = "practitioner"
    room = "room"
    device = "device"


class ResourcePublic(BaseModel):
    id: UUID
    provider_id: UUID
    name: str
    type: ResourceKind
    is_active: bool

    class Config:
        from_attributes = True


class ResourceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    type: ResourceKind = ResourceKind.practitioner


class NextAvailable(BaseModel):
    """Earliest bookable start, in the provider's local date/time."""

    date: date
    time: time

    @computed_field
    @property
    def time_label(self) -> str:
        return format_clock(self.time)


class ProviderPublic(BaseModel):
    id: UUID
    name: str
    display_name: str
    specialty: str
    city: str
    neighborhood: str
    rating: float
    review_count: int
    base_price: Optional[float] = None
    procedures: List[str] = []
    recommendation_reason: Optional[str] = None
    timezone: str
    next_available_date: Optional[date] = None
    next_available_time: Optional[time] = None

    class Config:
        from_attributes = True

    @computed_field
    @property
    def next_available_label(self) -> str:
        # Honest empty state: never invent a date
        if self.next_available_date is None:
            return "Contact for availability"
        d = self.next_available_date
        label = f"{d:%a}, {d:%b} {d.day}"
        if self.next_available_time is not None:
            label = f"{label} at {format_clock(self.next_available_time)}"
        return label
