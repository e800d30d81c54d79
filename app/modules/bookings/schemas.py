# app/modules/bookings/schemas.py
from __future__ import annotations

from datetime import date, datetime, time
from enum import Enum
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator

from app.modules.availability.timefmt import format_clock, parse_clock
from app.modules.pricing.table import get_investment_tier


class InvestmentLevel(str, Enum):
    signature = "signature"
    premier = "premier"
    exclusive = "exclusive"


def _clock(v):
    # "2:00 PM" and "14:00" are both accepted; stored as a time
    if v is None or v == "":
        return None
    if isinstance(v, time):
        return v
    return parse_clock(str(v))


class ReservationRequest(BaseModel):
    """
    Payload to reserve. user_id is taken from the bearer token, never from
    the client. slot_id is present only when the customer picked a real slot.
    """

    provider_id: UUID
    procedure_slug: str = Field(..., min_length=1, max_length=80)
    procedure_name: str = Field(..., min_length=1, max_length=160)
    preferred_date: date
    preferred_time: Optional[time] = None
    slot_id: Optional[UUID] = None
    investment_level: InvestmentLevel = InvestmentLevel.signature
    wants_virtual_consult: bool = False
    consult_preferred_date: Optional[date] = None
    consult_preferred_time: Optional[time] = None
    notes: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("preferred_time", "consult_preferred_time", mode="before")
    @classmethod
    def parse_time_label(cls, v):
        return _clock(v)

    @model_validator(mode="after")
    def consult_fields(self):
        if not self.wants_virtual_consult:
            self.consult_preferred_date = None
            self.consult_preferred_time = None
        return self


class BookingPublic(BaseModel):
    id: UUID
    user_id: UUID
    provider_id: UUID
    resource_id: Optional[UUID] = None
    slot_id: Optional[UUID] = None
    procedure_slug: str
    procedure_name: str
    preferred_date: date
    preferred_time: Optional[time] = None
    wants_virtual_consult: bool
    consult_preferred_date: Optional[date] = None
    consult_preferred_time: Optional[time] = None
    investment_level: str
    market_highest_price: Optional[float] = None
    price_paid: Optional[float] = None
    status: str
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @computed_field
    @property
    def preferred_time_label(self) -> Optional[str]:
        return format_clock(self.preferred_time) if self.preferred_time else None

    @computed_field
    @property
    def investment_tier_label(self) -> str:
        return get_investment_tier(self.investment_level).label

    @computed_field
    @property
    def investment_range(self) -> str:
        return get_investment_tier(self.investment_level).range


class TaskPublic(BaseModel):
    id: UUID
    booking_id: Optional[UUID] = None
    type: str
    title: str
    description: Optional[str] = None
    due_at: datetime
    status: str

    class Config:
        from_attributes = True


class ReservationResult(BaseModel):
    """
    Outcome of a reservation. `tasks_created` is False when the follow-up
    tasks could not be written; the booking stands regardless.
    """

    state: Literal["succeeded"] = "succeeded"
    booking: BookingPublic
    tasks: List[TaskPublic] = []
    tasks_created: bool = True
    pricing_known: bool = True


class BookingListPage(BaseModel):
    items: List[BookingPublic]
    total: int
    limit: int
    offset: int
    has_next: bool
