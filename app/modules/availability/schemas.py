# app/modules/availability/schemas.py
from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel


class CandidateTime(BaseModel):
    """
    One offer-able start time. `minutes` (since local midnight) is the sort
    key; `label` is display only. Indicative (fallback) times carry no
    start instant and no slot.
    """

    label: str
    minutes: int
    start: Optional[datetime] = None
    slot_id: Optional[UUID] = None
    staff_name: Optional[str] = None


class DayWindows(BaseModel):
    date: date
    times: List[CandidateTime]


class QuickPick(BaseModel):
    label: str
    date: date
    time: CandidateTime


class AvailabilityPublic(BaseModel):
    provider_id: UUID
    is_indicative: bool
    notice: Optional[str] = None
    days: List[DayWindows]
    quick_picks: List[QuickPick] = []
