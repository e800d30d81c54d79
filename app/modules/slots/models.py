# app/modules/slots/models.py
from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum as PyEnum
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, ReprMixin, TimestampMixin, UTCDateTime, UUIDPKMixin


class SlotKind(PyEnum):
    AVAILABLE = "available"
    BLOCKED = "blocked"
    BOOKED = "booked"


class BlockReason(str, PyEnum):
    LUNCH_BREAK = "Lunch Break"
    PERSONAL_TIME = "Personal Time"
    HOLIDAY = "Holiday"
    TRAINING = "Training"
    EQUIPMENT_MAINTENANCE = "Equipment Maintenance"
    OTHER = "Other"


class Slot(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    One time window on a provider's calendar. One row = one slot.
    start/end are UTC instants; [start, end).
    """

    __tablename__ = "availability_slots"

    provider_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("providers.id", ondelete="CASCADE"), nullable=False
    )
    resource_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("resources.id", ondelete="CASCADE"), nullable=True
    )
    staff_member_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("staff_members.id", ondelete="SET NULL"), nullable=True
    )

    start_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    end_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    slot_type: Mapped[str] = mapped_column(
        String(16), nullable=False, default=SlotKind.AVAILABLE.value
    )
    block_reason: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    block_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Set only by the reservation flow
    booking_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("bookings.id", ondelete="SET NULL"), nullable=True
    )

    # Stored for the calendar UI; recurrences are not expanded server-side
    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    recurrence_pattern: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_slots_time_order"),
        CheckConstraint(
            "slot_type IN ('available', 'blocked', 'booked')", name="ck_slots_type_valid"
        ),
        Index("ix_slots_provider_type_start", "provider_id", "slot_type", "start_time"),
        Index("ix_slots_resource_start", "resource_id", "start_time"),
    )

    @property
    def kind(self) -> SlotKind:
        return SlotKind(self.slot_type)

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return self.start_time < end and start < self.end_time
