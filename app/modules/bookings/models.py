# app/modules/bookings/models.py
from __future__ import annotations

import uuid
from datetime import date, datetime, time
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, ReprMixin, TimestampMixin, UTCDateTime, UUIDPKMixin


class BookingStatus(PyEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskType(PyEnum):
    CONFIRMATION_CALL = "confirmation_call"
    FOLLOW_UP_CALL = "follow_up_call"


class TaskStatus(PyEnum):
    PENDING = "pending"
    COMPLETED = "completed"


class Booking(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    A customer's reservation request. user_id comes from the auth service;
    there is no local users table to reference.
    """

    __tablename__ = "bookings"

    user_id: Mapped[uuid.UUID] = mapped_column(nullable=False)
    provider_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("providers.id", ondelete="RESTRICT"), nullable=False
    )
    resource_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("resources.id", ondelete="SET NULL"), nullable=True
    )
    # availability_slots.booking_id is the enforced side of this link
    slot_id: Mapped[Optional[uuid.UUID]] = mapped_column(nullable=True, index=True)

    procedure_slug: Mapped[str] = mapped_column(String(80), nullable=False)
    procedure_name: Mapped[str] = mapped_column(String(160), nullable=False)

    preferred_date: Mapped[date] = mapped_column(Date, nullable=False)
    preferred_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)

    wants_virtual_consult: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    consult_preferred_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    consult_preferred_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)

    investment_level: Mapped[str] = mapped_column(String(20), nullable=False, default="signature")
    market_highest_price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    price_paid: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=BookingStatus.PENDING.value,
        server_default=BookingStatus.PENDING.value,
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="ck_bookings_status_valid",
        ),
        Index("ix_bookings_user_created", "user_id", "created_at"),
        Index("ix_bookings_provider_date", "provider_id", "preferred_date"),
    )


class Task(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """Concierge follow-up derived from a booking."""

    __tablename__ = "tasks"

    user_id: Mapped[uuid.UUID] = mapped_column(nullable=False)
    booking_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"), nullable=True, index=True
    )
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    due_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=TaskStatus.PENDING.value,
        server_default=TaskStatus.PENDING.value,
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "type IN ('confirmation_call', 'follow_up_call')", name="ck_tasks_type_valid"
        ),
        CheckConstraint("status IN ('pending', 'completed')", name="ck_tasks_status_valid"),
    )
