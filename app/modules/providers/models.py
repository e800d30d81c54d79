# app/modules/providers/models.py
from __future__ import annotations

import uuid
from datetime import date, time
from enum import Enum as PyEnum
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, ReprMixin, TimestampMixin, UUIDPKMixin


class ResourceType(PyEnum):
    PRACTITIONER = "practitioner"
    ROOM = "room"
    DEVICE = "device"


class Provider(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    A clinic / practitioner listed on the platform.

    next_available_date / next_available_time are a derived shortcut kept in
    sync by the availability deriver; they are never authoritative.
    """

    __tablename__ = "providers"

    # Account that manages this provider; demo providers have none
    owner_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(nullable=True, index=True)

    name: Mapped[str] = mapped_column(String(120), nullable=False)
    display_name: Mapped[str] = mapped_column(String(120), nullable=False)
    specialty: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    city: Mapped[str] = mapped_column(String(80), nullable=False, default="")
    neighborhood: Mapped[str] = mapped_column(String(80), nullable=False, default="")

    rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    review_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    base_price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    procedures: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    recommendation_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="Europe/London")

    next_available_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    next_available_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)

    resources: Mapped[List["Resource"]] = relationship(
        back_populates="provider",
        cascade="all, delete-orphan",
        order_by="Resource.created_at",
    )
    staff_members: Mapped[List["StaffMember"]] = relationship(
        back_populates="provider",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("rating >= 0 AND rating <= 5", name="ck_providers_rating_range"),
        Index("ix_providers_next_available", "next_available_date"),
    )

    def offers(self, procedure_slug: str) -> bool:
        return procedure_slug in (self.procedures or [])


class Resource(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """A bookable unit (practitioner, room, device) owning its own slot calendar."""

    __tablename__ = "resources"

    provider_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("providers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ResourceType.PRACTITIONER.value
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    provider: Mapped[Provider] = relationship(back_populates="resources")

    __table_args__ = (
        CheckConstraint(
            "type IN ('practitioner', 'room', 'device')", name="ck_resources_type_valid"
        ),
    )


class StaffMember(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    __tablename__ = "staff_members"

    provider_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("providers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    role: Mapped[str] = mapped_column(String(80), nullable=False, default="practitioner")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    provider: Mapped[Provider] = relationship(back_populates="staff_members")
