# app/models.py
"""
Model registry.

Importing this module registers every table on Base.metadata; init_db,
seed_db, the alembic env and the test fixtures rely on it.
"""
from __future__ import annotations

from app.db.base import Base
from app.modules.audit.models import AuditLog
from app.modules.bookings.models import Booking, BookingStatus, Task, TaskStatus, TaskType
from app.modules.providers.models import Provider, Resource, ResourceType, StaffMember
from app.modules.slots.models import BlockReason, Slot, SlotKind

__all__ = [
    "Base",
    "AuditLog",
    "Booking",
    "BookingStatus",
    "Task",
    "TaskStatus",
    "TaskType",
    "Provider",
    "Resource",
    "ResourceType",
    "StaffMember",
    "Slot",
    "SlotKind",
    "BlockReason",
]
