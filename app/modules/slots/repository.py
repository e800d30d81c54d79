# app/modules/slots/repository.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base import utcnow
from app.modules.slots.models import Slot, SlotKind


async def insert_slot(
    db: AsyncSession,
    *,
    provider_id: UUID,
    resource_id: Optional[UUID],
    start_time: datetime,
    end_time: datetime,
    kind: SlotKind = SlotKind.AVAILABLE,
    staff_member_id: Optional[UUID] = None,
    block_reason: Optional[str] = None,
    block_note: Optional[str] = None,
) -> Slot:
    slot = Slot(
        provider_id=provider_id,
        resource_id=resource_id,
        staff_member_id=staff_member_id,
        start_time=start_time,
        end_time=end_time,
        slot_type=kind.value,
        block_reason=block_reason,
        block_note=block_note,
    )
    db.add(slot)
    await db.flush()
    return slot


async def get_slot(db: AsyncSession, slot_id: UUID) -> Optional[Slot]:
    return await db.get(Slot, slot_id)


async def update_slot(db: AsyncSession, *, slot_id: UUID, values: dict[str, Any]) -> int:
    """
    Apply `values` to one slot unless it is booked. Returns affected rows;
    0 means missing or booked (booked rows only change through the
    reservation flow).
    """
    if not values:
        return 0
    stmt = (
        update(Slot)
        .where(Slot.id == slot_id, Slot.slot_type != SlotKind.BOOKED.value)
        .values(**values, updated_at=utcnow())
    )
    res = await db.execute(stmt)
    return res.rowcount or 0  # type: ignore


async def delete_slot(db: AsyncSession, *, slot_id: UUID) -> int:
    res = await db.execute(
        delete(Slot)
        .where(Slot.id == slot_id, Slot.slot_type != SlotKind.BOOKED.value)
    )
    return res.rowcount or 0  # type: ignore


async def claim_slot(db: AsyncSession, *, slot_id: UUID, booking_id: UUID) -> int:
    """
    Compare-and-set available -> booked. Exactly one concurrent caller gets
    rowcount 1; everyone else sees 0.
    """
    res = await db.execute(
        update(Slot)
        .where(Slot.id == slot_id, Slot.slot_type == SlotKind.AVAILABLE.value)
        .values(slot_type=SlotKind.BOOKED.value, booking_id=booking_id, updated_at=utcnow())
    )
    return res.rowcount or 0  # type: ignore


async def query_slots(
    db: AsyncSession,
    *,
    provider_id: UUID,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    kinds: Optional[Iterable[SlotKind]] = None,
    resource_id: Optional[UUID] = None,
    starts_from: Optional[datetime] = None,
) -> Sequence[Slot]:
    """
    Provider-scoped slot query ordered by start.

    start/end select slots overlapping [start, end); starts_from selects
    slots whose start is >= the instant.
    """
    stmt = select(Slot).where(Slot.provider_id == provider_id)
    if resource_id is not None:
        stmt = stmt.where(Slot.resource_id == resource_id)
    if kinds is not None:
        stmt = stmt.where(Slot.slot_type.in_([k.value for k in kinds]))
    if start is not None:
        stmt = stmt.where(Slot.end_time > start)
    if end is not None:
        stmt = stmt.where(Slot.start_time < end)
    if starts_from is not None:
        stmt = stmt.where(Slot.start_time >= starts_from)
    rows = await db.execute(stmt.order_by(Slot.start_time, Slot.id))
    return rows.scalars().all()


async def find_overlapping(
    db: AsyncSession,
    *,
    provider_id: UUID,
    resource_id: Optional[UUID],
    start: datetime,
    end: datetime,
    kinds: Iterable[SlotKind],
    exclude_id: Optional[UUID] = None,
) -> Sequence[Slot]:
    stmt = select(Slot).where(
        Slot.provider_id == provider_id,
        Slot.slot_type.in_([k.value for k in kinds]),
        Slot.start_time < end,
        Slot.end_time > start,
    )
    if resource_id is None:
        stmt = stmt.where(Slot.resource_id.is_(None))
    else:
        stmt = stmt.where(Slot.resource_id == resource_id)
    if exclude_id is not None:
        stmt = stmt.where(Slot.id != exclude_id)
    rows = await db.execute(stmt.order_by(Slot.start_time))
    return rows.scalars().all()


async def earliest_available_start(
    db: AsyncSession, *, provider_id: UUID, now: datetime
) -> Optional[datetime]:
    row = await db.execute(
        select(func.min(Slot.start_time)).where(
            Slot.provider_id == provider_id,
            Slot.slot_type == SlotKind.AVAILABLE.value,
            Slot.start_time >= now,
        )
    )
    return row.scalar_one_or_none()


async def count_slots(db: AsyncSession, *, provider_id: UUID, kind: Optional[SlotKind] = None) -> int:
    stmt = select(func.count()).select_from(Slot).where(Slot.provider_id == provider_id)
    if kind is not None:
        stmt = stmt.where(Slot.slot_type == kind.value)
    return (await db.execute(stmt)).scalar_one()
