# app/modules/bookings/repository.py
from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.bookings.models import Booking, Task, TaskStatus


async def insert_booking(db: AsyncSession, booking: Booking) -> Booking:
    db.add(booking)
    await db.flush()
    return booking


async def get_booking(db: AsyncSession, booking_id: UUID) -> Optional[Booking]:
    return await db.get(Booking, booking_id)


async def insert_task(
    db: AsyncSession,
    *,
    user_id: UUID,
    booking_id: UUID,
    type: str,
    title: str,
    description: Optional[str],
    due_at: datetime,
) -> Task:
    task = Task(
        user_id=user_id,
        booking_id=booking_id,
        type=type,
        title=title,
        description=description,
        due_at=due_at,
        status=TaskStatus.PENDING.value,
    )
    db.add(task)
    await db.flush()
    return task


async def list_tasks_for_booking(db: AsyncSession, *, booking_id: UUID) -> Sequence[Task]:
    rows = await db.execute(
        select(Task).where(Task.booking_id == booking_id).order_by(Task.due_at)
    )
    return rows.scalars().all()


async def count_bookings_for_user(db: AsyncSession, *, user_id: UUID) -> int:
    stmt = select(func.count()).select_from(Booking).where(Booking.user_id == user_id)
    return (await db.execute(stmt)).scalar_one()


async def list_bookings_for_user(
    db: AsyncSession, *, user_id: UUID, limit: int, offset: int
) -> Sequence[Booking]:
    rows = await db.execute(
        select(Booking)
        .where(Booking.user_id == user_id)
        .order_by(Booking.created_at.desc(), Booking.id)
        .limit(limit)
        .offset(offset)
    )
    return rows.scalars().all()
