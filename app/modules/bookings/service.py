# app/modules/bookings/service.py
"""
Reservation flow. A reservation either succeeds, returning a ReservationResult,
or fails with SlotAlreadyTakenError and writes nothing.

The booking row and the slot transition (available -> booked) commit
together; the slot claim is a conditional write, so of two concurrent
reservations for one slot exactly one wins. The two follow-up tasks are
written afterwards in their own commit and may fail without undoing the
booking.
"""
from __future__ import annotations

import logging
import uuid
import warnings
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.modules.availability.deriver import recompute_next_available
from app.modules.bookings import repository as repo
from app.modules.bookings.models import Booking, BookingStatus, Task, TaskType
from app.modules.bookings.schemas import (
    BookingListPage,
    BookingPublic,
    ReservationRequest,
    ReservationResult,
    TaskPublic,
)
from app.modules.log import write_audit_log
from app.modules.pricing import table as pricing
from app.modules.providers import repository as providers_repo
from app.modules.providers.models import Provider
from app.modules.slots import repository as slots_repo

logger = logging.getLogger(__name__)


# Custom errors for router mapping to HTTP
class ProviderNotFound(Exception):
    pass


class SlotNotFound(Exception):
    """The chosen slot does not exist or belongs to another provider."""


class SlotAlreadyTakenError(Exception):
    """
    The chosen slot stopped being available before this reservation could
    claim it. Nothing was written; the customer should pick another time.
    """


class PartialTaskCreationFailure(Exception):
    """Booking committed, follow-up tasks did not. Logged, never shown."""

    def __init__(self, booking_id: uuid.UUID, cause: BaseException):
        self.booking_id = booking_id
        self.cause = cause
        super().__init__(f"follow-up tasks not created for booking {booking_id}: {cause}")


class UnknownProcedurePricingWarning(UserWarning):
    """Procedure slug missing from the price table; booking continues unpriced."""


def confirmation_due_at(now: datetime) -> datetime:
    return now + timedelta(days=settings.CONFIRMATION_CALL_DELAY_DAYS)


def follow_up_due_at(preferred_date: date, tz_name: str) -> datetime:
    """Local midnight of preferred_date + FOLLOW_UP_DELAY_DAYS, as a UTC instant."""
    due_day = preferred_date + timedelta(days=settings.FOLLOW_UP_DELAY_DAYS)
    return datetime.combine(due_day, time(0), tzinfo=ZoneInfo(tz_name)).astimezone(timezone.utc)


def _lookup_prices(procedure_slug: str) -> tuple[Optional[float], Optional[float], bool]:
    market = pricing.get_market_price(procedure_slug)
    offered = pricing.get_offered_price(procedure_slug)
    known = pricing.is_known_procedure(procedure_slug)
    if not known:
        logger.warning("no pricing for procedure %r; booking without prices", procedure_slug)
        warnings.warn(
            UnknownProcedurePricingWarning(f"unknown procedure: {procedure_slug}"),
            stacklevel=3,
        )
    return market, offered, known


async def _create_follow_up_tasks(
    db: AsyncSession, booking: Booking, provider: Provider, *, now: datetime
) -> List[Task]:
    # read everything up front: a rollback below expires both instances
    booking_id = booking.id
    user_id = booking.user_id
    name = booking.procedure_name
    follow_up_at = follow_up_due_at(booking.preferred_date, provider.timezone)
    clinic = provider.display_name

    try:
        tasks = [
            await repo.insert_task(
                db,
                user_id=user_id,
                booking_id=booking_id,
                type=TaskType.CONFIRMATION_CALL.value,
                title=f"Confirmation call for {name}",
                description=f"Follow up with client regarding their {name} booking with {clinic}.",
                due_at=confirmation_due_at(now),
            ),
            await repo.insert_task(
                db,
                user_id=user_id,
                booking_id=booking_id,
                type=TaskType.FOLLOW_UP_CALL.value,
                title=f"Post-treatment follow-up for {name}",
                description=f"Check in with client after their {name} treatment.",
                due_at=follow_up_at,
            ),
        ]
        await db.commit()
        return tasks
    except SQLAlchemyError as exc:
        await db.rollback()
        raise PartialTaskCreationFailure(booking_id, exc) from exc


async def reserve_booking(
    db: AsyncSession,
    *,
    user_id: uuid.UUID,
    payload: ReservationRequest,
    now: datetime,
) -> ReservationResult:
    """
    Logic:
    1. Resolve provider (and the chosen slot, if any).
    2. Look up prices; unknown procedures proceed with null prices.
    3. Insert the booking (pending) and, if a slot was chosen, claim it with
       a conditional update. A lost claim rolls back and raises
       SlotAlreadyTakenError.
    4. Recompute the provider's next-available shortcut and commit.
    5. Write the two follow-up tasks in a second commit; failure there is
       logged and audited, and the booking still succeeds.
    """
    provider = await providers_repo.get_provider(db, payload.provider_id)
    if provider is None:
        raise ProviderNotFound("provider_not_found")

    resource_id = None
    if payload.slot_id is not None:
        slot = await slots_repo.get_slot(db, payload.slot_id)
        if slot is None or slot.provider_id != provider.id:
            raise SlotNotFound("slot_not_found")
        resource_id = slot.resource_id

    market, offered, pricing_known = _lookup_prices(payload.procedure_slug)

    booking = Booking(
        id=uuid.uuid4(),
        user_id=user_id,
        provider_id=provider.id,
        resource_id=resource_id,
        slot_id=payload.slot_id,
        procedure_slug=payload.procedure_slug,
        procedure_name=payload.procedure_name,
        preferred_date=payload.preferred_date,
        preferred_time=payload.preferred_time,
        wants_virtual_consult=payload.wants_virtual_consult,
        consult_preferred_date=payload.consult_preferred_date,
        consult_preferred_time=payload.consult_preferred_time,
        investment_level=payload.investment_level.value,
        market_highest_price=market,
        price_paid=offered,
        status=BookingStatus.PENDING.value,
        notes=payload.notes,
    )
    await repo.insert_booking(db, booking)

    if payload.slot_id is not None:
        claimed = await slots_repo.claim_slot(db, slot_id=payload.slot_id, booking_id=booking.id)
        if claimed == 0:
            await db.rollback()
            logger.info(
                "slot %s already taken; booking for user %s discarded", payload.slot_id, user_id
            )
            raise SlotAlreadyTakenError("slot_already_taken")
        await db.refresh(slot)

    await recompute_next_available(db, provider.id, now=now)
    await write_audit_log(
        db,
        user_id,
        "RESERVE_BOOKING",
        f"booking={booking.id} provider={provider.id} slot={payload.slot_id}",
    )
    if not pricing_known:
        await write_audit_log(
            db, user_id, "UNKNOWN_PROCEDURE_PRICING", f"procedure={payload.procedure_slug}"
        )
    await db.commit()

    tasks: List[Task] = []
    tasks_created = True
    try:
        tasks = await _create_follow_up_tasks(db, booking, provider, now=now)
    except PartialTaskCreationFailure as exc:
        tasks_created = False
        logger.warning("%s", exc)
        await write_audit_log(
            db,
            user_id,
            "PARTIAL_TASK_CREATION_FAILURE",
            f"booking={exc.booking_id} cause={exc.cause}",
        )
        await db.commit()
        # rollback expired the booking row
        await db.refresh(booking)

    return ReservationResult(
        booking=BookingPublic.model_validate(booking),
        tasks=[TaskPublic.model_validate(t) for t in tasks],
        tasks_created=tasks_created,
        pricing_known=pricing_known,
    )


async def list_my_bookings(
    db: AsyncSession,
    *,
    user_id: uuid.UUID,
    limit: int = 20,
    offset: int = 0,
) -> BookingListPage:
    """Bookings of the current user, newest first."""
    total = await repo.count_bookings_for_user(db, user_id=user_id)
    rows = await repo.list_bookings_for_user(db, user_id=user_id, limit=limit, offset=offset)
    return BookingListPage(
        items=[BookingPublic.model_validate(b) for b in rows],
        total=total,
        limit=limit,
        offset=offset,
        has_next=offset + limit < total,
    )
