# app/modules/availability/query.py
"""
Customer-side availability.

Open `available` slots are cut into fixed offer increments, grouped by the
provider's local calendar date and ordered by clock time. Increments that
intersect a blocked or booked range on the same resource are withheld.
"""
from __future__ import annotations

import itertools
import logging
from datetime import date, datetime, time, timedelta
from typing import Iterable, Iterator, Mapping, Optional, Sequence
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.modules.availability.schemas import (
    AvailabilityPublic,
    CandidateTime,
    DayWindows,
    QuickPick,
)
from app.modules.availability.timefmt import format_clock, minutes_since_midnight, parse_clock
from app.modules.providers import repository as providers_repo
from app.modules.slots import repository as slots_repo
from app.modules.slots.models import Slot, SlotKind

logger = logging.getLogger(__name__)

INDICATIVE_NOTICE = "Showing indicative times"
QUICK_PICK_LABELS = ("Earliest", "This Week", "Next Available")


class ProviderNotFound(Exception):
    pass


def _is_withheld(start: datetime, end: datetime, resource_id: Optional[UUID], blockers: Sequence[Slot]) -> bool:
    for b in blockers:
        # a blocker without a resource covers the whole provider
        if b.resource_id is not None and b.resource_id != resource_id:
            continue
        if b.overlaps(start, end):
            return True
    return False


def _expand(
    slot: Slot,
    *,
    tz: ZoneInfo,
    increment: timedelta,
    blockers: Sequence[Slot],
    staff_names: Mapping[UUID, str],
) -> Iterator[tuple[date, CandidateTime]]:
    staff_name = staff_names.get(slot.staff_member_id) if slot.staff_member_id else None
    current = slot.start_time
    while current < slot.end_time:
        step_end = min(current + increment, slot.end_time)
        if not _is_withheld(current, step_end, slot.resource_id, blockers):
            local = current.astimezone(tz)
            clock = local.time().replace(tzinfo=None)
            yield local.date(), CandidateTime(
                label=format_clock(clock),
                minutes=minutes_since_midnight(clock),
                start=current,
                slot_id=slot.id,
                staff_name=staff_name,
            )
        current += increment


def iter_bookable_windows(
    slots: Iterable[Slot],
    *,
    tz_name: str,
    increment_minutes: int,
    blockers: Sequence[Slot] = (),
    staff_names: Optional[Mapping[UUID, str]] = None,
) -> Iterator[DayWindows]:
    """
    Lazily yield one DayWindows per local date, in date order.

    `slots` are the provider's available slots, normally in start order.
    Within a date, the first candidate seen for a clock time wins and the
    survivors are ordered by minutes since midnight.
    """
    if increment_minutes <= 0:
        raise ValueError("increment_minutes must be positive")
    tz = ZoneInfo(tz_name)
    increment = timedelta(minutes=increment_minutes)
    names = staff_names or {}

    candidates = itertools.chain.from_iterable(
        _expand(s, tz=tz, increment=increment, blockers=blockers, staff_names=names)
        for s in slots
    )
    # slots that cross midnight can revisit an earlier date, so group fully
    by_day: dict[date, dict[int, CandidateTime]] = {}
    for day, cand in candidates:
        by_day.setdefault(day, {}).setdefault(cand.minutes, cand)
    for day in sorted(by_day):
        times = sorted(by_day[day].values(), key=lambda c: c.minutes)
        yield DayWindows(date=day, times=times)


async def get_bookable_windows(
    db: AsyncSession,
    provider_id: UUID,
    from_instant: datetime,
    *,
    increment_minutes: Optional[int] = None,
) -> list[DayWindows]:
    """Real inventory only; empty when the provider has no open slots."""
    provider = await providers_repo.get_provider(db, provider_id)
    if provider is None:
        raise ProviderNotFound("provider_not_found")

    slots = await slots_repo.query_slots(
        db, provider_id=provider_id, kinds=[SlotKind.AVAILABLE], starts_from=from_instant
    )
    if not slots:
        return []
    blockers = await slots_repo.query_slots(
        db,
        provider_id=provider_id,
        kinds=[SlotKind.BLOCKED, SlotKind.BOOKED],
        start=from_instant,
    )
    staff_names = await providers_repo.get_staff_names(db, provider_id=provider_id)
    return list(
        iter_bookable_windows(
            slots,
            tz_name=provider.timezone,
            increment_minutes=increment_minutes or settings.OFFER_INCREMENT_MINUTES,
            blockers=blockers,
            staff_names=staff_names,
        )
    )


def indicative_windows(
    from_instant: datetime,
    *,
    tz_name: str,
    days: Optional[int] = None,
    times: Optional[Sequence[str]] = None,
) -> list[DayWindows]:
    """
    Static times-of-day across the next `days` local dates, starting
    tomorrow. These are not inventory: no start instant, no slot.
    """
    first = from_instant.astimezone(ZoneInfo(tz_name)).date() + timedelta(days=1)
    clocks: list[time] = sorted(
        (parse_clock(t) for t in (times or settings.FALLBACK_TIMES)),
        key=minutes_since_midnight,
    )
    candidates = [
        CandidateTime(label=format_clock(c), minutes=minutes_since_midnight(c)) for c in clocks
    ]
    return [
        DayWindows(date=first + timedelta(days=i), times=list(candidates))
        for i in range(days if days is not None else settings.FALLBACK_DAYS)
    ]


def quick_picks(windows: Sequence[DayWindows], count: Optional[int] = None) -> list[QuickPick]:
    """First candidate of each of the first `count` dates."""
    n = min(count if count is not None else settings.QUICK_PICK_COUNT, len(QUICK_PICK_LABELS))
    return [
        QuickPick(label=label, date=day.date, time=day.times[0])
        for label, day in zip(QUICK_PICK_LABELS[:n], windows)
        if day.times
    ]


async def get_customer_availability(
    db: AsyncSession,
    provider_id: UUID,
    from_instant: datetime,
) -> AvailabilityPublic:
    """
    Logic:
    1. A provider with open slots gets real bookable windows (possibly
       empty when everything is blocked or booked).
    2. A provider with no open slots at all gets the indicative fallback,
       flagged as such.
    3. Quick picks are offered only for real inventory.
    """
    provider = await providers_repo.get_provider(db, provider_id)
    if provider is None:
        raise ProviderNotFound("provider_not_found")

    has_inventory = await slots_repo.earliest_available_start(
        db, provider_id=provider_id, now=from_instant
    ) is not None
    if has_inventory:
        windows = await get_bookable_windows(db, provider_id, from_instant)
        return AvailabilityPublic(
            provider_id=provider_id,
            is_indicative=False,
            days=windows,
            quick_picks=quick_picks(windows),
        )

    logger.info("provider %s has no open slots, serving indicative times", provider_id)
    return AvailabilityPublic(
        provider_id=provider_id,
        is_indicative=True,
        notice=INDICATIVE_NOTICE,
        days=indicative_windows(from_instant, tz_name=provider.timezone),
    )
