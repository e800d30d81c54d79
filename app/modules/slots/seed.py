# app/modules/slots/seed.py
"""Demo calendar for seeded providers."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterator, Optional
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.slots import repository as repo
from app.modules.slots.models import BlockReason, SlotKind

# (start, end, kind, block reason) in provider-local clock time
DAY_TEMPLATE = (
    (time(9), time(12), SlotKind.AVAILABLE, None),
    (time(12), time(13), SlotKind.BLOCKED, BlockReason.LUNCH_BREAK),
    (time(13), time(17), SlotKind.AVAILABLE, None),
)


@dataclass(frozen=True)
class SlotSeed:
    start_time: datetime
    end_time: datetime
    kind: SlotKind
    block_reason: Optional[str] = None


def generate_demo_slots(first_day: date, days: int, tz_name: str) -> Iterator[SlotSeed]:
    """Weekdays only; weekends stay empty."""
    tz = ZoneInfo(tz_name)
    for offset in range(days):
        day = first_day + timedelta(days=offset)
        if day.weekday() >= 5:
            continue
        for start, end, kind, reason in DAY_TEMPLATE:
            yield SlotSeed(
                start_time=datetime.combine(day, start, tzinfo=tz).astimezone(timezone.utc),
                end_time=datetime.combine(day, end, tzinfo=tz).astimezone(timezone.utc),
                kind=kind,
                block_reason=reason.value if reason else None,
            )


async def seed_provider_slots(
    db: AsyncSession,
    *,
    provider_id: UUID,
    resource_id: UUID,
    tz_name: str,
    first_day: date,
    days: int = 14,
) -> int:
    """Insert the demo calendar for one resource. Returns the number of slots written."""
    count = 0
    for seed in generate_demo_slots(first_day, days, tz_name):
        await repo.insert_slot(
            db,
            provider_id=provider_id,
            resource_id=resource_id,
            start_time=seed.start_time,
            end_time=seed.end_time,
            kind=seed.kind,
            block_reason=seed.block_reason,
        )
        count += 1
    return count
