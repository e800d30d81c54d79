# app/modules/availability/deriver.py
"""
Next-available shortcut on the provider row.

The shortcut is a projection of the slot store: the earliest `available`
slot starting at or after now, across all of the provider's resources,
expressed in the provider's local date and time. It is recomputed in the
same transaction as every slot mutation; `sync_all_next_available` is a
repair job for rows written by other tools.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.providers import repository as providers_repo
from app.modules.providers.schemas import NextAvailable
from app.modules.slots import repository as slots_repo

logger = logging.getLogger(__name__)


def to_local(instant: datetime, tz_name: str) -> datetime:
    return instant.astimezone(ZoneInfo(tz_name))


async def compute_next_available(
    db: AsyncSession, *, provider_id: UUID, tz_name: str, now: datetime
) -> Optional[NextAvailable]:
    earliest = await slots_repo.earliest_available_start(db, provider_id=provider_id, now=now)
    if earliest is None:
        return None
    local = to_local(earliest, tz_name)
    return NextAvailable(date=local.date(), time=local.time().replace(tzinfo=None))


async def recompute_next_available(
    db: AsyncSession, provider_id: UUID, *, now: datetime
) -> Optional[NextAvailable]:
    """
    Recompute and store the shortcut. Returns the new value, or None when
    the provider has no future available slot (both fields are then null).
    """
    provider = await providers_repo.get_provider(db, provider_id)
    if provider is None:
        return None

    await db.flush()
    nxt = await compute_next_available(
        db, provider_id=provider_id, tz_name=provider.timezone, now=now
    )
    await providers_repo.set_next_available(
        db,
        provider,
        next_date=nxt.date if nxt else None,
        next_time=nxt.time if nxt else None,
    )
    logger.debug("next available for provider %s -> %s", provider_id, nxt)
    return nxt


async def sync_all_next_available(db: AsyncSession, *, now: datetime) -> int:
    """Recompute the shortcut for every provider. Returns the number processed."""
    providers = await providers_repo.list_providers(db)
    for provider in providers:
        await recompute_next_available(db, provider.id, now=now)
    logger.info("next-available sync refreshed %d providers", len(providers))
    return len(providers)
