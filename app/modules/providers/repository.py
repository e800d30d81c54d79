# app/modules/providers/repository.py
from __future__ import annotations

from datetime import date, time
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import Select, cast, select, update
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base import utcnow
from app.modules.providers.models import Provider, Resource, ResourceType, StaffMember


async def get_provider(db: AsyncSession, provider_id: UUID) -> Optional[Provider]:
    return await db.get(Provider, provider_id)


async def get_provider_by_owner(db: AsyncSession, *, owner_user_id: UUID) -> Optional[Provider]:
    row = await db.execute(
        select(Provider).where(Provider.owner_user_id == owner_user_id).order_by(Provider.created_at)
    )
    return row.scalars().first()


async def list_providers(db: AsyncSession) -> Sequence[Provider]:
    rows = await db.execute(select(Provider).order_by(Provider.display_name, Provider.id))
    return rows.scalars().all()


def providers_for_procedure_stmt(procedure_slug: str) -> Select:
    """JSONB containment (`procedures @> '["slug"]'`), PostgreSQL only."""
    return (
        select(Provider)
        .where(cast(Provider.procedures, JSONB).contains([procedure_slug]))
        .order_by(Provider.display_name, Provider.id)
    )


async def list_providers_for_procedure(db: AsyncSession, *, procedure_slug: str) -> list[Provider]:
    """
    Providers offering the procedure. PostgreSQL filters in SQL; other
    backends have no JSON containment operator, so the list is filtered here.
    """
    if db.bind.dialect.name == "postgresql":
        rows = await db.execute(providers_for_procedure_stmt(procedure_slug))
        return list(rows.scalars().all())
    return [p for p in await list_providers(db) if p.offers(procedure_slug)]


async def set_next_available(
    db: AsyncSession,
    provider: Provider,
    *,
    next_date: Optional[date],
    next_time: Optional[time],
) -> Provider:
    """Written through the loaded instance so readers in this session see the new value."""
    provider.next_available_date = next_date
    provider.next_available_time = next_time
    await db.flush()
    return provider


async def lock_provider(db: AsyncSession, provider_id: UUID) -> int:
    """
    Take the provider row's write lock for the rest of the transaction.
    An UPDATE rather than FOR UPDATE, so SQLite also serializes on it.
    """
    res = await db.execute(
        update(Provider)
        .where(Provider.id == provider_id)
        .values(updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    return res.rowcount or 0  # type: ignore


# --- resources ---

async def list_resources(
    db: AsyncSession, *, provider_id: UUID, active_only: bool = False
) -> Sequence[Resource]:
    stmt = select(Resource).where(Resource.provider_id == provider_id)
    if active_only:
        stmt = stmt.where(Resource.is_active.is_(True))
    rows = await db.execute(stmt.order_by(Resource.created_at, Resource.id))
    return rows.scalars().all()


async def get_resource(db: AsyncSession, resource_id: UUID) -> Optional[Resource]:
    return await db.get(Resource, resource_id)


async def lock_resource(db: AsyncSession, resource_id: UUID) -> Optional[Resource]:
    """
    Row lock on the resource so concurrent editors of one calendar serialize
    their overlap check + write. SQLite has no FOR UPDATE; there the single
    database writer lock gives the same ordering.
    """
    row = await db.execute(
        select(Resource).where(Resource.id == resource_id).with_for_update()
    )
    return row.scalar_one_or_none()


async def create_resource(
    db: AsyncSession,
    *,
    provider_id: UUID,
    name: str,
    type: str = ResourceType.PRACTITIONER.value,
) -> Resource:
    resource = Resource(provider_id=provider_id, name=name.strip(), type=type, is_active=True)
    db.add(resource)
    await db.flush()
    return resource


# --- staff ---

async def get_staff_names(db: AsyncSession, *, provider_id: UUID) -> dict[UUID, str]:
    rows = await db.execute(
        select(StaffMember.id, StaffMember.name).where(StaffMember.provider_id == provider_id)
    )
    return {sid: name for sid, name in rows.all()}


async def get_staff_member(db: AsyncSession, staff_member_id: UUID) -> Optional[StaffMember]:
    return await db.get(StaffMember, staff_member_id)
