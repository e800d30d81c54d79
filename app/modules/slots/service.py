# app/modules/slots/service.py
"""
Provider-side calendar editing.

Rules enforced here:
  - start < end for every slot.
  - Per provider+resource, an available slot may not overlap any available,
    booked or blocked slot; a blocked slot may not overlap an available or
    booked slot. Blocked slots may stack on each other.
  - Booked slots are never changed or deleted by the editor.
  - A provider without resources gets a default one provisioned before its
    first slot is written.
  - Every successful write recomputes the provider's next-available shortcut.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.availability.deriver import recompute_next_available
from app.modules.providers import repository as providers_repo
from app.modules.providers.models import Provider, Resource, ResourceType
from app.modules.slots import repository as repo
from app.modules.slots.models import Slot, SlotKind
from app.modules.slots.schemas import (
    CalendarEntry,
    SlotCreate,
    SlotPublic,
    SlotUpdate,
    StyleHint,
)

logger = logging.getLogger(__name__)


# Service-level errors (mapped to HTTP in the router)
class OverlapError(Exception):
    """The slot would intersect an existing slot on the same resource."""

    def __init__(self, conflicting: Sequence[Slot]):
        self.conflicting_ids = [s.id for s in conflicting]
        super().__init__("slot_overlap")


class ImmutableBookedSlotError(Exception):
    """Booked slots only change through the reservation / cancellation flows."""


class SlotNotFound(Exception):
    pass


class ResourceNotFound(Exception):
    pass


class InvalidSlotError(Exception):
    """Field combination rejected (e.g. end before start after a partial update)."""


# kind being written -> kinds it may not overlap
_CONFLICTS = {
    SlotKind.AVAILABLE: (SlotKind.AVAILABLE, SlotKind.BOOKED, SlotKind.BLOCKED),
    SlotKind.BLOCKED: (SlotKind.AVAILABLE, SlotKind.BOOKED),
}

_STYLE = {
    SlotKind.AVAILABLE: StyleHint.positive,
    SlotKind.BLOCKED: StyleHint.neutral,
    SlotKind.BOOKED: StyleHint.informational,
}


def _title(slot: Slot) -> str:
    if slot.kind is SlotKind.AVAILABLE:
        return "Available"
    if slot.kind is SlotKind.BOOKED:
        return "Booked"
    return slot.block_reason or "Blocked"


def to_calendar_entry(slot: Slot) -> CalendarEntry:
    return CalendarEntry(
        slot=SlotPublic.model_validate(slot),
        title=_title(slot),
        style=_STYLE[slot.kind],
    )


async def setup_default_resource(db: AsyncSession, provider: Provider) -> Resource:
    """
    Make sure the provider has at least one resource. Solo practitioners get
    one named after the clinic. Returns the first active resource.
    """
    resources = await providers_repo.list_resources(db, provider_id=provider.id, active_only=True)
    if resources:
        return resources[0]

    # concurrent first writers wait here, then see the winner's resource
    await providers_repo.lock_provider(db, provider.id)
    resources = await providers_repo.list_resources(db, provider_id=provider.id, active_only=True)
    if resources:
        return resources[0]
    resource = await providers_repo.create_resource(
        db,
        provider_id=provider.id,
        name=provider.display_name or provider.name,
        type=ResourceType.PRACTITIONER.value,
    )
    logger.info("provisioned default resource %s for provider %s", resource.id, provider.id)
    return resource


async def _resolve_resource(
    db: AsyncSession, provider: Provider, resource_id: Optional[UUID]
) -> Resource:
    if resource_id is None:
        return await setup_default_resource(db, provider)
    resource = await providers_repo.get_resource(db, resource_id)
    if resource is None or resource.provider_id != provider.id:
        raise ResourceNotFound("resource_not_found")
    return resource


async def _check_staff(db: AsyncSession, provider: Provider, staff_member_id: Optional[UUID]) -> None:
    if staff_member_id is None:
        return
    staff = await providers_repo.get_staff_member(db, staff_member_id)
    if staff is None or staff.provider_id != provider.id:
        raise ResourceNotFound("staff_member_not_found")


async def _assert_no_overlap(
    db: AsyncSession,
    *,
    provider_id: UUID,
    resource_id: Optional[UUID],
    start: datetime,
    end: datetime,
    kind: SlotKind,
    exclude_id: Optional[UUID] = None,
) -> None:
    conflicting = await repo.find_overlapping(
        db,
        provider_id=provider_id,
        resource_id=resource_id,
        start=start,
        end=end,
        kinds=_CONFLICTS[kind],
        exclude_id=exclude_id,
    )
    if conflicting:
        raise OverlapError(conflicting)


async def create_slot(
    db: AsyncSession,
    provider: Provider,
    payload: SlotCreate,
    *,
    now: datetime,
) -> Slot:
    kind = SlotKind(payload.kind.value)
    resource = await _resolve_resource(db, provider, payload.resource_id)
    await _check_staff(db, provider, payload.staff_member_id)

    # serialize writers on this resource's calendar
    await providers_repo.lock_resource(db, resource.id)
    await _assert_no_overlap(
        db,
        provider_id=provider.id,
        resource_id=resource.id,
        start=payload.start_time,
        end=payload.end_time,
        kind=kind,
    )

    is_blocked = kind is SlotKind.BLOCKED
    slot = await repo.insert_slot(
        db,
        provider_id=provider.id,
        resource_id=resource.id,
        staff_member_id=payload.staff_member_id,
        start_time=payload.start_time,
        end_time=payload.end_time,
        kind=kind,
        block_reason=payload.block_reason.value if is_blocked and payload.block_reason else None,
        block_note=payload.block_note if is_blocked else None,
    )
    await recompute_next_available(db, provider.id, now=now)
    return slot


async def _get_owned_slot(db: AsyncSession, provider: Provider, slot_id: UUID) -> Slot:
    slot = await repo.get_slot(db, slot_id)
    if slot is None or slot.provider_id != provider.id:
        raise SlotNotFound("slot_not_found")
    return slot


async def update_slot(
    db: AsyncSession,
    provider: Provider,
    slot_id: UUID,
    payload: SlotUpdate,
    *,
    now: datetime,
) -> Slot:
    """
    Retime and/or reclassify a slot that is not booked. Only fields present
    in the payload change; block reason/note are cleared when the slot
    becomes available.
    """
    slot = await _get_owned_slot(db, provider, slot_id)
    if slot.kind is SlotKind.BOOKED:
        raise ImmutableBookedSlotError("slot_is_booked")

    fields = payload.model_dump(exclude_unset=True)
    start = fields.get("start_time") or slot.start_time
    end = fields.get("end_time") or slot.end_time
    if start >= end:
        raise InvalidSlotError("end_time must be after start_time")
    kind = SlotKind(fields["kind"].value) if fields.get("kind") else slot.kind

    if "staff_member_id" in fields:
        await _check_staff(db, provider, fields["staff_member_id"])

    if slot.resource_id is not None:
        await providers_repo.lock_resource(db, slot.resource_id)
    await _assert_no_overlap(
        db,
        provider_id=provider.id,
        resource_id=slot.resource_id,
        start=start,
        end=end,
        kind=kind,
        exclude_id=slot.id,
    )

    values: dict = {"start_time": start, "end_time": end, "slot_type": kind.value}
    if "staff_member_id" in fields:
        values["staff_member_id"] = fields["staff_member_id"]
    if kind is SlotKind.BLOCKED:
        reason = fields.get("block_reason", slot.block_reason)
        values["block_reason"] = reason.value if hasattr(reason, "value") else reason
        values["block_note"] = fields.get("block_note", slot.block_note)
    else:
        values["block_reason"] = None
        values["block_note"] = None

    # the WHERE guard re-checks "not booked" at write time
    if await repo.update_slot(db, slot_id=slot.id, values=values) == 0:
        raise ImmutableBookedSlotError("slot_is_booked")

    await recompute_next_available(db, provider.id, now=now)
    await db.refresh(slot)
    return slot


async def delete_slot(db: AsyncSession, provider: Provider, slot_id: UUID, *, now: datetime) -> None:
    slot = await _get_owned_slot(db, provider, slot_id)
    if slot.kind is SlotKind.BOOKED:
        raise ImmutableBookedSlotError("slot_is_booked")

    if await repo.delete_slot(db, slot_id=slot.id) == 0:
        raise ImmutableBookedSlotError("slot_is_booked")

    await recompute_next_available(db, provider.id, now=now)


async def list_slots(
    db: AsyncSession,
    provider: Provider,
    *,
    start: datetime,
    end: datetime,
) -> list[CalendarEntry]:
    """All slots overlapping the visible range, tagged for rendering."""
    slots = await repo.query_slots(db, provider_id=provider.id, start=start, end=end)
    return [to_calendar_entry(s) for s in slots]
