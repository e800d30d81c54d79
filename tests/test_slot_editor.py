import asyncio
from datetime import date, time, timedelta

import pytest

from app.models import Provider
from app.modules.providers import repository as providers_repo
from app.modules.slots import service as svc
from app.modules.slots.models import SlotKind
from app.modules.slots.schemas import EditableKind, SlotCreate, SlotUpdate, StyleHint
from conftest import local

DAY = "2025-05-21"


def create(start, end, kind=EditableKind.available, **extra):
    return SlotCreate(start_time=start, end_time=end, kind=kind, **extra)


async def test_first_slot_provisions_default_resource(db, make_provider, clock):
    provider = await make_provider()
    assert await providers_repo.list_resources(db, provider_id=provider.id) == []

    slot = await svc.create_slot(db, provider, create(local(DAY, 9), local(DAY, 10)), now=clock.now())

    resources = await providers_repo.list_resources(db, provider_id=provider.id)
    assert len(resources) == 1
    assert resources[0].name == "Harley Aesthetics Clinic"
    assert resources[0].type == "practitioner"
    assert slot.resource_id == resources[0].id


async def test_setup_default_resource_is_idempotent(db, make_provider):
    provider = await make_provider()
    first = await svc.setup_default_resource(db, provider)
    again = await svc.setup_default_resource(db, provider)
    assert first.id == again.id


async def test_overlapping_available_is_rejected(db, make_provider, clock):
    provider = await make_provider()
    await svc.create_slot(db, provider, create(local(DAY, 9), local(DAY, 12)), now=clock.now())

    with pytest.raises(svc.OverlapError):
        await svc.create_slot(db, provider, create(local(DAY, 11), local(DAY, 13)), now=clock.now())


async def test_touching_slots_do_not_overlap(db, make_provider, clock):
    provider = await make_provider()
    await svc.create_slot(db, provider, create(local(DAY, 9), local(DAY, 10)), now=clock.now())
    await svc.create_slot(db, provider, create(local(DAY, 10), local(DAY, 11)), now=clock.now())


async def test_other_resource_may_overlap(db, make_provider, make_resource, clock):
    provider = await make_provider()
    room_a = await make_resource(provider, "Room A")
    room_b = await make_resource(provider, "Room B")
    await svc.create_slot(
        db, provider, create(local(DAY, 9), local(DAY, 12), resource_id=room_a.id), now=clock.now()
    )
    slot = await svc.create_slot(
        db, provider, create(local(DAY, 9), local(DAY, 12), resource_id=room_b.id), now=clock.now()
    )
    assert slot.resource_id == room_b.id


async def test_block_and_available_are_exclusive(db, make_provider, clock):
    provider = await make_provider()
    await svc.create_slot(db, provider, create(local(DAY, 9), local(DAY, 12)), now=clock.now())

    with pytest.raises(svc.OverlapError):
        await svc.create_slot(
            db, provider, create(local(DAY, 11), local(DAY, 13), kind=EditableKind.blocked), now=clock.now()
        )

    await svc.create_slot(
        db, provider, create(local(DAY, 12), local(DAY, 13), kind=EditableKind.blocked), now=clock.now()
    )
    with pytest.raises(svc.OverlapError):
        await svc.create_slot(db, provider, create(local(DAY, 12), local(DAY, 14)), now=clock.now())


async def test_blocks_may_stack(db, make_provider, clock):
    provider = await make_provider()
    blocked = EditableKind.blocked
    await svc.create_slot(db, provider, create(local(DAY, 12), local(DAY, 14), kind=blocked), now=clock.now())
    await svc.create_slot(db, provider, create(local(DAY, 13), local(DAY, 15), kind=blocked), now=clock.now())


async def test_block_reason_only_kept_for_blocks(db, make_provider, clock):
    provider = await make_provider()
    avail = await svc.create_slot(
        db, provider, create(local(DAY, 9), local(DAY, 10), block_reason="Holiday"), now=clock.now()
    )
    assert avail.block_reason is None

    blocked = await svc.create_slot(
        db,
        provider,
        create(local(DAY, 12), local(DAY, 13), kind=EditableKind.blocked, block_reason="Lunch Break", block_note="team lunch"),
        now=clock.now(),
    )
    assert blocked.block_reason == "Lunch Break"
    assert blocked.block_note == "team lunch"

    updated = await svc.update_slot(
        db, provider, blocked.id, SlotUpdate(kind=EditableKind.available), now=clock.now()
    )
    assert updated.kind is SlotKind.AVAILABLE
    assert updated.block_reason is None and updated.block_note is None


async def test_booked_slot_is_immutable(db, make_provider, make_slot, clock):
    provider = await make_provider()
    booked = await make_slot(provider, local(DAY, 9), local(DAY, 10), kind=SlotKind.BOOKED)

    with pytest.raises(svc.ImmutableBookedSlotError):
        await svc.update_slot(
            db, provider, booked.id, SlotUpdate(end_time=local(DAY, 11)), now=clock.now()
        )
    with pytest.raises(svc.ImmutableBookedSlotError):
        await svc.delete_slot(db, provider, booked.id, now=clock.now())


async def test_booked_slot_blocks_new_availability(db, make_provider, make_resource, make_slot, clock):
    provider = await make_provider()
    room = await make_resource(provider)
    await make_slot(provider, local(DAY, 9), local(DAY, 10), kind=SlotKind.BOOKED, resource=room)

    with pytest.raises(svc.OverlapError):
        await svc.create_slot(
            db, provider, create(local(DAY, 9, 30), local(DAY, 11), resource_id=room.id), now=clock.now()
        )


async def test_update_rejects_overlap_and_inverted_range(db, make_provider, clock):
    provider = await make_provider()
    first = await svc.create_slot(db, provider, create(local(DAY, 9), local(DAY, 10)), now=clock.now())
    await svc.create_slot(db, provider, create(local(DAY, 11), local(DAY, 12)), now=clock.now())

    with pytest.raises(svc.OverlapError):
        await svc.update_slot(db, provider, first.id, SlotUpdate(end_time=local(DAY, 11, 30)), now=clock.now())
    with pytest.raises(svc.InvalidSlotError):
        await svc.update_slot(db, provider, first.id, SlotUpdate(start_time=local(DAY, 10, 30)), now=clock.now())

    moved = await svc.update_slot(
        db, provider, first.id, SlotUpdate(start_time=local(DAY, 8), end_time=local(DAY, 11)), now=clock.now()
    )
    assert moved.start_time == local(DAY, 8)
    assert moved.end_time == local(DAY, 11)


async def test_other_providers_slot_is_not_found(db, make_provider, clock):
    mine = await make_provider()
    theirs = await make_provider(name="Other", display_name="Other")
    slot = await svc.create_slot(db, theirs, create(local(DAY, 9), local(DAY, 10)), now=clock.now())

    with pytest.raises(svc.SlotNotFound):
        await svc.delete_slot(db, mine, slot.id, now=clock.now())


async def test_foreign_resource_and_staff_are_rejected(db, make_provider, make_resource, make_staff, clock):
    mine = await make_provider()
    theirs = await make_provider(name="Other", display_name="Other")
    their_room = await make_resource(theirs)
    their_staff = await make_staff(theirs, "Dr. Nobody")

    with pytest.raises(svc.ResourceNotFound):
        await svc.create_slot(
            db, mine, create(local(DAY, 9), local(DAY, 10), resource_id=their_room.id), now=clock.now()
        )
    with pytest.raises(svc.ResourceNotFound):
        await svc.create_slot(
            db, mine, create(local(DAY, 9), local(DAY, 10), staff_member_id=their_staff.id), now=clock.now()
        )


async def test_mutations_recompute_next_available(db, make_provider, clock):
    provider = await make_provider()
    assert provider.next_available_date is None

    late = await svc.create_slot(db, provider, create(local("2025-05-23", 14), local("2025-05-23", 15)), now=clock.now())
    assert (provider.next_available_date, provider.next_available_time) == (date(2025, 5, 23), time(14, 0))

    early = await svc.create_slot(db, provider, create(local(DAY, 9), local(DAY, 10)), now=clock.now())
    assert (provider.next_available_date, provider.next_available_time) == (date(2025, 5, 21), time(9, 0))

    await svc.update_slot(db, provider, early.id, SlotUpdate(kind=EditableKind.blocked), now=clock.now())
    assert provider.next_available_date == date(2025, 5, 23)

    await svc.delete_slot(db, provider, late.id, now=clock.now())
    assert provider.next_available_date is None
    assert provider.next_available_time is None


async def test_list_slots_tags_entries(db, make_provider, make_slot, clock):
    provider = await make_provider()
    await svc.create_slot(db, provider, create(local(DAY, 9), local(DAY, 12)), now=clock.now())
    await svc.create_slot(
        db, provider, create(local(DAY, 12), local(DAY, 13), kind=EditableKind.blocked, block_reason="Lunch Break"), now=clock.now()
    )
    await svc.create_slot(
        db, provider, create(local(DAY, 13), local(DAY, 14), kind=EditableKind.blocked), now=clock.now()
    )
    await make_slot(provider, local(DAY, 15), local(DAY, 16), kind=SlotKind.BOOKED)
    # outside the visible range
    await svc.create_slot(db, provider, create(local("2025-05-30", 9), local("2025-05-30", 10)), now=clock.now())

    entries = await svc.list_slots(db, provider, start=local(DAY, 0), end=local(DAY, 0) + timedelta(days=1))
    assert [(e.title, e.style) for e in entries] == [
        ("Available", StyleHint.positive),
        ("Lunch Break", StyleHint.neutral),
        ("Blocked", StyleHint.neutral),
        ("Booked", StyleHint.informational),
    ]


async def test_no_two_open_intervals_overlap_after_any_sequence(db, make_provider, clock):
    provider = await make_provider()
    attempts = [(9, 11), (10, 12), (11, 13), (8, 9), (12, 14), (13, 15), (7, 20), (14, 16)]
    for start_h, end_h in attempts:
        try:
            await svc.create_slot(db, provider, create(local(DAY, start_h), local(DAY, end_h)), now=clock.now())
        except svc.OverlapError:
            pass

    entries = await svc.list_slots(db, provider, start=local(DAY, 0), end=local(DAY, 23))
    open_slots = [e.slot for e in entries if e.slot.slot_type.value in ("available", "booked")]
    for i, a in enumerate(open_slots):
        for b in open_slots[i + 1:]:
            assert not (a.start_time < b.end_time and b.start_time < a.end_time)


async def test_shortcut_is_visible_to_later_reads_in_the_session(db, make_provider, clock):
    provider = await make_provider()
    await svc.create_slot(db, provider, create(local(DAY, 14), local(DAY, 15)), now=clock.now())

    (listed,) = await providers_repo.list_providers(db)
    assert (listed.next_available_date, listed.next_available_time) == (date(2025, 5, 21), time(14, 0))


async def test_concurrent_first_slots_share_one_default_resource(db, session_factory, make_provider, clock):
    provider = await make_provider()
    provider_id = provider.id
    await db.commit()

    async def first_slot():
        async with session_factory() as session:
            own = await session.get(Provider, provider_id)
            slot = await svc.create_slot(session, own, create(local(DAY, 9), local(DAY, 10)), now=clock.now())
            await session.commit()
            return slot.id

    outcomes = await asyncio.gather(first_slot(), first_slot(), return_exceptions=True)

    assert len([o for o in outcomes if isinstance(o, svc.OverlapError)]) == 1
    async with session_factory() as check:
        assert len(await providers_repo.list_resources(check, provider_id=provider_id)) == 1
