# app/routers/provider_calendar.py
from __future__ import annotations

from datetime import datetime
from typing import List
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import get_clock
from app.core.notifications import Notification, notify
from app.db.sql import get_session
from app.dependencies import get_current_provider
from app.modules.providers import repository as providers_repo
from app.modules.providers.models import Provider
from app.modules.providers.schemas import ResourceCreate, ResourcePublic
from app.modules.slots import service as svc
from app.modules.slots.schemas import CalendarEntry, SlotCreate, SlotUpdate

router = APIRouter(prefix="/provider", tags=["provider-calendar"])


def _slot_error(exc: Exception) -> HTTPException:
    if isinstance(exc, svc.OverlapError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail="slot_overlap")
    if isinstance(exc, svc.ImmutableBookedSlotError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail="slot_is_booked")
    if isinstance(exc, (svc.SlotNotFound, svc.ResourceNotFound)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))


_SLOT_ERRORS = (
    svc.OverlapError,
    svc.ImmutableBookedSlotError,
    svc.SlotNotFound,
    svc.ResourceNotFound,
    svc.InvalidSlotError,
)


def _toast(background_tasks: BackgroundTasks, provider: Provider, title: str, description: str) -> None:
    if provider.owner_user_id is None:
        return
    background_tasks.add_task(
        notify, Notification(user_id=provider.owner_user_id, title=title, description=description)
    )


# --- resources ---

@router.get("/resources", response_model=List[ResourcePublic])
async def list_resources(
    db: AsyncSession = Depends(get_session),
    provider: Provider = Depends(get_current_provider),
):
    return await providers_repo.list_resources(db, provider_id=provider.id)


@router.post("/resources", response_model=ResourcePublic, status_code=status.HTTP_201_CREATED)
async def create_resource(
    payload: ResourceCreate,
    db: AsyncSession = Depends(get_session),
    provider: Provider = Depends(get_current_provider),
):
    return await providers_repo.create_resource(
        db, provider_id=provider.id, name=payload.name, type=payload.type.value
    )


@router.post("/resources/default", response_model=ResourcePublic)
async def setup_default_resource(
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_session),
    provider: Provider = Depends(get_current_provider),
):
    """Idempotent: returns the existing first resource when there is one."""
    resource = await svc.setup_default_resource(db, provider)
    _toast(background_tasks, provider, "Setup Complete", "You can now manage your availability")
    return resource


# --- slots ---

@router.get("/slots", response_model=List[CalendarEntry])
async def list_slots(
    start: datetime = Query(..., description="Visible range start (ISO, with offset)"),
    end: datetime = Query(..., description="Visible range end (ISO, with offset)"),
    db: AsyncSession = Depends(get_session),
    provider: Provider = Depends(get_current_provider),
):
    if start.tzinfo is None or end.tzinfo is None:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="naive_datetime")
    if end <= start:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="invalid_range")
    return await svc.list_slots(db, provider, start=start, end=end)


@router.post("/slots", response_model=CalendarEntry, status_code=status.HTTP_201_CREATED)
async def create_slot(
    payload: SlotCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_session),
    provider: Provider = Depends(get_current_provider),
    clock=Depends(get_clock),
):
    try:
        slot = await svc.create_slot(db, provider, payload, now=clock.now())
    except _SLOT_ERRORS as exc:
        raise _slot_error(exc)
    _toast(background_tasks, provider, "Saved", "Availability updated")
    return svc.to_calendar_entry(slot)


@router.patch("/slots/{slot_id}", response_model=CalendarEntry)
async def update_slot(
    slot_id: UUID,
    payload: SlotUpdate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_session),
    provider: Provider = Depends(get_current_provider),
    clock=Depends(get_clock),
):
    try:
        slot = await svc.update_slot(db, provider, slot_id, payload, now=clock.now())
    except _SLOT_ERRORS as exc:
        raise _slot_error(exc)
    _toast(background_tasks, provider, "Saved", "Availability updated")
    return svc.to_calendar_entry(slot)


@router.delete("/slots/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_slot(
    slot_id: UUID,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_session),
    provider: Provider = Depends(get_current_provider),
    clock=Depends(get_clock),
):
    try:
        await svc.delete_slot(db, provider, slot_id, now=clock.now())
    except _SLOT_ERRORS as exc:
        raise _slot_error(exc)
    _toast(background_tasks, provider, "Deleted", "Slot removed")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
