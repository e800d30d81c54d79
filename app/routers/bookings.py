# app/routers/bookings.py
from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import get_clock
from app.core.notifications import Notification, notify
from app.core.permission import require_roles
from app.core.security import Principal
from app.db.sql import get_session
from app.dependencies import get_principal
from app.modules.bookings.schemas import BookingListPage, ReservationRequest, ReservationResult
from app.modules.bookings.service import (
    ProviderNotFound,
    SlotAlreadyTakenError,
    SlotNotFound,
    list_my_bookings,
    reserve_booking,
)

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post(
    "",
    response_model=ReservationResult,
    status_code=status.HTTP_201_CREATED,
    summary="Reserve a provider (optionally a specific slot)",
)
async def create_booking(
    payload: ReservationRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
    principal: Principal = Depends(require_roles("user", "admin")),
    clock=Depends(get_clock),
):
    try:
        result = await reserve_booking(
            session, user_id=principal.user_id, payload=payload, now=clock.now()
        )
    except ProviderNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="provider_not_found")
    except SlotNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="slot_not_found")
    except SlotAlreadyTakenError:
        # the client re-fetches availability and returns to time selection
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="slot_already_taken")

    background_tasks.add_task(
        notify,
        Notification(
            user_id=principal.user_id,
            title="Reservation Secured",
            description=f"{payload.procedure_name} on {payload.preferred_date:%A, %B} {payload.preferred_date.day}",
        ),
    )
    return result


@router.get("/my", response_model=BookingListPage, summary="Current user's bookings, newest first")
async def bookings_my(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    return await list_my_bookings(session, user_id=principal.user_id, limit=limit, offset=offset)
