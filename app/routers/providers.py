# app/routers/providers.py
from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import get_clock
from app.db.sql import get_session
from app.modules.availability import query as availability
from app.modules.availability.schemas import AvailabilityPublic
from app.modules.providers import repository as providers_repo
from app.modules.providers.schemas import NextAvailable
from app.modules.ranking.schemas import ProviderListing, SortOption
from app.modules.ranking.service import list_ranked_providers

router = APIRouter(prefix="/providers", tags=["providers"])


@router.get("", response_model=ProviderListing, summary="Providers for a procedure, with badges")
async def list_providers(
    procedure: str = Query(..., min_length=1),
    sort: SortOption = Query(SortOption.rating),
    db: AsyncSession = Depends(get_session),
):
    return await list_ranked_providers(db, procedure_slug=procedure, sort=sort)


@router.get("/{provider_id}/next-available", response_model=Optional[NextAvailable])
async def next_available(
    provider_id: UUID,
    db: AsyncSession = Depends(get_session),
):
    """Reads the stored shortcut; null means "contact for availability"."""
    provider = await providers_repo.get_provider(db, provider_id)
    if provider is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="provider_not_found")
    if provider.next_available_date is None or provider.next_available_time is None:
        return None
    return NextAvailable(date=provider.next_available_date, time=provider.next_available_time)


@router.get("/{provider_id}/availability", response_model=AvailabilityPublic)
async def get_availability(
    provider_id: UUID,
    from_: Optional[datetime] = Query(None, alias="from"),
    db: AsyncSession = Depends(get_session),
    clock=Depends(get_clock),
):
    now = clock.now()
    if from_ is not None and from_.tzinfo is None:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="naive_datetime")
    # past instants are never offered
    start = max(from_, now) if from_ is not None else now
    try:
        return await availability.get_customer_availability(db, provider_id, start)
    except availability.ProviderNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="provider_not_found")
