# app/modules/ranking/schemas.py
from __future__ import annotations

from datetime import date
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel

from app.modules.providers.schemas import ProviderPublic


class RankingCandidate(BaseModel):
    """A provider reduced to what badging needs. Built per request, never stored."""

    provider_id: UUID
    rating: float
    price: Optional[float] = None
    next_available_date: Optional[date] = None


class Badges(BaseModel):
    concierge_pick: Optional[UUID] = None
    best_value: Optional[UUID] = None
    soonest_available: Optional[UUID] = None


class SortOption(str, Enum):
    rating = "rating"
    availability = "availability"
    price_low = "price-low"
    price_high = "price-high"


class ProviderCard(BaseModel):
    provider: ProviderPublic
    is_concierge_pick: bool = False
    is_best_value: bool = False
    is_soonest_available: bool = False


class ProcedurePricing(BaseModel):
    """Member pricing for the listed procedure; all null for unknown procedures."""

    market_price: Optional[float] = None
    offered_price: Optional[float] = None
    price_label: str
    savings: float = 0
    range_min: Optional[float] = None
    range_max: Optional[float] = None


class ProviderListing(BaseModel):
    procedure: str
    sort: SortOption
    badges: Badges
    pricing: ProcedurePricing
    providers: List[ProviderCard]
