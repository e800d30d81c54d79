# app/modules/ranking/service.py
"""
Badges for a provider list of one procedure.

Each badge has at most one winner and is computed independently, so one
provider may hold several. Ties always go to the earlier candidate in the
input order.
"""
from __future__ import annotations

import math
from typing import Iterable, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.modules.pricing import table as pricing
from app.modules.providers import repository as providers_repo
from app.modules.providers.models import Provider
from app.modules.providers.schemas import ProviderPublic
from app.modules.ranking.schemas import (
    Badges,
    ProcedurePricing,
    ProviderCard,
    ProviderListing,
    RankingCandidate,
    SortOption,
)


def best_value(candidates: Sequence[RankingCandidate]) -> Optional[RankingCandidate]:
    winner: Optional[RankingCandidate] = None
    for c in candidates:
        if c.price is None:
            continue
        if winner is None or c.price < winner.price:
            winner = c
    return winner


def _within_band(price: float, floor: float, band: float) -> bool:
    ceiling = floor * (1 + band)
    return price <= ceiling or math.isclose(price, ceiling)


def concierge_pick(
    candidates: Sequence[RankingCandidate], band: Optional[float] = None
) -> Optional[RankingCandidate]:
    """
    Highest rating among candidates priced within `band` of the cheapest.
    With no priced candidate this is the Best Value result, i.e. None.
    """
    cheapest = best_value(candidates)
    if cheapest is None:
        return None
    band = settings.CONCIERGE_PICK_BAND if band is None else band

    winner: Optional[RankingCandidate] = None
    for c in candidates:
        if c.price is None or not _within_band(c.price, cheapest.price, band):
            continue
        if winner is None or c.rating > winner.rating:
            winner = c
    return winner


def soonest_available(candidates: Sequence[RankingCandidate]) -> Optional[RankingCandidate]:
    winner: Optional[RankingCandidate] = None
    for c in candidates:
        if c.next_available_date is None:
            continue
        if winner is None or c.next_available_date < winner.next_available_date:
            winner = c
    return winner


def compute_badges(candidates: Sequence[RankingCandidate], band: Optional[float] = None) -> Badges:
    def _id(c: Optional[RankingCandidate]):
        return c.provider_id if c is not None else None

    return Badges(
        concierge_pick=_id(concierge_pick(candidates, band)),
        best_value=_id(best_value(candidates)),
        soonest_available=_id(soonest_available(candidates)),
    )


def to_candidate(provider: Provider) -> RankingCandidate:
    return RankingCandidate(
        provider_id=provider.id,
        rating=provider.rating,
        price=provider.base_price,
        next_available_date=provider.next_available_date,
    )


def display_badges(badges: Badges, provider: ProviderPublic) -> ProviderCard:
    """Soonest Available is only shown when the card carries no other badge."""
    is_pick = badges.concierge_pick == provider.id
    is_value = badges.best_value == provider.id
    return ProviderCard(
        provider=provider,
        is_concierge_pick=is_pick,
        is_best_value=is_value,
        is_soonest_available=badges.soonest_available == provider.id and not (is_pick or is_value),
    )


def procedure_pricing(procedure_slug: str) -> ProcedurePricing:
    price_range = pricing.get_price_range(procedure_slug)
    return ProcedurePricing(
        market_price=pricing.get_market_price(procedure_slug),
        offered_price=pricing.get_offered_price(procedure_slug),
        price_label=pricing.format_price(procedure_slug),
        savings=pricing.calculate_savings(procedure_slug),
        range_min=price_range.min if price_range else None,
        range_max=price_range.max if price_range else None,
    )


def sort_providers(providers: Iterable[Provider], sort: SortOption) -> list[Provider]:
    """Stable sort; providers missing the sort field go last."""
    items = list(providers)
    if sort is SortOption.rating:
        return sorted(items, key=lambda p: -p.rating)
    if sort is SortOption.availability:
        return sorted(
            items,
            key=lambda p: (p.next_available_date is None, p.next_available_date or 0),
        )
    if sort is SortOption.price_low:
        return sorted(items, key=lambda p: (p.base_price is None, p.base_price or 0))
    return sorted(items, key=lambda p: (p.base_price is None, -(p.base_price or 0)))


async def list_ranked_providers(
    db: AsyncSession,
    *,
    procedure_slug: str,
    sort: SortOption = SortOption.rating,
) -> ProviderListing:
    """
    Logic:
    1. Providers offering the procedure, in stable store order.
    2. Badges computed over that order (tie-break = first encountered).
    3. Cards sorted for display; badges do not depend on the display sort.
    """
    providers = await providers_repo.list_providers_for_procedure(db, procedure_slug=procedure_slug)
    badges = compute_badges([to_candidate(p) for p in providers])
    cards = [
        display_badges(badges, ProviderPublic.model_validate(p))
        for p in sort_providers(providers, sort)
    ]
    return ProviderListing(
        procedure=procedure_slug,
        sort=sort,
        badges=badges,
        pricing=procedure_pricing(procedure_slug),
        providers=cards,
    )
