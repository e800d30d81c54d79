# app/modules/pricing/table.py
"""
Static procedure pricing (GBP).

Market prices are the typical highest market rate; offered prices are the
member rates quoted at booking time. Unknown procedure slugs have no price.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

MARKET_HIGHEST_PRICES: dict[str, float] = {
    "botox": 1200,
    "dermal-fillers": 1500,
    "laser-resurfacing": 2500,
    "morpheus8": 1800,
    "hydrafacial": 800,
    "chemical-peel": 600,
    "microneedling": 900,
    "prp-therapy": 1400,
    "thread-lift": 2200,
    "ultherapy": 3000,
    "lip-enhancement": 1100,
    "ipl-photofacial": 950,
}

OFFERED_PRICES: dict[str, float] = {
    "botox": 750,
    "dermal-fillers": 950,
    "laser-resurfacing": 1650,
    "morpheus8": 1200,
    "hydrafacial": 450,
    "chemical-peel": 350,
    "microneedling": 550,
    "prp-therapy": 900,
    "thread-lift": 1450,
    "ultherapy": 2000,
    "lip-enhancement": 700,
    "ipl-photofacial": 600,
}


@dataclass(frozen=True)
class PriceRange:
    min: float
    max: float


PRICE_RANGES: dict[str, PriceRange] = {
    "botox": PriceRange(400, 800),
    "dermal-fillers": PriceRange(500, 1200),
    "laser-resurfacing": PriceRange(1200, 2000),
    "morpheus8": PriceRange(800, 1500),
    "hydrafacial": PriceRange(200, 500),
    "chemical-peel": PriceRange(150, 400),
    "microneedling": PriceRange(300, 650),
    "prp-therapy": PriceRange(600, 1100),
    "thread-lift": PriceRange(1000, 1800),
    "ultherapy": PriceRange(1500, 2500),
    "lip-enhancement": PriceRange(400, 850),
    "ipl-photofacial": PriceRange(350, 700),
}


@dataclass(frozen=True)
class InvestmentTier:
    key: str
    label: str
    range: str


INVESTMENT_TIERS: dict[str, InvestmentTier] = {
    "signature": InvestmentTier("signature", "Signature", "$500 – $1,500"),
    "premier": InvestmentTier("premier", "Premier", "$1,500 – $4,000"),
    "exclusive": InvestmentTier("exclusive", "Exclusive", "$4,000+"),
}
DEFAULT_INVESTMENT_LEVEL = "signature"


def get_market_price(procedure_slug: str) -> Optional[float]:
    return MARKET_HIGHEST_PRICES.get(procedure_slug)


def get_offered_price(procedure_slug: str) -> Optional[float]:
    return OFFERED_PRICES.get(procedure_slug)


def get_price_range(procedure_slug: str) -> Optional[PriceRange]:
    return PRICE_RANGES.get(procedure_slug)


def is_known_procedure(procedure_slug: str) -> bool:
    return procedure_slug in MARKET_HIGHEST_PRICES and procedure_slug in OFFERED_PRICES


def calculate_savings(procedure_slug: str) -> float:
    market = get_market_price(procedure_slug)
    offered = get_offered_price(procedure_slug)
    if market is None or offered is None:
        return 0
    return max(0, market - offered)


def format_price(procedure_slug: str) -> str:
    """"£750" / "£1,650"; unknown procedures read "Contact for pricing"."""
    price = get_offered_price(procedure_slug)
    if not price:
        return "Contact for pricing"
    return f"£{price:,.0f}"


def get_investment_tier(level: Optional[str]) -> InvestmentTier:
    """Unknown or missing levels fall back to Signature."""
    return INVESTMENT_TIERS.get(level or "", INVESTMENT_TIERS[DEFAULT_INVESTMENT_LEVEL])
