# seed_db.py
"""
Demo data: a handful of London clinics, a default resource each, staff,
two weeks of generated slots, and the next-available shortcut synced.

One provider is left without slots so the indicative-times path is visible.
"""
import asyncio
import logging
from datetime import timedelta

from app.core.clock import SystemClock
from app.core.config import settings
from app.core.logging_config import configure_logging
from app.db.sql import AsyncSessionLocal, engine
from app.models import Base, Provider, StaffMember
from app.modules.availability.deriver import sync_all_next_available, to_local
from app.modules.slots.seed import seed_provider_slots
from app.modules.slots.service import setup_default_resource

logger = logging.getLogger("seed_db")

DEMO_PROVIDERS = [
    {
        "name": "Harley Aesthetics",
        "display_name": "Harley Aesthetics Clinic",
        "specialty": "Injectables",
        "city": "London",
        "neighborhood": "Marylebone",
        "rating": 4.9,
        "review_count": 212,
        "base_price": 780,
        "procedures": ["botox", "dermal-fillers", "lip-enhancement"],
        "recommendation_reason": "Consistently natural results for first-time clients.",
        "staff": ["Dr. Amelia Hart", "Nurse Priya Shah"],
        "with_slots": True,
    },
    {
        "name": "Chelsea Skin Studio",
        "display_name": "Chelsea Skin Studio",
        "specialty": "Skin resurfacing",
        "city": "London",
        "neighborhood": "Chelsea",
        "rating": 4.7,
        "review_count": 148,
        "base_price": 750,
        "procedures": ["botox", "hydrafacial", "morpheus8", "chemical-peel"],
        "recommendation_reason": "Strong value on combination treatments.",
        "staff": ["Dr. Oliver Grant"],
        "with_slots": True,
    },
    {
        "name": "Mayfair Laser Rooms",
        "display_name": "Mayfair Laser Rooms",
        "specialty": "Laser",
        "city": "London",
        "neighborhood": "Mayfair",
        "rating": 5.0,
        "review_count": 96,
        "base_price": 1650,
        "procedures": ["laser-resurfacing", "ipl-photofacial", "botox"],
        "recommendation_reason": None,
        "staff": [],
        "with_slots": True,
    },
    {
        "name": "Notting Hill Wellness",
        "display_name": "Notting Hill Wellness",
        "specialty": "Regenerative",
        "city": "London",
        "neighborhood": "Notting Hill",
        "rating": 4.6,
        "review_count": 61,
        "base_price": None,
        "procedures": ["prp-therapy", "microneedling", "botox"],
        "recommendation_reason": None,
        "staff": [],
        "with_slots": False,
    },
]


async def seed():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    now = SystemClock().now()
    async with AsyncSessionLocal() as db:
        for entry in DEMO_PROVIDERS:
            provider = Provider(
                name=entry["name"],
                display_name=entry["display_name"],
                specialty=entry["specialty"],
                city=entry["city"],
                neighborhood=entry["neighborhood"],
                rating=entry["rating"],
                review_count=entry["review_count"],
                base_price=entry["base_price"],
                procedures=entry["procedures"],
                recommendation_reason=entry["recommendation_reason"],
                timezone=settings.DEFAULT_TIMEZONE,
            )
            db.add(provider)
            await db.flush()
            for staff_name in entry["staff"]:
                db.add(StaffMember(provider_id=provider.id, name=staff_name))

            if entry["with_slots"]:
                resource = await setup_default_resource(db, provider)
                first_day = to_local(now, provider.timezone).date() + timedelta(days=1)
                written = await seed_provider_slots(
                    db,
                    provider_id=provider.id,
                    resource_id=resource.id,
                    tz_name=provider.timezone,
                    first_day=first_day,
                )
                logger.info("seeded %d slots for %s", written, provider.display_name)

        synced = await sync_all_next_available(db, now=now)
        await db.commit()
    await engine.dispose()
    logger.info("seed complete: %d providers", synced)


if __name__ == "__main__":
    configure_logging(settings.LOG_LEVEL)
    asyncio.run(seed())
