# tests/conftest.py
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from zoneinfo import ZoneInfo

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt

from app.core.clock import FixedClock, get_clock
from app.core.config import settings
from app.core.security import TokenType
from app.db.sql import build_engine, build_sessionmaker, get_session
from app.models import Base, Provider, Resource, Slot, SlotKind, StaffMember

LONDON = "Europe/London"


def local(day: str, hour: int, minute: int = 0, tz: str = LONDON) -> datetime:
    """Aware instant for a provider-local wall-clock time, e.g. local("2025-05-21", 9)."""
    d = datetime.fromisoformat(day)
    return datetime(d.year, d.month, d.day, hour, minute, tzinfo=ZoneInfo(tz))


@pytest.fixture
async def engine(tmp_path):
    eng = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return build_sessionmaker(engine)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> FixedClock:
    # 09:00 London (BST) on a Tuesday
    return FixedClock(datetime(2025, 5, 20, 8, 0, tzinfo=timezone.utc))


@pytest.fixture
def make_provider(db):
    async def _make(**overrides: Any) -> Provider:
        values = dict(
            name="Harley Aesthetics",
            display_name="Harley Aesthetics Clinic",
            specialty="Injectables",
            city="London",
            neighborhood="Marylebone",
            rating=4.8,
            review_count=100,
            base_price=750,
            procedures=["botox"],
            timezone=LONDON,
        )
        values.update(overrides)
        provider = Provider(**values)
        db.add(provider)
        await db.flush()
        return provider

    return _make


@pytest.fixture
def make_resource(db):
    async def _make(provider: Provider, name: str = "Room 1") -> Resource:
        resource = Resource(provider_id=provider.id, name=name, type="room", is_active=True)
        db.add(resource)
        await db.flush()
        return resource

    return _make


@pytest.fixture
def make_staff(db):
    async def _make(provider: Provider, name: str) -> StaffMember:
        staff = StaffMember(provider_id=provider.id, name=name)
        db.add(staff)
        await db.flush()
        return staff

    return _make


@pytest.fixture
def make_slot(db):
    """Direct store insert, bypassing the editor's checks."""

    async def _make(
        provider: Provider,
        start: datetime,
        end: datetime,
        kind: SlotKind = SlotKind.AVAILABLE,
        resource: Optional[Resource] = None,
        staff: Optional[StaffMember] = None,
        block_reason: Optional[str] = None,
    ) -> Slot:
        slot = Slot(
            provider_id=provider.id,
            resource_id=resource.id if resource else None,
            staff_member_id=staff.id if staff else None,
            start_time=start,
            end_time=end,
            slot_type=kind.value,
            block_reason=block_reason,
        )
        db.add(slot)
        await db.flush()
        return slot

    return _make


@pytest.fixture
async def client(session_factory, clock):
    from app.main import app

    async def _session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_clock] = lambda: clock
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def make_token(user_id, role: str = "user", token_type: str = TokenType.ACCESS.value) -> str:
    """Mint a token the way the hosted auth service does."""
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "role": role,
        "type": token_type,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=settings.ACCESS_EXPIRES_MIN)).timestamp()),
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def bearer(user_id, role: str = "user") -> dict[str, str]:
    token = make_token(user_id, role)
    return {"Authorization": f"Bearer {token}"}
