# app/db/sql.py
from __future__ import annotations

import logging
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import settings
from app.core.security import InvalidTokenError, Principal, decode_token
from app.modules.log import write_audit_log

logger = logging.getLogger(__name__)


def build_engine(dsn: str, *, echo: bool = False) -> AsyncEngine:
    """
    Create the async engine. Pool sizing only applies to server databases;
    SQLite gets a busy timeout so concurrent writers wait instead of failing.
    """
    url = make_url(dsn)
    if url.get_backend_name() == "sqlite":
        return create_async_engine(
            url,
            echo=echo,
            connect_args={"timeout": 15},
        )
    return create_async_engine(
        url,
        echo=echo,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
        pool_timeout=settings.DB_POOL_TIMEOUT,
    )


def build_sessionmaker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=bind,
        expire_on_commit=False,
        autoflush=False,
        class_=AsyncSession,
    )


engine = build_engine(settings.SQL_DSN, echo=settings.DB_ECHO)
AsyncSessionLocal = build_sessionmaker(engine)


def _principal_id(request: Request):
    token = request.headers.get("Authorization", "").replace("Bearer ", "")
    if not token:
        return None
    try:
        return Principal.from_claims(decode_token(token)).user_id
    except InvalidTokenError:
        return None


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """
    Provide a DB session for each request.
    Automatically apply commit/rollback and write audit logs.
    """
    async with AsyncSessionLocal() as session:
        user_id = _principal_id(request)
        action = f"{request.method} {request.url.path}"

        try:
            yield session

            await session.commit()

            await write_audit_log(session, user_id, f"{action} COMMIT", "Operation completed successfully")
            await session.commit()

        except Exception as exc:
            await session.rollback()
            try:
                await write_audit_log(session, user_id, f"{action} ROLLBACK", str(exc))
                await session.commit()
            except SQLAlchemyError:
                logger.exception("audit log write failed for %s", action)
            raise
