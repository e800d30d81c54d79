# app/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.logging_config import configure_logging
from app.routers import health, providers, bookings, provider_calendar

# Import from db/sql.py (async)
from app.db.base import Base
from app.db.sql import engine

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


# Define lifespan event
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    The lifespan function is used to manage the FastAPI application lifecycle.
    """
    if settings.APP_ENV == "dev":
        # Local SQLite convenience; other environments run alembic
        await init_db()
    yield
    await engine.dispose()


app = FastAPI(
    title="Velvet Concierge Scheduling API",
    lifespan=lifespan,
)


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    """Store failures are retryable from the client's point of view."""
    logger.error("store failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "store_unavailable"})


# Routing
app.include_router(health.router, prefix=settings.API_PREFIX, tags=["health"])
app.include_router(providers.router, prefix=settings.API_PREFIX, tags=["providers"])
app.include_router(bookings.router, prefix=settings.API_PREFIX, tags=["bookings"])
app.include_router(provider_calendar.router, prefix=settings.API_PREFIX, tags=["provider-calendar"])


@app.get("/")
def root():
    return {"message": "Velvet Concierge scheduling API running"}


# Function to initialize the database
async def init_db():
    """
    Initialize database tables
    """
    # Import all models here so they get registered
    import app.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
