# app/routers/__init__.py
from . import health
from . import providers
from . import bookings
from . import provider_calendar

__all__ = ["health", "providers", "bookings", "provider_calendar"]
