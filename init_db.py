# init_db.py
import asyncio
import logging

from app.core.config import settings
from app.core.logging_config import configure_logging
from app.db.sql import engine

# IMPORTANT: import all models so that Base.metadata knows them
from app.models import Base

logger = logging.getLogger("init_db")


async def init_models():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()

    logger.info("Database schema recreated successfully on %s", engine.url.render_as_string(hide_password=True))


if __name__ == "__main__":
    configure_logging(settings.LOG_LEVEL)
    asyncio.run(init_models())
