# create_tables.py
import asyncio
import logging
from guestbook.core.database import engine
from guestbook.models import Base

logger = logging.getLogger(__name__)

async def init_db():
    logger.info("Creating tables...")
    async with engine.begin() as conn:
        # create_all is sync, so it runs through run_sync
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tables created successfully")
    await engine.dispose()

if __name__ == "__main__":
    asyncio.run(init_db())
