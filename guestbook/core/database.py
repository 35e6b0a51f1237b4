# guestbook/core/database.py
import asyncio
import logging
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy import text
from guestbook.core.config import settings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# echo=True prints every statement (debugging only)
engine = create_async_engine(
    settings.ASYNC_DATABASE_URL,
    echo=False,
    future=True,
    pool_pre_ping=True
)

# expire_on_commit=False keeps attributes readable after commit
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False
)

Base = declarative_base()

# FastAPI dependency
async def get_db():
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()

async def wait_for_db(retries: int = 30, delay: int = 2):
    """Block until the database accepts connections."""
    logger.info(f"Waiting for database... (Max retries: {retries})")

    for i in range(retries):
        try:
            async with engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
            logger.info("Database is ready")
            return
        except Exception as e:
            if i == retries - 1:
                logger.error(f"Database connection failed after {retries} attempts: {e}")
                raise e

            logger.warning(f"Database not ready yet. Retrying in {delay}s... ({i+1}/{retries})")
            await asyncio.sleep(delay)
