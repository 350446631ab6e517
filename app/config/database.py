"""Database configuration and connection setup"""
import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.config.settings import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict:
    # SQLite (used in tests and local runs) has no pool sizing
    if url.startswith("sqlite"):
        return {"echo": settings.DB_ECHO}
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_pre_ping": True,
        "echo": settings.DB_ECHO,
    }


# Create database engine with connection pooling
engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
)


async def get_db():
    """Database dependency for FastAPI"""
    async with AsyncSessionLocal() as db:
        yield db


async def create_tables():
    """Create all database tables that do not exist yet"""
    import app.models  # noqa: F401  registers every model on Base.metadata
    from app.models.base import Base

    logger.info("Creating all tables...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created successfully")


if __name__ == "__main__":
    asyncio.run(create_tables())
