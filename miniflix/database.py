from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from typing import AsyncGenerator
import logging

from .config import settings

logger = logging.getLogger(__name__)

# ============================================================
# Async Database Engine
# ============================================================

def parse_database_url(url: str) -> tuple[str, dict]:
    """
    Normalise the configured database URL for the async engine.
    Returns: (clean_url, connect_args)

    PostgreSQL URLs are rewritten to the asyncpg driver and their sslmode
    query parameter is translated; SQLite URLs are passed through.
    """
    if url.startswith("sqlite"):
        return url, {}

    clean_url = url.split('?')[0]
    clean_url = clean_url.replace(
        'postgresql+psycopg2://',
        'postgresql+asyncpg://'
    ).replace(
        'postgresql://',
        'postgresql+asyncpg://'
    )

    connect_args = {
        "server_settings": {
            "application_name": "miniflix_api",
            "jit": "off",
        },
        "command_timeout": 60,
        "timeout": 10,
    }
    if 'sslmode' in url:
        connect_args['ssl'] = 'require'

    return clean_url, connect_args


def build_engine(url: str):
    """Create the async engine, pooled for PostgreSQL and unpooled for SQLite."""
    clean_url, connect_args = parse_database_url(url)

    if clean_url.startswith("sqlite"):
        return create_async_engine(
            clean_url,
            echo=settings.DB_ECHO,
            poolclass=NullPool,
        )

    return create_async_engine(
        clean_url,
        echo=settings.DB_ECHO,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=5,
        pool_timeout=30,
        pool_recycle=1800,
        connect_args=connect_args,
    )


async_engine = build_engine(settings.DATABASE_URL)

AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

# ============================================================
# Base Model
# ============================================================

Base = declarative_base()

# ============================================================
# Database Session Dependency
# ============================================================

async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Async database session dependency for FastAPI endpoints.

    Usage:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_async_db)):
            result = await db.execute(select(Item))
            return result.scalars().all()

    Services commit their own writes; the session is always closed
    after the request.
    """
    session = AsyncSessionLocal()
    try:
        yield session
    finally:
        await session.close()


# ============================================================
# Health / Lifecycle
# ============================================================

async def check_db_health() -> bool:
    """
    Check if database is accessible and responsive.
    Returns True if healthy, False otherwise.
    """
    session = AsyncSessionLocal()
    try:
        await session.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False
    finally:
        await session.close()


async def create_tables():
    # Register every model on Base.metadata before create_all
    from . import models  # noqa: F401

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_tables():
    from . import models  # noqa: F401

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def init_db():
    try:
        logger.info("🔄 Checking database connection...")

        if settings.AUTO_CREATE_TABLES:
            await create_tables()
            logger.info("✅ Tables created (AUTO_CREATE_TABLES)")

        is_healthy = await check_db_health()
        if is_healthy:
            logger.info("✅ Database health check passed")
        else:
            logger.error("❌ Database health check failed")

    except Exception as e:
        logger.error(f"❌ Database init failed: {e}", exc_info=True)
        raise


async def close_db():
    """
    Close database connections on shutdown.
    """
    try:
        logger.info("🔄 Closing database connections...")
        await async_engine.dispose()
        logger.info("✅ Database connections closed")
    except Exception as e:
        logger.error(f"❌ Error closing database: {e}")


__all__ = [
    'Base',
    'async_engine',
    'AsyncSessionLocal',
    'get_async_db',
    'check_db_health',
    'create_tables',
    'drop_tables',
    'init_db',
    'close_db',
]
