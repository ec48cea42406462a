from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool
import logging
import os

import models  # noqa: F401  (registers tables on SQLModel.metadata)

logger = logging.getLogger(__name__)

# Default to a local SQLite file next to the process
DATABASE_URL = os.getenv("DATABASE_URL") or "sqlite+aiosqlite:///./search_cache.db"

# Ensure async drivers are used in the connection string
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql+asyncpg://", 1)
elif DATABASE_URL.startswith("postgresql://"):
    DATABASE_URL = DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://", 1)
elif DATABASE_URL.startswith("sqlite:///"):
    DATABASE_URL = DATABASE_URL.replace("sqlite:///", "sqlite+aiosqlite:///", 1)

# Connection Pool Configuration (server databases only; SQLite ignores pooling knobs)
POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "5"))
MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "10"))
POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", "30"))

# Recycle connections before servers close idle ones
POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "3600"))
POOL_PRE_PING = os.getenv("DB_POOL_PRE_PING", "true").lower() == "true"

ECHO_SQL = os.getenv("DB_ECHO", "false").lower() == "true"

# Each checkout gets a fresh connection (serverless / test deployments)
USE_NULL_POOL = os.getenv("DB_USE_NULL_POOL", "false").lower() == "true"


def create_engine_for_url(url: str, *, null_pool: bool = USE_NULL_POOL) -> AsyncEngine:
    engine_kwargs = {
        "echo": ECHO_SQL,
        "future": True,
    }

    if url.startswith("sqlite"):
        engine_kwargs["poolclass"] = NullPool
    elif null_pool:
        engine_kwargs["poolclass"] = NullPool
        engine_kwargs["pool_pre_ping"] = POOL_PRE_PING
    else:
        engine_kwargs["pool_pre_ping"] = POOL_PRE_PING
        engine_kwargs["pool_recycle"] = POOL_RECYCLE
        engine_kwargs["pool_size"] = POOL_SIZE
        engine_kwargs["max_overflow"] = MAX_OVERFLOW
        engine_kwargs["pool_timeout"] = POOL_TIMEOUT
        logger.debug(f"Connection pool: size={POOL_SIZE}, max_overflow={MAX_OVERFLOW}, timeout={POOL_TIMEOUT}s")

    return create_async_engine(url, **engine_kwargs)


engine = create_engine_for_url(DATABASE_URL)


def session_factory(bind: AsyncEngine = engine) -> sessionmaker:
    return sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


async def init_db(bind: AsyncEngine = engine):
    async with bind.begin() as conn:
        # This creates tables if they don't exist
        await conn.run_sync(SQLModel.metadata.create_all)
