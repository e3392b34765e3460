# leadfinder/core/database.py
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from typing import Optional
import redis.asyncio as aioredis

from leadfinder.core.config import settings

# Database engine
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=True if settings.LOG_LEVEL == "DEBUG" else False,
    pool_pre_ping=True,
    pool_size=20,
    max_overflow=30,
)

# Used by the lead store; sessions are short-lived and one per store call
AsyncSessionLocal = async_sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Person-search cache; from_url does not connect eagerly
redis_client: Optional[aioredis.Redis] = (
    aioredis.from_url(settings.REDIS_URL, decode_responses=True) if settings.REDIS_URL else None
)
