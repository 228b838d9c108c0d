# smartauto/db.py
import os
from dotenv import load_dotenv
load_dotenv()

from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncSession,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool
from collections.abc import AsyncGenerator

DATABASE_URL = os.environ.get("DATABASE_URL")
if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL not set in environment")

# libpq-only options asyncpg rejects
DROPPED_QUERY_KEYS = ("sslmode", "channel_binding")


def database_url(raw: str) -> URL:
    url = make_url(raw)
    # Ensure async driver
    if url.drivername in ("postgresql", "postgres"):
        url = url.set(drivername="postgresql+asyncpg")
    return url.difference_update_query(DROPPED_QUERY_KEYS)

CLEAN_DATABASE_URL = database_url(DATABASE_URL)

def engine_options(url: URL) -> dict:
    # aiosqlite connections are bound to the loop that opened them
    if url.get_backend_name() == "sqlite":
        return {"poolclass": NullPool}
    return {
        "pool_pre_ping": True,
        "pool_recycle": 1800,
        "pool_size": 5,
        "max_overflow": 10,
    }

engine = create_async_engine(
    CLEAN_DATABASE_URL,
    echo=False,
    future=True,
    **engine_options(CLEAN_DATABASE_URL),
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    autoflush=False,
    expire_on_commit=False,
    class_=AsyncSession,
)

class Base(DeclarativeBase):
    pass

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
