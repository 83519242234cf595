# app/core/database.py

import ssl
from typing import AsyncGenerator

from loguru import logger
from sqlmodel import SQLModel
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine
)
from sqlalchemy.pool import NullPool
from sqlalchemy import text

from app.core.config import settings


# ----------------------------------------------------
# SSL for managed Postgres
# ----------------------------------------------------
def make_ssl():
    ctx = ssl.create_default_context()
    if not settings.DB_SSL_VERIFY:
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
    return ctx


def make_engine(database_url: str) -> AsyncEngine:
    """
    Builds the process-wide engine.
    - asyncpg: SSL + no prepared statements (pooler safe), NullPool
    - sqlite (aiosqlite): plain engine, used for local dev
    """
    if database_url.startswith("postgresql+asyncpg"):
        logger.info("Configuring database (Postgres pooler mode)")
        return create_async_engine(
            database_url,
            echo=False,
            future=True,
            connect_args={
                "ssl": make_ssl(),
                "statement_cache_size": 0,
                "prepared_statement_name_func": None,
            },
            pool_pre_ping=True,
            poolclass=NullPool,
        )

    logger.info(f"Configuring database ({database_url.split(':', 1)[0]})")
    return create_async_engine(database_url, echo=False, future=True)


# ----------------------------------------------------
# Engine + sessions (constructed once per process)
# ----------------------------------------------------
engine = make_engine(settings.DATABASE_URL)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


# ----------------------------------------------------
# Create tables
# ----------------------------------------------------
async def init_db(bind: AsyncEngine | None = None):
    # Register tables on the metadata before create_all
    from app.models import application, assignment, user  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


# ----------------------------------------------------
# Test Connection
# ----------------------------------------------------
async def test_connection():
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
