"""
Database engine, session factory and declarative base.

Sessions are opened by the persistence store, one per transaction attempt;
request handlers never hold a session of their own.
"""
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import MetaData
from clubhub.core.config import settings

# Naming convention for constraints
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s"
}

metadata = MetaData(naming_convention=convention)


class Base(DeclarativeBase):
    """Base class for all database models."""
    metadata = metadata


def build_engine(url: Optional[str] = None, echo: Optional[bool] = None) -> AsyncEngine:
    """Create an async engine for ``url`` (defaults to ``DATABASE_URL``)."""
    url = url or settings.DATABASE_URL
    options = {"echo": settings.DEBUG if echo is None else echo}
    if not url.startswith("sqlite"):
        # Long-lived pooled connections to Postgres can be dropped server side
        options["pool_pre_ping"] = True
    return create_async_engine(url, **options)


engine = build_engine()

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def init_db() -> None:
    """Create missing tables. Production databases are managed by Alembic."""
    # Import models so every table is registered on the metadata
    import clubhub.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_db() -> None:
    """Close pooled connections (application shutdown, scripts)."""
    await engine.dispose()
