"""Database session management with async SQLAlchemy."""
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from firm_billing.config import settings


def _engine_options(database_url: str) -> dict[str, Any]:
    """Pool options only apply to pooled server drivers, not SQLite."""
    if database_url.startswith("sqlite"):
        return {}
    return {
        "pool_pre_ping": True,
        "pool_size": settings.database_pool_size,
        "max_overflow": settings.database_max_overflow,
    }


# Create async engine
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    **_engine_options(settings.database_url),
)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


# Declarative base for all models
Base = declarative_base()
