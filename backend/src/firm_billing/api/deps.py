"""FastAPI dependencies for database sessions and request parameters."""
from typing import AsyncGenerator

from fastapi import HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from firm_billing.database import AsyncSessionLocal
from firm_billing.schemas.period import BillingPeriod


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Database session dependency.

    Yields:
        AsyncSession: Database session for the request lifecycle
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def parse_period(period_id: str) -> BillingPeriod:
    """
    Resolve a YYYY-MM identifier to its billing period.

    Raises:
        HTTPException: 422 if the identifier is malformed
    """
    try:
        return BillingPeriod.from_period_id(period_id)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        ) from e


def period_query(
    period_id: str = Query(..., description="Billing period identifier (YYYY-MM)"),
) -> BillingPeriod:
    """Billing period taken from the ``period_id`` query parameter."""
    return parse_period(period_id)
