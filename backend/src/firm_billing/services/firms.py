"""Firm registration and lookup."""
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from firm_billing.exceptions import NotFound
from firm_billing.models.firm import Firm
from firm_billing.schemas.firm import FirmCreate
from firm_billing.utils.currency import validate_currency

logger = structlog.get_logger(__name__)


async def require_firm(db: AsyncSession, firm_id: UUID) -> Firm:
    """
    Load a firm or fail.

    Raises:
        NotFound: If no firm has this ID
    """
    result = await db.execute(select(Firm).where(Firm.id == firm_id))
    firm = result.scalar_one_or_none()
    if firm is None:
        raise NotFound(f"Firm {firm_id} not found")
    return firm


class FirmService:
    """Service layer for firm records owned by the billing engine."""

    def __init__(self, db: AsyncSession):
        """Initialize firm service with database session."""
        self.db = db

    async def create_firm(self, firm_data: FirmCreate) -> Firm:
        """
        Register a firm at signup.

        Raises:
            ValueError: If the currency is not supported
        """
        if not validate_currency(firm_data.currency):
            raise ValueError(f"Currency {firm_data.currency} is not supported")

        firm = Firm(
            name=firm_data.name,
            email=firm_data.email,
            currency=firm_data.currency.upper(),
            is_active=True,
        )
        self.db.add(firm)
        await self.db.flush()
        await self.db.refresh(firm)

        logger.info("firm_created", firm_id=str(firm.id), currency=firm.currency)
        return firm

    async def get_firm(self, firm_id: UUID) -> Firm:
        """Get firm by ID, raising NotFound if missing."""
        return await require_firm(self.db, firm_id)

    async def deactivate_firm(self, firm_id: UUID) -> Firm:
        """Deactivate a firm; firms are never deleted."""
        firm = await require_firm(self.db, firm_id)
        firm.is_active = False
        await self.db.flush()
        logger.info("firm_deactivated", firm_id=str(firm_id))
        return firm
