"""Firm API endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from firm_billing.api.deps import get_db
from firm_billing.schemas.firm import Firm, FirmCreate
from firm_billing.services.firms import FirmService

router = APIRouter(prefix="/firms", tags=["Firms"])


@router.post("", response_model=Firm, status_code=status.HTTP_201_CREATED)
async def create_firm(
    firm_data: FirmCreate,
    db: AsyncSession = Depends(get_db),
) -> Firm:
    """
    Register a firm with the billing engine.

    - **name**: Firm display name
    - **email**: Billing contact email
    - **currency**: ISO 4217 currency code (default USD)
    """
    service = FirmService(db)
    try:
        return await service.create_firm(firm_data)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        ) from e


@router.get("/{firm_id}", response_model=Firm)
async def get_firm(
    firm_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> Firm:
    """Get firm by ID."""
    return await FirmService(db).get_firm(firm_id)


@router.post("/{firm_id}/deactivate", response_model=Firm)
async def deactivate_firm(
    firm_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> Firm:
    """Deactivate a firm. Its billing history is kept."""
    return await FirmService(db).deactivate_firm(firm_id)
