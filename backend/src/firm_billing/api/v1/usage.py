"""Usage tracking API endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from firm_billing.api.deps import get_db
from firm_billing.schemas.usage import UsageClassification, UsageIncrement
from firm_billing.services.billing_facade import BillingFacade

router = APIRouter(prefix="/firms/{firm_id}/usage", tags=["Usage"])


@router.post("", response_model=UsageClassification, status_code=status.HTTP_201_CREATED)
async def record_usage(
    firm_id: UUID,
    usage_data: UsageIncrement,
    db: AsyncSession = Depends(get_db),
) -> UsageClassification:
    """
    Record consumption and return the updated classification.

    - **period_id**: Billing period identifier (e.g. 2026-10)
    - **category**: clients, staff_seats, storage_gb, e_signatures, workflow_runs, api_calls, sms
    - **delta**: Units consumed (default 1)

    The response lists one alert per category limited by the firm's plan,
    with severity normal, warning (>= 70 %) or critical (>= 90 %).
    """
    facade = BillingFacade(db)
    return await facade.record_usage(
        firm_id=firm_id,
        period_id=usage_data.period_id,
        category=usage_data.category,
        delta=usage_data.delta,
    )


@router.get("/{period_id}", response_model=UsageClassification)
async def get_usage_classification(
    firm_id: UUID,
    period_id: str,
    db: AsyncSession = Depends(get_db),
) -> UsageClassification:
    """Classify the firm's usage for a period against its plan limits."""
    return await BillingFacade(db).classify(firm_id, period_id)
