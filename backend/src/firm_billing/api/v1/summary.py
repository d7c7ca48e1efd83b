"""Billing summary API endpoint."""
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from firm_billing.api.deps import get_db, period_query
from firm_billing.schemas.period import BillingPeriod
from firm_billing.schemas.summary import BillingSummary
from firm_billing.services.billing_facade import BillingFacade

router = APIRouter(tags=["Summary"])


@router.get("/firms/{firm_id}/billing-summary", response_model=BillingSummary)
async def get_billing_summary(
    firm_id: UUID,
    period: BillingPeriod = Depends(period_query),
    db: AsyncSession = Depends(get_db),
) -> BillingSummary:
    """
    Period overview for the firm billing page.

    Includes charges awaiting approval, approved/billed/paid totals, the
    invoiced firm and staff amounts and the current split configuration.
    """
    return await BillingFacade(db).billing_summary(firm_id, period)
