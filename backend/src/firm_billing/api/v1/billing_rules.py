"""Billing rule API endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from firm_billing.api.deps import get_db
from firm_billing.schemas.billing_rule import BillingRule, BillingRuleUpdate
from firm_billing.services.billing_rules import BillingRuleService

router = APIRouter(prefix="/firms/{firm_id}/billing-rule", tags=["Billing Rules"])


@router.get("", response_model=BillingRule)
async def get_billing_rule(
    firm_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> BillingRule:
    """
    Get the firm's growth-charge approval rule.

    Firms without a stored rule get threshold approval with no maximum, so
    every office or user charge waits for approval.
    """
    return await BillingRuleService(db).get_rule(firm_id)


@router.put("", response_model=BillingRule)
async def update_billing_rule(
    firm_id: UUID,
    update_data: BillingRuleUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> BillingRule:
    """
    Update the approval rule in one atomic write.

    - **office_approval_type** / **user_approval_type**: automatic, manual or threshold
    - **max_offices_auto_approve** / **max_users_auto_approve**: Per-period auto-approve ceiling
    - **auto_billing_enabled**: Apply the monthly amount threshold
    - **monthly_billing_threshold**: Monthly auto-approve ceiling in cents

    Omitted fields keep their value; an explicit null clears a ceiling.
    """
    service = BillingRuleService(db)
    return await service.update_rule(
        firm_id,
        update_data,
        request_id=request.headers.get("x-request-id"),
    )
