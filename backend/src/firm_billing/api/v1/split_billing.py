"""Split-billing configuration API endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from firm_billing.api.deps import get_db
from firm_billing.schemas.split_billing import (
    Allocation,
    AllocationRequest,
    SplitBillingConfig,
    SplitBillingConfigUpdate,
)
from firm_billing.services.split_billing import SplitBillingAllocator

router = APIRouter(prefix="/firms/{firm_id}/split-config", tags=["Split Billing"])


@router.get("", response_model=SplitBillingConfig)
async def get_split_config(
    firm_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> SplitBillingConfig:
    """
    Get the firm's split-billing configuration.

    Firms without a stored configuration get the default: the firm pays the
    base plan, staff pay their add-ons and shared resources are not split.
    """
    return await SplitBillingAllocator(db).get_config(firm_id)


@router.put("", response_model=SplitBillingConfig)
async def update_split_config(
    firm_id: UUID,
    update_data: SplitBillingConfigUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> SplitBillingConfig:
    """
    Update the split-billing configuration in one atomic write.

    - **base_plan_firm_pays**: Firm covers the base plan (otherwise staff do)
    - **staff_addons_firm_pays**: Firm covers staff add-ons (otherwise staff do)
    - **shared_resources_split_percentage**: Share of shared resources billed to staff (0-100)

    Omitted fields keep their current value.
    """
    allocator = SplitBillingAllocator(db)
    return await allocator.update_config(
        firm_id,
        update_data,
        request_id=request.headers.get("x-request-id"),
    )


@router.post("/allocate", response_model=Allocation)
async def allocate_line_item(
    firm_id: UUID,
    allocation_request: AllocationRequest,
    db: AsyncSession = Depends(get_db),
) -> Allocation:
    """
    Preview how a priced line item would be split between firm and staff.

    Amounts are in cents; the two shares always sum to the line total.
    """
    allocator = SplitBillingAllocator(db)
    return await allocator.allocate(
        firm_id,
        allocation_request.category,
        allocation_request.total_amount,
    )
