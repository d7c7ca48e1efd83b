"""Growth charge API endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from firm_billing.api.deps import get_db, parse_period
from firm_billing.models.billing_charge import ChargeStatus, ChargeType
from firm_billing.schemas.billing_charge import BillingCharge, BillingChargeList, ChargeProposal
from firm_billing.services.approval_engine import ApprovalEngine
from firm_billing.services.charge_lifecycle import ChargeLifecycle

router = APIRouter(tags=["Charges"])


@router.post(
    "/firms/{firm_id}/charges",
    response_model=BillingCharge,
    status_code=status.HTTP_201_CREATED,
)
async def propose_charge(
    firm_id: UUID,
    proposal: ChargeProposal,
    db: AsyncSession = Depends(get_db),
) -> BillingCharge:
    """
    Propose an office or user growth charge.

    - **charge_type**: office or user
    - **quantity**: Units added (must be positive)
    - **unit_price**: Price per unit in cents
    - **period_id**: Billing period (YYYY-MM)

    The firm's billing rule decides whether the charge is approved
    immediately or created pending approval. Proposals for the same firm are
    decided one at a time.
    """
    period = parse_period(proposal.period_id)
    engine = ApprovalEngine(db)
    return await engine.propose_charge(
        firm_id=firm_id,
        charge_type=proposal.charge_type,
        quantity=proposal.quantity,
        unit_price=proposal.unit_price,
        period=period,
    )


@router.get("/firms/{firm_id}/charges", response_model=BillingChargeList)
async def list_charges(
    firm_id: UUID,
    period_id: str | None = Query(default=None, description="Filter by billing period"),
    status: ChargeStatus | None = Query(default=None, description="Filter by status"),
    charge_type: ChargeType | None = Query(default=None, description="Filter by office/user"),
    db: AsyncSession = Depends(get_db),
) -> BillingChargeList:
    """List a firm's growth charges, newest first."""
    charges = await ChargeLifecycle(db).list_charges(
        firm_id=firm_id,
        period_id=period_id,
        status=status,
        charge_type=charge_type,
    )
    return BillingChargeList(items=charges, total=len(charges))


@router.get("/charges", response_model=BillingChargeList)
async def list_all_charges(
    firm_id: UUID | None = Query(default=None, description="Filter by firm"),
    period_id: str | None = Query(default=None, description="Filter by billing period"),
    status: ChargeStatus | None = Query(default=None, description="Filter by status"),
    charge_type: ChargeType | None = Query(default=None, description="Filter by office/user"),
    db: AsyncSession = Depends(get_db),
) -> BillingChargeList:
    """
    List growth charges across all firms, newest first.

    Used by platform administrators reviewing charges awaiting approval;
    every filter is optional.
    """
    charges = await ChargeLifecycle(db).list_charges(
        firm_id=firm_id,
        period_id=period_id,
        status=status,
        charge_type=charge_type,
    )
    return BillingChargeList(items=charges, total=len(charges))


@router.get("/charges/{charge_id}", response_model=BillingCharge)
async def get_charge(
    charge_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> BillingCharge:
    """Get growth charge by ID."""
    return await ChargeLifecycle(db).get_charge(charge_id)


@router.post("/charges/{charge_id}/approve", response_model=BillingCharge)
async def approve_charge(
    charge_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> BillingCharge:
    """Approve a pending charge."""
    return await ChargeLifecycle(db).approve(charge_id)


@router.post("/charges/{charge_id}/cancel", response_model=BillingCharge)
async def cancel_charge(
    charge_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> BillingCharge:
    """
    Cancel a pending or approved charge.

    Billed, paid and cancelled charges cannot be cancelled (409).
    """
    return await ChargeLifecycle(db).cancel(charge_id)


@router.post("/charges/{charge_id}/mark-billed", response_model=BillingCharge)
async def mark_charge_billed(
    charge_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> BillingCharge:
    """Mark an approved charge as billed."""
    return await ChargeLifecycle(db).mark_billed(charge_id)


@router.post("/charges/{charge_id}/mark-paid", response_model=BillingCharge)
async def mark_charge_paid(
    charge_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> BillingCharge:
    """Mark a billed charge as paid."""
    return await ChargeLifecycle(db).mark_paid(charge_id)
