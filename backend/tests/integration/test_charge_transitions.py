"""Integration tests for growth charge status transitions."""
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from firm_billing.exceptions import InvalidTransition, NotFound
from firm_billing.models import AuditLog, BillingCharge, ChargeStatus, ChargeType, Firm
from firm_billing.schemas.period import BillingPeriod
from firm_billing.services.charge_lifecycle import ChargeLifecycle


async def make_charge(
    db_session: AsyncSession, firm: Firm, period: BillingPeriod, status: ChargeStatus = ChargeStatus.PENDING
) -> BillingCharge:
    charge = await ChargeLifecycle(db_session).create(
        firm_id=firm.id,
        charge_type=ChargeType.USER,
        quantity=2,
        unit_price=2500,
        period=period,
        status=status,
        requires_approval=status == ChargeStatus.PENDING,
    )
    await db_session.commit()
    return charge


@pytest.mark.asyncio
async def test_full_lifecycle_sets_timestamps(db_session: AsyncSession, firm: Firm, period: BillingPeriod) -> None:
    lifecycle = ChargeLifecycle(db_session)
    charge = await make_charge(db_session, firm, period)

    # Each transition returns the same identity-map instance, so check it before moving on
    approved = await lifecycle.approve(charge.id, current_user={"sub": "admin-1"})
    assert approved.status == ChargeStatus.APPROVED
    assert approved.approved_at is not None

    billed = await lifecycle.mark_billed(charge.id)
    assert billed.status == ChargeStatus.BILLED
    assert billed.billed_at is not None

    paid = await lifecycle.mark_paid(charge.id)
    assert paid.status == ChargeStatus.PAID
    assert paid.paid_at is not None
    assert paid.approved_at is not None

    result = await db_session.execute(
        select(AuditLog.action).where(AuditLog.entity_id == charge.id).order_by(AuditLog.created_at)
    )
    assert list(result.scalars().all()) == ["create", "approve", "mark_billed", "mark_paid"]


@pytest.mark.asyncio
async def test_cancel_pending_and_approved(db_session: AsyncSession, firm: Firm, period: BillingPeriod) -> None:
    lifecycle = ChargeLifecycle(db_session)
    pending = await make_charge(db_session, firm, period)
    approved = await make_charge(db_session, firm, period, ChargeStatus.APPROVED)

    assert (await lifecycle.cancel(pending.id)).status == ChargeStatus.CANCELLED
    cancelled = await lifecycle.cancel(approved.id)
    assert cancelled.status == ChargeStatus.CANCELLED
    assert cancelled.cancelled_at is not None


@pytest.mark.asyncio
async def test_cancel_paid_charge_rejected(db_session: AsyncSession, firm: Firm, period: BillingPeriod) -> None:
    lifecycle = ChargeLifecycle(db_session)
    charge = await make_charge(db_session, firm, period, ChargeStatus.APPROVED)
    await lifecycle.mark_billed(charge.id)
    await lifecycle.mark_paid(charge.id)

    with pytest.raises(InvalidTransition) as exc_info:
        await lifecycle.cancel(charge.id)

    assert exc_info.value.current_status == "paid"
    assert (await lifecycle.get_charge(charge.id)).status == ChargeStatus.PAID


@pytest.mark.asyncio
async def test_cancel_cancelled_charge_rejected(db_session: AsyncSession, firm: Firm, period: BillingPeriod) -> None:
    lifecycle = ChargeLifecycle(db_session)
    charge = await make_charge(db_session, firm, period)
    await lifecycle.cancel(charge.id)

    with pytest.raises(InvalidTransition):
        await lifecycle.cancel(charge.id)


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [ChargeStatus.PENDING, ChargeStatus.APPROVED])
async def test_mark_paid_requires_billed(
    db_session: AsyncSession, firm: Firm, period: BillingPeriod, status: ChargeStatus
) -> None:
    lifecycle = ChargeLifecycle(db_session)
    charge = await make_charge(db_session, firm, period, status)

    with pytest.raises(InvalidTransition):
        await lifecycle.mark_paid(charge.id)

    assert (await lifecycle.get_charge(charge.id)).status == status


@pytest.mark.asyncio
async def test_pending_cannot_be_billed(db_session: AsyncSession, firm: Firm, period: BillingPeriod) -> None:
    charge = await make_charge(db_session, firm, period)

    with pytest.raises(InvalidTransition):
        await ChargeLifecycle(db_session).mark_billed(charge.id)


@pytest.mark.asyncio
async def test_charges_cannot_start_billed(db_session: AsyncSession, firm: Firm, period: BillingPeriod) -> None:
    with pytest.raises(InvalidTransition):
        await ChargeLifecycle(db_session).create(
            firm_id=firm.id,
            charge_type=ChargeType.OFFICE,
            quantity=1,
            unit_price=100,
            period=period,
            status=ChargeStatus.BILLED,
            requires_approval=False,
        )


@pytest.mark.asyncio
async def test_unknown_charge(db_session: AsyncSession) -> None:
    with pytest.raises(NotFound):
        await ChargeLifecycle(db_session).approve(uuid4())


@pytest.mark.asyncio
async def test_list_charges_filters(db_session: AsyncSession, firm: Firm, period: BillingPeriod) -> None:
    lifecycle = ChargeLifecycle(db_session)
    await make_charge(db_session, firm, period)
    await make_charge(db_session, firm, period, ChargeStatus.APPROVED)
    await make_charge(db_session, firm, BillingPeriod.for_month(2026, 11))

    assert len(await lifecycle.list_charges(firm_id=firm.id)) == 3
    assert len(await lifecycle.list_charges(firm_id=firm.id, period_id="2026-10")) == 2
    assert len(await lifecycle.list_charges(firm_id=firm.id, status=ChargeStatus.APPROVED)) == 1
    assert len(await lifecycle.list_charges(firm_id=firm.id, charge_type=ChargeType.OFFICE)) == 0
