"""Integration tests for growth charge approval."""
import asyncio
from uuid import uuid4

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from firm_billing.exceptions import ConcurrentThresholdViolation, InvalidCategory, InvalidQuantity, NotFound
from firm_billing.models import ApprovalType, BillingCharge, BillingRule, ChargeStatus, ChargeType, Firm
from firm_billing.schemas.billing_rule import BillingRuleUpdate
from firm_billing.schemas.period import BillingPeriod
from firm_billing.services.approval_engine import ApprovalEngine
from firm_billing.services.billing_rules import BillingRuleService


async def set_rule(db_session: AsyncSession, firm: Firm, **fields) -> None:
    await BillingRuleService(db_session).update_rule(firm.id, BillingRuleUpdate(**fields))
    await db_session.commit()


async def count_charges(db_session: AsyncSession, firm_id) -> int:
    return await db_session.scalar(
        select(func.count()).select_from(BillingCharge).where(BillingCharge.firm_id == firm_id)
    )


@pytest.mark.asyncio
async def test_threshold_approves_until_cumulative_maximum(
    db_session: AsyncSession, firm: Firm, period: BillingPeriod
) -> None:
    await set_rule(db_session, firm, office_approval_type=ApprovalType.THRESHOLD, max_offices_auto_approve=5)
    engine = ApprovalEngine(db_session)

    first = await engine.propose_charge(firm.id, ChargeType.OFFICE, 3, 4900, period)
    second = await engine.propose_charge(firm.id, ChargeType.OFFICE, 3, 4900, period)

    assert first.status == ChargeStatus.APPROVED
    assert first.requires_approval is False
    assert first.approved_at is not None
    assert first.total_amount == 14700
    assert second.status == ChargeStatus.PENDING
    assert second.requires_approval is True
    assert second.approved_at is None


@pytest.mark.asyncio
async def test_pending_charges_do_not_count_toward_threshold(
    db_session: AsyncSession, firm: Firm, period: BillingPeriod
) -> None:
    await set_rule(db_session, firm, user_approval_type=ApprovalType.THRESHOLD, max_users_auto_approve=5)
    engine = ApprovalEngine(db_session)

    pending = await engine.propose_charge(firm.id, ChargeType.USER, 6, 1000, period)
    approved = await engine.propose_charge(firm.id, ChargeType.USER, 5, 1000, period)

    assert pending.status == ChargeStatus.PENDING
    assert approved.status == ChargeStatus.APPROVED


@pytest.mark.asyncio
async def test_threshold_is_per_charge_type_and_period(
    db_session: AsyncSession, firm: Firm, period: BillingPeriod
) -> None:
    await set_rule(
        db_session,
        firm,
        office_approval_type=ApprovalType.THRESHOLD,
        max_offices_auto_approve=5,
        user_approval_type=ApprovalType.THRESHOLD,
        max_users_auto_approve=5,
    )
    engine = ApprovalEngine(db_session)

    await engine.propose_charge(firm.id, ChargeType.OFFICE, 5, 100, period)
    user_charge = await engine.propose_charge(firm.id, ChargeType.USER, 5, 100, period)
    next_month = await engine.propose_charge(firm.id, ChargeType.OFFICE, 5, 100, BillingPeriod.for_month(2026, 11))

    assert user_charge.status == ChargeStatus.APPROVED
    assert next_month.status == ChargeStatus.APPROVED


@pytest.mark.asyncio
async def test_default_rule_requires_approval(db_session: AsyncSession, firm: Firm, period: BillingPeriod) -> None:
    charge = await ApprovalEngine(db_session).propose_charge(firm.id, ChargeType.OFFICE, 1, 100, period)

    assert charge.status == ChargeStatus.PENDING


@pytest.mark.asyncio
async def test_automatic_and_manual_modes(db_session: AsyncSession, firm: Firm, period: BillingPeriod) -> None:
    await set_rule(
        db_session,
        firm,
        office_approval_type=ApprovalType.AUTOMATIC,
        user_approval_type=ApprovalType.MANUAL,
        max_users_auto_approve=100,
    )
    engine = ApprovalEngine(db_session)

    office = await engine.propose_charge(firm.id, ChargeType.OFFICE, 50, 100, period)
    user = await engine.propose_charge(firm.id, ChargeType.USER, 1, 100, period)

    assert office.status == ChargeStatus.APPROVED
    assert user.status == ChargeStatus.PENDING


@pytest.mark.asyncio
async def test_monthly_amount_threshold(db_session: AsyncSession, firm: Firm, period: BillingPeriod) -> None:
    await set_rule(
        db_session,
        firm,
        office_approval_type=ApprovalType.THRESHOLD,
        max_offices_auto_approve=100,
        auto_billing_enabled=True,
        monthly_billing_threshold=10000,
    )
    engine = ApprovalEngine(db_session)

    within = await engine.propose_charge(firm.id, ChargeType.OFFICE, 5, 1000, period)
    over = await engine.propose_charge(firm.id, ChargeType.OFFICE, 6, 1000, period)
    exact = await engine.propose_charge(firm.id, ChargeType.OFFICE, 5, 1000, period)

    assert within.status == ChargeStatus.APPROVED
    assert over.status == ChargeStatus.PENDING
    assert exact.status == ChargeStatus.APPROVED


@pytest.mark.asyncio
async def test_monthly_threshold_ignored_when_auto_billing_disabled(
    db_session: AsyncSession, firm: Firm, period: BillingPeriod
) -> None:
    await set_rule(
        db_session,
        firm,
        office_approval_type=ApprovalType.THRESHOLD,
        max_offices_auto_approve=100,
        auto_billing_enabled=False,
        monthly_billing_threshold=100,
    )

    charge = await ApprovalEngine(db_session).propose_charge(firm.id, ChargeType.OFFICE, 5, 1000, period)

    assert charge.status == ChargeStatus.APPROVED


@pytest.mark.asyncio
@pytest.mark.parametrize("quantity, unit_price", [(0, 100), (-1, 100), (1, -1)])
async def test_invalid_quantity_creates_nothing(
    db_session: AsyncSession, firm: Firm, period: BillingPeriod, quantity: int, unit_price: int
) -> None:
    firm_id = firm.id
    with pytest.raises(InvalidQuantity):
        await ApprovalEngine(db_session).propose_charge(firm.id, ChargeType.OFFICE, quantity, unit_price, period)

    assert await count_charges(db_session, firm_id) == 0


@pytest.mark.asyncio
async def test_unknown_charge_type(db_session: AsyncSession, firm: Firm, period: BillingPeriod) -> None:
    with pytest.raises(InvalidCategory):
        await ApprovalEngine(db_session).propose_charge(firm.id, "desk", 1, 100, period)


@pytest.mark.asyncio
async def test_unknown_firm(db_session: AsyncSession, period: BillingPeriod) -> None:
    with pytest.raises(NotFound):
        await ApprovalEngine(db_session).propose_charge(uuid4(), ChargeType.OFFICE, 1, 100, period)


@pytest.mark.asyncio
async def test_concurrent_proposals_never_both_auto_approve(
    db_session: AsyncSession,
    session_factory: async_sessionmaker[AsyncSession],
    firm: Firm,
) -> None:
    """Two simultaneous 3-office proposals against a maximum of 5: exactly one is approved."""
    await set_rule(db_session, firm, office_approval_type=ApprovalType.THRESHOLD, max_offices_auto_approve=5)

    async def propose(period: BillingPeriod) -> ChargeStatus:
        async with session_factory() as session:
            charge = await ApprovalEngine(session).propose_charge(firm.id, ChargeType.OFFICE, 3, 4900, period)
            return charge.status

    for iteration in range(24):
        period = BillingPeriod.for_month(2027 + iteration // 12, iteration % 12 + 1)
        statuses = await asyncio.gather(propose(period), propose(period))

        assert sorted(status.value for status in statuses) == ["approved", "pending"]


@pytest.mark.asyncio
async def test_version_mismatch_raises_and_rolls_back(
    db_session: AsyncSession, firm: Firm, period: BillingPeriod, monkeypatch: pytest.MonkeyPatch
) -> None:
    """A rule change landing mid-decision is detected and leaves no charge behind."""
    await set_rule(db_session, firm, office_approval_type=ApprovalType.AUTOMATIC)
    engine = ApprovalEngine(db_session)
    # The rollback expires every loaded instance
    firm_id = firm.id
    original = ApprovalEngine._should_auto_approve

    async def interfering(self, rule, *args, **kwargs):
        await self.db.execute(
            update(BillingRule)
            .where(BillingRule.id == rule.id)
            .values(approval_version=BillingRule.approval_version + 1)
            .execution_options(synchronize_session=False)
        )
        return await original(self, rule, *args, **kwargs)

    monkeypatch.setattr(ApprovalEngine, "_should_auto_approve", interfering)

    with pytest.raises(ConcurrentThresholdViolation):
        await engine.propose_charge(firm.id, ChargeType.OFFICE, 1, 100, period)

    assert await count_charges(db_session, firm_id) == 0


@pytest.mark.asyncio
async def test_each_decision_bumps_rule_version(db_session: AsyncSession, firm: Firm, period: BillingPeriod) -> None:
    engine = ApprovalEngine(db_session)

    await engine.propose_charge(firm.id, ChargeType.OFFICE, 1, 100, period)
    await engine.propose_charge(firm.id, ChargeType.USER, 1, 100, period)

    version = await db_session.scalar(select(BillingRule.approval_version).where(BillingRule.firm_id == firm.id))
    assert version == 2
