"""Decide whether a growth charge bills automatically or waits for approval."""
from uuid import UUID

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from firm_billing.exceptions import ConcurrentThresholdViolation, InvalidQuantity
from firm_billing.locks import FirmLocks, firm_locks
from firm_billing.metrics import charges_proposed_total, concurrent_threshold_violations_total
from firm_billing.models.billing_charge import CLEARED_STATUSES, BillingCharge, ChargeStatus, ChargeType
from firm_billing.models.billing_rule import ApprovalType, BillingRule
from firm_billing.schemas.period import BillingPeriod
from firm_billing.services.billing_rules import BillingRuleService
from firm_billing.services.charge_lifecycle import ChargeLifecycle
from firm_billing.services.firms import require_firm
from firm_billing.utils.enums import coerce_category

logger = structlog.get_logger(__name__)


class ApprovalEngine:
    """
    Applies a firm's BillingRule to proposed growth charges.

    Reading the cumulative approved quantity, deciding and persisting the
    charge form one critical section per firm: it runs under the firm's
    lock, reads the rule row FOR UPDATE, bumps the rule's approval_version
    with a compare-and-set and commits before the lock is released.
    """

    def __init__(self, db: AsyncSession, locks: FirmLocks | None = None):
        """Initialize approval engine with database session and lock registry."""
        self.db = db
        self.locks = locks if locks is not None else firm_locks
        self.rules = BillingRuleService(db)
        self.lifecycle = ChargeLifecycle(db)

    async def propose_charge(
        self,
        firm_id: UUID,
        charge_type: ChargeType | str,
        quantity: int,
        unit_price: int,
        period: BillingPeriod,
        current_user: dict | None = None,
    ) -> BillingCharge:
        """
        Create a growth charge, auto-approved or pending per the firm's rule.

        The session is committed before returning; on any failure it is
        rolled back and no charge exists.

        Args:
            firm_id: Firm UUID
            charge_type: office or user
            quantity: Offices or users added (positive)
            unit_price: Price per unit in cents (non-negative)
            period: Billing period the charge belongs to
            current_user: Acting user for the audit trail

        Returns:
            The persisted charge, APPROVED or PENDING

        Raises:
            InvalidQuantity: If quantity <= 0 or unit_price < 0
            InvalidCategory: If charge_type is unknown
            NotFound: If the firm does not exist
            ConcurrentThresholdViolation: If another proposal for this firm
                was decided concurrently despite the lock
        """
        charge_type = coerce_category(ChargeType, charge_type)
        if quantity <= 0:
            raise InvalidQuantity(f"Charge quantity must be positive, got {quantity}")
        if unit_price < 0:
            raise InvalidQuantity(f"Unit price must be non-negative, got {unit_price}")

        async with self.locks.hold(firm_id):
            try:
                charge = await self._decide_and_persist(
                    firm_id, charge_type, quantity, unit_price, period, current_user
                )
                await self.db.commit()
            except Exception:
                await self.db.rollback()
                raise

        decision = "pending" if charge.requires_approval else "auto_approved"
        charges_proposed_total.labels(charge_type=charge_type.value, decision=decision).inc()
        logger.info(
            "charge_proposed",
            charge_id=str(charge.id),
            firm_id=str(firm_id),
            charge_type=charge_type.value,
            quantity=quantity,
            total_amount=charge.total_amount,
            period_id=period.period_id,
            decision=decision,
        )
        return charge

    async def _decide_and_persist(
        self,
        firm_id: UUID,
        charge_type: ChargeType,
        quantity: int,
        unit_price: int,
        period: BillingPeriod,
        current_user: dict | None,
    ) -> BillingCharge:
        await require_firm(self.db, firm_id)
        rule = await self.rules.get_rule(firm_id, for_update=True)
        observed_version = rule.approval_version

        auto_approve = await self._should_auto_approve(rule, firm_id, charge_type, quantity, unit_price, period)

        charge = await self.lifecycle.create(
            firm_id=firm_id,
            charge_type=charge_type,
            quantity=quantity,
            unit_price=unit_price,
            period=period,
            status=ChargeStatus.APPROVED if auto_approve else ChargeStatus.PENDING,
            requires_approval=not auto_approve,
            current_user=current_user,
        )

        result = await self.db.execute(
            update(BillingRule)
            .where(BillingRule.id == rule.id, BillingRule.approval_version == observed_version)
            .values(approval_version=observed_version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            concurrent_threshold_violations_total.inc()
            logger.error(
                "concurrent_threshold_violation",
                firm_id=str(firm_id),
                charge_type=charge_type.value,
                observed_version=observed_version,
            )
            raise ConcurrentThresholdViolation(
                f"Billing rule for firm {firm_id} changed while a {charge_type.value} charge was being decided"
            )

        return charge

    async def _should_auto_approve(
        self,
        rule: BillingRule,
        firm_id: UUID,
        charge_type: ChargeType,
        quantity: int,
        unit_price: int,
        period: BillingPeriod,
    ) -> bool:
        approval_type = rule.approval_type_for(charge_type)

        if approval_type == ApprovalType.AUTOMATIC:
            return True
        if approval_type == ApprovalType.MANUAL:
            return False

        cumulative_quantity = await self.cleared_quantity(firm_id, charge_type, period) + quantity
        maximum = rule.max_auto_approve_for(charge_type)
        if cumulative_quantity > maximum:
            logger.info(
                "charge_over_quantity_threshold",
                firm_id=str(firm_id),
                charge_type=charge_type.value,
                cumulative_quantity=cumulative_quantity,
                maximum=maximum,
            )
            return False

        if rule.auto_billing_enabled and rule.monthly_billing_threshold is not None:
            month_total = await self.cleared_amount_for_month(firm_id, period) + quantity * unit_price
            if month_total > rule.monthly_billing_threshold:
                logger.info(
                    "charge_over_monthly_threshold",
                    firm_id=str(firm_id),
                    month_total=month_total,
                    threshold=rule.monthly_billing_threshold,
                )
                return False

        return True

    async def cleared_quantity(self, firm_id: UUID, charge_type: ChargeType, period: BillingPeriod) -> int:
        """
        Quantity of this charge type already past approval in the period.

        Pending charges are excluded; only approved, billed and paid count.
        """
        result = await self.db.execute(
            select(func.coalesce(func.sum(BillingCharge.quantity), 0)).where(
                BillingCharge.firm_id == firm_id,
                BillingCharge.charge_type == charge_type,
                BillingCharge.period_id == period.period_id,
                BillingCharge.status.in_(CLEARED_STATUSES),
            )
        )
        return int(result.scalar_one())

    async def cleared_amount_for_month(self, firm_id: UUID, period: BillingPeriod) -> int:
        """Approved, billed and paid charge total (cents, all types) for the period's calendar month."""
        month_start, month_end = period.month_bounds()
        result = await self.db.execute(
            select(func.coalesce(func.sum(BillingCharge.total_amount), 0)).where(
                BillingCharge.firm_id == firm_id,
                BillingCharge.status.in_(CLEARED_STATUSES),
                BillingCharge.billing_period_start >= month_start,
                BillingCharge.billing_period_start < month_end,
            )
        )
        return int(result.scalar_one())
