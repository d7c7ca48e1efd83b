"""State machine owning a growth charge from creation to paid or cancelled."""
from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from firm_billing.exceptions import InvalidTransition, NotFound
from firm_billing.metrics import charge_transitions_total
from firm_billing.models.billing_charge import BillingCharge, ChargeStatus, ChargeType
from firm_billing.schemas.period import BillingPeriod
from firm_billing.utils.audit import log_audit, status_change

logger = structlog.get_logger(__name__)

# Permitted transitions; PAID and CANCELLED are terminal
TRANSITIONS: dict[ChargeStatus, frozenset[ChargeStatus]] = {
    ChargeStatus.PENDING: frozenset({ChargeStatus.APPROVED, ChargeStatus.CANCELLED}),
    ChargeStatus.APPROVED: frozenset({ChargeStatus.BILLED, ChargeStatus.CANCELLED}),
    ChargeStatus.BILLED: frozenset({ChargeStatus.PAID}),
    ChargeStatus.PAID: frozenset(),
    ChargeStatus.CANCELLED: frozenset(),
}

TIMESTAMP_FIELDS = {
    ChargeStatus.APPROVED: "approved_at",
    ChargeStatus.BILLED: "billed_at",
    ChargeStatus.PAID: "paid_at",
    ChargeStatus.CANCELLED: "cancelled_at",
}

# Statuses a charge may be created in
INITIAL_STATUSES = (ChargeStatus.PENDING, ChargeStatus.APPROVED)


def can_transition(current: ChargeStatus, target: ChargeStatus) -> bool:
    """Whether the lifecycle allows moving from current to target."""
    return target in TRANSITIONS[current]


class ChargeLifecycle:
    """
    Creates growth charges and guards every status transition.

    Transitions are compare-and-set updates on the status column, so a
    failed or lost transition leaves the charge exactly as it was.
    """

    def __init__(self, db: AsyncSession):
        """Initialize charge lifecycle with database session."""
        self.db = db

    async def create(
        self,
        firm_id: UUID,
        charge_type: ChargeType,
        quantity: int,
        unit_price: int,
        period: BillingPeriod,
        status: ChargeStatus,
        requires_approval: bool,
        current_user: dict | None = None,
    ) -> BillingCharge:
        """
        Persist a new charge in its initial status.

        Only PENDING, or APPROVED for the automatic-approval shortcut, are
        valid initial statuses.

        Raises:
            InvalidTransition: If status is not an initial status
        """
        if status not in INITIAL_STATUSES:
            raise InvalidTransition(
                f"Charges cannot be created in status {status.value}",
                target_status=status.value,
            )

        now = datetime.utcnow()
        charge = BillingCharge(
            firm_id=firm_id,
            charge_type=charge_type,
            quantity=quantity,
            unit_price=unit_price,
            total_amount=quantity * unit_price,
            status=status,
            requires_approval=requires_approval,
            period_id=period.period_id,
            billing_period_start=period.start,
            billing_period_end=period.end,
            approved_at=now if status == ChargeStatus.APPROVED else None,
        )
        self.db.add(charge)
        await self.db.flush()
        await self.db.refresh(charge)

        await log_audit(
            db=self.db,
            entity_type="billing_charge",
            entity_id=charge.id,
            action="create",
            user_id=(current_user or {}).get("sub"),
            changes=status_change(None, status),
        )
        return charge

    async def get_charge(self, charge_id: UUID) -> BillingCharge:
        """
        Get charge by ID with its committed state.

        Raises:
            NotFound: If the charge does not exist
        """
        result = await self.db.execute(
            select(BillingCharge)
            .where(BillingCharge.id == charge_id)
            .execution_options(populate_existing=True)
        )
        charge = result.scalar_one_or_none()
        if charge is None:
            raise NotFound(f"Billing charge {charge_id} not found")
        return charge

    async def list_charges(
        self,
        firm_id: UUID | None = None,
        period_id: str | None = None,
        status: ChargeStatus | None = None,
        charge_type: ChargeType | None = None,
    ) -> list[BillingCharge]:
        """
        List charges with optional filters, newest first.

        Args:
            firm_id: Filter by firm (optional)
            period_id: Filter by billing period (optional)
            status: Filter by status (optional)
            charge_type: Filter by office/user (optional)
        """
        query = select(BillingCharge)
        if firm_id:
            query = query.where(BillingCharge.firm_id == firm_id)
        if period_id:
            query = query.where(BillingCharge.period_id == period_id)
        if status:
            query = query.where(BillingCharge.status == status)
        if charge_type:
            query = query.where(BillingCharge.charge_type == charge_type)

        result = await self.db.execute(query.order_by(BillingCharge.created_at.desc()))
        return list(result.scalars().all())

    async def approve(self, charge_id: UUID, current_user: dict | None = None) -> BillingCharge:
        """Manually approve a pending charge."""
        return await self._transition(charge_id, ChargeStatus.APPROVED, "approve", current_user)

    async def mark_billed(
        self,
        charge_id: UUID,
        invoice_id: UUID | None = None,
        current_user: dict | None = None,
    ) -> BillingCharge:
        """Mark an approved charge as billed, optionally linking its invoice."""
        extra = {"invoice_id": invoice_id} if invoice_id is not None else {}
        return await self._transition(charge_id, ChargeStatus.BILLED, "mark_billed", current_user, **extra)

    async def mark_paid(self, charge_id: UUID, current_user: dict | None = None) -> BillingCharge:
        """Mark a billed charge as paid after settlement."""
        return await self._transition(charge_id, ChargeStatus.PAID, "mark_paid", current_user)

    async def cancel(self, charge_id: UUID, current_user: dict | None = None) -> BillingCharge:
        """Cancel a pending or approved charge."""
        return await self._transition(charge_id, ChargeStatus.CANCELLED, "cancel", current_user)

    async def _transition(
        self,
        charge_id: UUID,
        target: ChargeStatus,
        action: str,
        current_user: dict | None,
        **extra_values,
    ) -> BillingCharge:
        charge = await self.get_charge(charge_id)
        current = charge.status

        if not can_transition(current, target):
            logger.warning(
                "charge_transition_rejected",
                charge_id=str(charge_id),
                current_status=current.value,
                target_status=target.value,
            )
            raise InvalidTransition(
                f"Cannot {action.replace('_', ' ')} charge in status {current.value}",
                current_status=current.value,
                target_status=target.value,
            )

        now = datetime.utcnow()
        result = await self.db.execute(
            update(BillingCharge)
            .where(BillingCharge.id == charge_id, BillingCharge.status == current)
            .values(status=target, **{TIMESTAMP_FIELDS[target]: now}, **extra_values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidTransition(
                f"Charge {charge_id} changed status concurrently; cannot {action.replace('_', ' ')}",
                current_status=current.value,
                target_status=target.value,
            )

        charge = await self.get_charge(charge_id)

        await log_audit(
            db=self.db,
            entity_type="billing_charge",
            entity_id=charge.id,
            action=action,
            user_id=(current_user or {}).get("sub"),
            changes=status_change(current, target),
        )
        charge_transitions_total.labels(status=target.value).inc()
        logger.info(
            "charge_transitioned",
            charge_id=str(charge_id),
            firm_id=str(charge.firm_id),
            from_status=current.value,
            to_status=target.value,
        )
        return charge
