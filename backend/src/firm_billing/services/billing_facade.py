"""Single entry point wiring the ledger, classifier, allocator and approval engine."""
from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from firm_billing.locks import FirmLocks
from firm_billing.models.billing_charge import BillingCharge, ChargeStatus, ChargeType
from firm_billing.models.invoice import Invoice, InvoiceStatus
from firm_billing.models.usage_record import UsageCategory
from firm_billing.schemas.period import BillingPeriod
from firm_billing.schemas.split_billing import SplitBillingConfig as SplitBillingConfigSchema
from firm_billing.schemas.summary import BillingSummary
from firm_billing.schemas.usage import UsageClassification
from firm_billing.services.approval_engine import ApprovalEngine
from firm_billing.services.entitlement_resolver import EntitlementResolver
from firm_billing.services.firms import require_firm
from firm_billing.services.plan_catalog import DatabasePlanCatalog, PlanCatalog
from firm_billing.services.split_billing import SplitBillingAllocator
from firm_billing.services.usage_classifier import UsageClassifier
from firm_billing.services.usage_ledger import UsageLedger

logger = structlog.get_logger(__name__)


class BillingFacade:
    """Composes the billing engine components over one database session."""

    def __init__(
        self,
        db: AsyncSession,
        catalog: PlanCatalog | None = None,
        locks: FirmLocks | None = None,
    ):
        self.db = db
        self.ledger = UsageLedger(db)
        self.resolver = EntitlementResolver(catalog if catalog is not None else DatabasePlanCatalog(db))
        self.classifier = UsageClassifier(self.ledger, self.resolver)
        self.allocator = SplitBillingAllocator(db)
        self.approvals = ApprovalEngine(db, locks=locks)

    async def record_usage(
        self,
        firm_id: UUID,
        period_id: str,
        category: UsageCategory | str,
        delta: int = 1,
    ) -> UsageClassification:
        """Increment a usage counter and return the period's classification."""
        await require_firm(self.db, firm_id)
        await self.ledger.increment(firm_id, period_id, category, delta)
        return await self.classifier.classify(firm_id, period_id)

    async def classify(self, firm_id: UUID, period_id: str) -> UsageClassification:
        """Classify a firm's usage for a period."""
        return await self.classifier.classify(firm_id, period_id)

    async def request_growth_charge(
        self,
        firm_id: UUID,
        charge_type: ChargeType | str,
        quantity: int,
        unit_price: int,
        period: BillingPeriod,
        current_user: dict | None = None,
    ) -> BillingCharge:
        """Propose an office or user growth charge; commits the session."""
        return await self.approvals.propose_charge(
            firm_id=firm_id,
            charge_type=charge_type,
            quantity=quantity,
            unit_price=unit_price,
            period=period,
            current_user=current_user,
        )

    async def billing_summary(self, firm_id: UUID, period: BillingPeriod) -> BillingSummary:
        """
        Period overview for the firm billing page.

        Charge totals are grouped by status; invoiced amounts cover every
        non-void invoice of the period.

        Raises:
            NotFound: If the firm does not exist
        """
        firm = await require_firm(self.db, firm_id)
        config = await self.allocator.get_config(firm_id)

        result = await self.db.execute(
            select(
                BillingCharge.status,
                func.count(BillingCharge.id),
                func.coalesce(func.sum(BillingCharge.total_amount), 0),
            )
            .where(
                BillingCharge.firm_id == firm_id,
                BillingCharge.period_id == period.period_id,
            )
            .group_by(BillingCharge.status)
        )
        by_status = {status: (count, int(amount)) for status, count, amount in result.all()}

        result = await self.db.execute(
            select(
                func.coalesce(func.sum(Invoice.firm_amount), 0),
                func.coalesce(func.sum(Invoice.staff_amount), 0),
            ).where(
                Invoice.firm_id == firm_id,
                Invoice.period_id == period.period_id,
                Invoice.status != InvoiceStatus.VOID,
            )
        )
        invoiced_firm_amount, invoiced_staff_amount = result.one()

        pending_count, pending_amount = by_status.get(ChargeStatus.PENDING, (0, 0))
        return BillingSummary(
            firm_id=firm_id,
            period_id=period.period_id,
            currency=firm.currency,
            pending_approval_count=pending_count,
            pending_approval_amount=pending_amount,
            approved_amount=by_status.get(ChargeStatus.APPROVED, (0, 0))[1],
            billed_amount=by_status.get(ChargeStatus.BILLED, (0, 0))[1],
            paid_amount=by_status.get(ChargeStatus.PAID, (0, 0))[1],
            invoiced_firm_amount=int(invoiced_firm_amount),
            invoiced_staff_amount=int(invoiced_staff_amount),
            split_config=SplitBillingConfigSchema.model_validate(config),
        )
