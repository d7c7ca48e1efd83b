"""Turn approved growth charges into allocated invoices at period close."""
from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from firm_billing.exceptions import InvalidTransition, NotFound
from firm_billing.metrics import invoices_generated_total, split_allocations_total
from firm_billing.models.billing_charge import BillingCharge, ChargeStatus, ChargeType
from firm_billing.models.invoice import Invoice, InvoiceLineItem, InvoiceStatus
from firm_billing.models.split_billing import CostCategory
from firm_billing.schemas.invoice import InvoiceLineInput
from firm_billing.schemas.period import BillingPeriod
from firm_billing.services.charge_lifecycle import ChargeLifecycle
from firm_billing.services.firms import require_firm
from firm_billing.services.split_billing import SplitBillingAllocator, split_amount
from firm_billing.utils.currency import format_amount_for_currency

logger = structlog.get_logger(__name__)

# Cost category each kind of growth is billed under
GROWTH_CHARGE_CATEGORIES = {
    ChargeType.OFFICE: CostCategory.SHARED_RESOURCE,
    ChargeType.USER: CostCategory.STAFF_ADDON,
}

# Numbers taken by concurrent closes before giving up
INVOICE_NUMBER_ATTEMPTS = 3

GROWTH_CHARGE_NOUNS = {
    ChargeType.OFFICE: ("additional office", "additional offices"),
    ChargeType.USER: ("additional user", "additional users"),
}


def describe_charge(charge: BillingCharge, currency: str) -> str:
    """
    Invoice line description for a growth charge.

    Example:
        3 additional offices x $49.00
    """
    singular, plural = GROWTH_CHARGE_NOUNS[charge.charge_type]
    noun = singular if charge.quantity == 1 else plural
    return f"{charge.quantity} {noun} x {format_amount_for_currency(charge.unit_price, currency)}"


class InvoiceService:
    """Invoicing at billing-period close."""

    def __init__(self, db: AsyncSession):
        """Initialize invoice service with database session."""
        self.db = db
        self.allocator = SplitBillingAllocator(db)
        self.lifecycle = ChargeLifecycle(db)

    async def generate_invoice_number(self, period_id: str) -> str:
        """
        Generate the next invoice number within a billing period.

        Format: INV-{period}-{sequential_number} (e.g., INV-202610-000001).
        The sequence restarts every period.
        """
        prefix = f"INV-{period_id.replace('-', '')}-"
        result = await self.db.execute(
            select(func.max(Invoice.number)).where(Invoice.number.like(f"{prefix}%"))
        )
        last = result.scalar()
        sequence = int(last[len(prefix):]) + 1 if last else 1
        return f"{prefix}{sequence:06d}"

    async def close_period(
        self,
        firm_id: UUID,
        period: BillingPeriod,
        line_items: list[InvoiceLineInput] | None = None,
        current_user: dict | None = None,
    ) -> Invoice | None:
        """
        Invoice a firm's approved growth charges for a period.

        Each approved, not yet invoiced charge becomes a line item under its
        cost category; extra line items (such as the base plan) are added as
        given. Every line is allocated with the firm's current split-billing
        config, and the charges are marked billed.

        Args:
            firm_id: Firm UUID
            period: Billing period being closed
            line_items: Additional priced lines to include
            current_user: Acting user for the audit trail

        Returns:
            Created invoice, or None when there is nothing to bill

        Raises:
            NotFound: If the firm does not exist
        """
        firm = await require_firm(self.db, firm_id)
        config = await self.allocator.get_config(firm_id)

        result = await self.db.execute(
            select(BillingCharge)
            .where(
                BillingCharge.firm_id == firm_id,
                BillingCharge.period_id == period.period_id,
                BillingCharge.status == ChargeStatus.APPROVED,
                BillingCharge.invoice_id.is_(None),
            )
            .order_by(BillingCharge.created_at)
        )
        charges = list(result.scalars().all())
        extra_lines = line_items or []

        if not charges and not extra_lines:
            logger.info("period_close_nothing_to_bill", firm_id=str(firm_id), period_id=period.period_id)
            return None

        invoice = await self._insert_invoice(firm_id, period, firm.currency)

        lines = [
            (line.category, line.description, line.total_amount, None)
            for line in extra_lines
        ] + [
            (GROWTH_CHARGE_CATEGORIES[charge.charge_type], describe_charge(charge, firm.currency), charge.total_amount, charge.id)
            for charge in charges
        ]

        total_amount = firm_amount = staff_amount = 0
        for position, (category, description, amount, charge_id) in enumerate(lines):
            allocation = split_amount(config, category, amount)
            split_allocations_total.labels(category=category.value).inc()
            self.db.add(
                InvoiceLineItem(
                    invoice_id=invoice.id,
                    charge_id=charge_id,
                    position=position,
                    category=category.value,
                    description=description,
                    total_amount=amount,
                    firm_amount=allocation.firm_amount,
                    staff_amount=allocation.staff_amount,
                )
            )
            total_amount += amount
            firm_amount += allocation.firm_amount
            staff_amount += allocation.staff_amount

        invoice.total_amount = total_amount
        invoice.firm_amount = firm_amount
        invoice.staff_amount = staff_amount
        await self.db.flush()

        for charge in charges:
            await self.lifecycle.mark_billed(charge.id, invoice_id=invoice.id, current_user=current_user)

        invoices_generated_total.labels(currency=invoice.currency).inc()
        logger.info(
            "invoice_generated",
            firm_id=str(firm_id),
            invoice_id=str(invoice.id),
            invoice_number=invoice.number,
            period_id=period.period_id,
            total_amount=total_amount,
            firm_amount=firm_amount,
            staff_amount=staff_amount,
            charges_billed=len(charges),
        )
        return await self.get_invoice(invoice.id)

    async def _insert_invoice(self, firm_id: UUID, period: BillingPeriod, currency: str) -> Invoice:
        """Insert an open invoice under the next free number of the period."""
        for attempt in range(1, INVOICE_NUMBER_ATTEMPTS + 1):
            invoice = Invoice(
                firm_id=firm_id,
                number=await self.generate_invoice_number(period.period_id),
                period_id=period.period_id,
                status=InvoiceStatus.OPEN,
                currency=currency,
            )
            try:
                async with self.db.begin_nested():
                    self.db.add(invoice)
            except IntegrityError:
                # Unique number index; another close took it first
                if attempt == INVOICE_NUMBER_ATTEMPTS:
                    raise
                logger.warning("invoice_number_taken", invoice_number=invoice.number, attempt=attempt)
                continue
            return invoice

    async def get_invoice(self, invoice_id: UUID) -> Invoice:
        """
        Get invoice with its line items.

        Raises:
            NotFound: If the invoice does not exist
        """
        result = await self.db.execute(
            select(Invoice)
            .where(Invoice.id == invoice_id)
            .options(selectinload(Invoice.line_items))
            .execution_options(populate_existing=True)
        )
        invoice = result.scalar_one_or_none()
        if invoice is None:
            raise NotFound(f"Invoice {invoice_id} not found")
        return invoice

    async def list_invoices(self, firm_id: UUID, period_id: str | None = None) -> list[Invoice]:
        """List a firm's invoices, newest first."""
        query = (
            select(Invoice)
            .where(Invoice.firm_id == firm_id)
            .options(selectinload(Invoice.line_items))
        )
        if period_id:
            query = query.where(Invoice.period_id == period_id)
        result = await self.db.execute(query.order_by(Invoice.created_at.desc()))
        return list(result.scalars().all())

    async def mark_invoice_paid(self, invoice_id: UUID, current_user: dict | None = None) -> Invoice:
        """
        Record settlement of an open invoice and mark its charges paid.

        Raises:
            NotFound: If the invoice does not exist
            InvalidTransition: If the invoice is not open
        """
        invoice = await self.get_invoice(invoice_id)
        if invoice.status != InvoiceStatus.OPEN:
            raise InvalidTransition(
                f"Cannot mark invoice {invoice.number} paid in status {invoice.status.value}",
                current_status=invoice.status.value,
                target_status=InvoiceStatus.PAID.value,
            )

        result = await self.db.execute(
            select(BillingCharge.id).where(
                BillingCharge.invoice_id == invoice_id,
                BillingCharge.status == ChargeStatus.BILLED,
            )
        )
        for charge_id in result.scalars().all():
            await self.lifecycle.mark_paid(charge_id, current_user=current_user)

        invoice.status = InvoiceStatus.PAID
        invoice.paid_at = datetime.utcnow()
        await self.db.flush()

        logger.info("invoice_paid", invoice_id=str(invoice_id), invoice_number=invoice.number)
        return await self.get_invoice(invoice_id)
