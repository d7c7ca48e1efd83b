"""Period-close worker turning approved growth charges into invoices.

This worker runs once per billing period to:
1. Find firms with approved, uninvoiced charges for the period
2. Generate an allocated invoice per firm
3. Mark the invoiced charges billed
"""
from typing import Callable

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from firm_billing.database import AsyncSessionLocal
from firm_billing.models.billing_charge import BillingCharge, ChargeStatus
from firm_billing.schemas.period import BillingPeriod
from firm_billing.services.invoice_service import InvoiceService

logger = structlog.get_logger(__name__)


async def process_period_close(
    period: BillingPeriod,
    session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
) -> dict[str, int]:
    """
    Close a billing period for every firm with approved growth charges.

    This function should be called by a scheduler (e.g., cron) after the
    period ends.

    Args:
        period: Billing period to close
        session_factory: Session factory, the application's by default

    Returns:
        Dict with counts of processed firms and generated invoices
    """
    async with session_factory() as db:
        try:
            firm_ids = await _find_firms_with_approved_charges(db, period)

            logger.info(
                "period_close_started",
                period_id=period.period_id,
                firms_count=len(firm_ids),
            )

            invoices_generated = 0
            errors = 0
            invoice_service = InvoiceService(db)

            for firm_id in firm_ids:
                try:
                    invoice = await invoice_service.close_period(firm_id, period)
                    if invoice:
                        invoices_generated += 1

                    # Commit each firm individually to avoid partial failures
                    await db.commit()

                except Exception as e:
                    await db.rollback()
                    errors += 1
                    logger.exception(
                        "period_close_firm_failed",
                        firm_id=str(firm_id),
                        period_id=period.period_id,
                        exc_info=e,
                    )
                    continue

            logger.info(
                "period_close_completed",
                period_id=period.period_id,
                firms_processed=len(firm_ids),
                invoices_generated=invoices_generated,
                errors=errors,
            )

            return {
                "firms_processed": len(firm_ids),
                "invoices_generated": invoices_generated,
                "errors": errors,
            }

        except Exception as e:
            await db.rollback()
            logger.exception("period_close_error", period_id=period.period_id, exc_info=e)
            raise


async def _find_firms_with_approved_charges(db: AsyncSession, period: BillingPeriod) -> list:
    result = await db.execute(
        select(BillingCharge.firm_id)
        .where(
            BillingCharge.period_id == period.period_id,
            BillingCharge.status == ChargeStatus.APPROVED,
            BillingCharge.invoice_id.is_(None),
        )
        .distinct()
    )
    return list(result.scalars().all())
