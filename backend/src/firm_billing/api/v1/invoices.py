"""Invoice API endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from firm_billing.api.deps import get_db, parse_period
from firm_billing.schemas.invoice import Invoice, InvoiceCreate
from firm_billing.services.invoice_service import InvoiceService

router = APIRouter(tags=["Invoices"])


@router.post(
    "/firms/{firm_id}/invoices",
    response_model=Invoice,
    status_code=status.HTTP_201_CREATED,
)
async def close_period(
    firm_id: UUID,
    invoice_data: InvoiceCreate,
    db: AsyncSession = Depends(get_db),
) -> Invoice:
    """
    Close a billing period into an allocated invoice.

    Every approved growth charge of the period becomes a line item (offices
    as shared resources, users as staff add-ons) next to any extra
    **line_items** supplied, e.g. the base plan. Each line is split between
    firm and staff using the firm's split-billing configuration and the
    charges are marked billed.

    Returns 409 when the period has nothing to bill.
    """
    period = parse_period(invoice_data.period_id)
    invoice = await InvoiceService(db).close_period(firm_id, period, invoice_data.line_items)

    if invoice is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Nothing to bill for firm {firm_id} in period {period.period_id}",
        )

    return invoice


@router.get("/firms/{firm_id}/invoices", response_model=list[Invoice])
async def list_invoices(
    firm_id: UUID,
    period_id: str | None = Query(default=None, description="Filter by billing period"),
    db: AsyncSession = Depends(get_db),
) -> list[Invoice]:
    """List a firm's invoices, newest first."""
    return await InvoiceService(db).list_invoices(firm_id, period_id)


@router.get("/invoices/{invoice_id}", response_model=Invoice)
async def get_invoice(
    invoice_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> Invoice:
    """
    Get invoice by ID.

    Each line item carries its total and the firm and staff shares.
    """
    return await InvoiceService(db).get_invoice(invoice_id)


@router.post("/invoices/{invoice_id}/mark-paid", response_model=Invoice)
async def mark_invoice_paid(
    invoice_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> Invoice:
    """Record settlement of an open invoice; its billed charges become paid."""
    return await InvoiceService(db).mark_invoice_paid(invoice_id)
