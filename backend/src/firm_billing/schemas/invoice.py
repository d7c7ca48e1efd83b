"""Pydantic schemas for allocated invoices."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict

from firm_billing.models.invoice import InvoiceStatus
from firm_billing.models.split_billing import CostCategory


class InvoiceLineInput(BaseModel):
    """Priced line supplied by the invoicing job (e.g. the base plan)."""

    category: CostCategory
    description: str = Field(..., min_length=1)
    total_amount: int = Field(..., ge=0, description="Line total in cents")


class InvoiceCreate(BaseModel):
    """Schema for closing a billing period into an invoice."""

    period_id: str = Field(..., description="Billing period identifier, e.g. 2026-10")
    line_items: list[InvoiceLineInput] = Field(default_factory=list)


class InvoiceLineItem(BaseModel):
    """Schema for returning an allocated invoice line."""

    id: UUID
    charge_id: UUID | None
    category: CostCategory
    description: str
    total_amount: int
    firm_amount: int
    staff_amount: int

    model_config = ConfigDict(from_attributes=True)


class Invoice(BaseModel):
    """Schema for returning invoice data."""

    id: UUID
    firm_id: UUID
    number: str
    period_id: str
    status: InvoiceStatus
    currency: str
    total_amount: int
    firm_amount: int
    staff_amount: int
    paid_at: datetime | None
    line_items: list[InvoiceLineItem]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
