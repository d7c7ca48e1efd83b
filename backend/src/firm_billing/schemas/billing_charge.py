"""Pydantic schemas for growth charges."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict

from firm_billing.models.billing_charge import ChargeStatus, ChargeType


class ChargeProposal(BaseModel):
    """Schema for requesting a growth charge."""

    charge_type: ChargeType
    quantity: int = Field(..., description="Number of offices or users added; must be positive")
    unit_price: int = Field(..., ge=0, description="Price per unit in cents")
    period_id: str = Field(..., description="Billing period identifier, e.g. 2026-10")


class BillingCharge(BaseModel):
    """Schema for returning growth charge data."""

    id: UUID
    firm_id: UUID
    charge_type: ChargeType
    quantity: int
    unit_price: int
    total_amount: int
    status: ChargeStatus
    requires_approval: bool
    period_id: str
    billing_period_start: datetime
    billing_period_end: datetime
    approved_at: datetime | None
    billed_at: datetime | None
    paid_at: datetime | None
    cancelled_at: datetime | None
    invoice_id: UUID | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BillingChargeList(BaseModel):
    """Schema for charge listings."""

    items: list[BillingCharge]
    total: int
