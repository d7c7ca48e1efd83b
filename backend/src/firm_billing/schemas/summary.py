"""Pydantic schema for the firm billing summary."""
from uuid import UUID

from pydantic import BaseModel

from firm_billing.schemas.split_billing import SplitBillingConfig


class BillingSummary(BaseModel):
    """Period overview shown on the firm billing page."""

    firm_id: UUID
    period_id: str
    currency: str
    pending_approval_count: int
    pending_approval_amount: int
    approved_amount: int
    billed_amount: int
    paid_amount: int
    invoiced_firm_amount: int
    invoiced_staff_amount: int
    split_config: SplitBillingConfig
