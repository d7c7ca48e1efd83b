"""Pydantic schemas for growth-charge billing rules."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict

from firm_billing.models.billing_rule import ApprovalType, BillingFrequency


class BillingRule(BaseModel):
    """Schema for returning a firm's billing rule."""

    id: UUID
    firm_id: UUID
    office_approval_type: ApprovalType
    max_offices_auto_approve: int | None
    user_approval_type: ApprovalType
    max_users_auto_approve: int | None
    auto_billing_enabled: bool
    billing_frequency: BillingFrequency
    monthly_billing_threshold: int | None = Field(default=None, description="Monthly auto-approve ceiling in cents")
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BillingRuleUpdate(BaseModel):
    """
    Partial update applied atomically.

    Only fields present in the payload are written, so an explicit null
    clears a maximum or threshold.
    """

    office_approval_type: ApprovalType | None = None
    max_offices_auto_approve: int | None = Field(default=None, ge=0)
    user_approval_type: ApprovalType | None = None
    max_users_auto_approve: int | None = Field(default=None, ge=0)
    auto_billing_enabled: bool | None = None
    billing_frequency: BillingFrequency | None = None
    monthly_billing_threshold: int | None = Field(default=None, ge=0, description="Amount in cents")
