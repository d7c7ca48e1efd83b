"""Pydantic schemas for split-billing configuration and allocations."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict

from firm_billing.models.split_billing import CostCategory


class SplitBillingConfig(BaseModel):
    """Schema for returning split-billing configuration."""

    id: UUID
    firm_id: UUID
    base_plan_firm_pays: bool
    staff_addons_firm_pays: bool
    shared_resources_split_percentage: int
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SplitBillingConfigUpdate(BaseModel):
    """Partial update applied atomically; omitted fields keep their value."""

    base_plan_firm_pays: bool | None = None
    staff_addons_firm_pays: bool | None = None
    shared_resources_split_percentage: int | None = Field(
        default=None, ge=0, le=100, description="Share of shared-resource costs billed to staff"
    )


class AllocationRequest(BaseModel):
    """Schema for allocating a priced line item."""

    category: CostCategory
    total_amount: int = Field(..., ge=0, description="Line total in cents")


class Allocation(BaseModel):
    """Firm/staff split of a line item, in cents."""

    model_config = ConfigDict(frozen=True)

    firm_amount: int = Field(..., ge=0)
    staff_amount: int = Field(..., ge=0)

    @property
    def total_amount(self) -> int:
        """Sum of both shares."""
        return self.firm_amount + self.staff_amount
