"""Pydantic schemas for usage counters and alerts."""
import enum
from uuid import UUID

from pydantic import BaseModel, Field

from firm_billing.models.usage_record import UsageCategory


class Severity(str, enum.Enum):
    """Usage alert severity."""

    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"


class UsageIncrement(BaseModel):
    """Schema for recording consumption against a period counter."""

    period_id: str = Field(..., min_length=1, description="Billing period identifier, e.g. 2026-10")
    category: UsageCategory = Field(..., description="Metered resource category")
    delta: int = Field(default=1, ge=0, description="Units consumed by this event")


class UsageAlert(BaseModel):
    """Classification of one category against its plan limit."""

    category: UsageCategory
    severity: Severity
    used: int = Field(..., ge=0)
    limit: int | None = Field(default=None, description="Plan limit, None when unlimited")
    unlimited: bool = False
    percentage: float = Field(..., description="Share of the limit consumed, not clamped (may exceed 100)")
    display_percentage: float = Field(..., ge=0, le=100, description="Percentage clamped to [0, 100]")
    title: str
    message: str


class UsageClassification(BaseModel):
    """Per-category alerts for one firm and period."""

    firm_id: UUID
    period_id: str
    alerts: list[UsageAlert]
    has_critical: bool

    @property
    def raised(self) -> list[UsageAlert]:
        """Alerts above normal severity."""
        return [alert for alert in self.alerts if alert.severity != Severity.NORMAL]
