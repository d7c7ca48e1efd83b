"""Usage counter model for metered plan resources."""
from sqlalchemy import Column, String, Integer, ForeignKey, UniqueConstraint, Uuid
import enum

from firm_billing.models.base import Base


class UsageCategory(enum.Enum):
    """Metered resource categories tracked per firm and period."""

    CLIENTS = "clients"
    STAFF_SEATS = "staff_seats"
    STORAGE_GB = "storage_gb"
    E_SIGNATURES = "e_signatures"
    WORKFLOW_RUNS = "workflow_runs"
    API_CALLS = "api_calls"
    SMS = "sms"

    @property
    def label(self) -> str:
        """Human-readable category name for alert messages."""
        return USAGE_CATEGORY_LABELS[self]


USAGE_CATEGORY_LABELS = {
    UsageCategory.CLIENTS: "Clients",
    UsageCategory.STAFF_SEATS: "Staff Seats",
    UsageCategory.STORAGE_GB: "Storage (GB)",
    UsageCategory.E_SIGNATURES: "E-Signature Envelopes",
    UsageCategory.WORKFLOW_RUNS: "Workflow Runs",
    UsageCategory.API_CALLS: "API Calls",
    UsageCategory.SMS: "SMS Messages",
}


class UsageRecord(Base):
    """
    Consumption counter for one firm, billing period and category.

    Created lazily on the first increment of a period and only moves forward,
    except through explicit corrections.
    """

    __tablename__ = "usage_records"
    __table_args__ = (
        UniqueConstraint("firm_id", "period_id", "category", name="uq_usage_records_firm_period_category"),
    )

    firm_id = Column(Uuid(as_uuid=True), ForeignKey("firms.id", ondelete="CASCADE"), nullable=False, index=True)
    period_id = Column(String, nullable=False, index=True)  # e.g. 2026-10
    category = Column(String, nullable=False)
    used = Column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        """String representation."""
        return f"<UsageRecord(firm_id={self.firm_id}, period_id={self.period_id}, category={self.category}, used={self.used})>"
