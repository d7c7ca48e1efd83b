"""Billing rule model governing growth-charge approval."""
from sqlalchemy import Column, Boolean, Integer, Enum as SQLEnum, ForeignKey, Uuid
from sqlalchemy.orm import relationship
import enum

from firm_billing.models.base import Base
from firm_billing.models.billing_charge import ChargeType


class ApprovalType(enum.Enum):
    """How growth charges of one type are approved."""

    AUTOMATIC = "automatic"  # Bill immediately, no approval needed
    MANUAL = "manual"  # Always require approval
    THRESHOLD = "threshold"  # Auto-approve below limit, require approval above


class BillingFrequency(enum.Enum):
    """How often approved growth charges are invoiced."""

    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class BillingRule(Base):
    """
    Per-firm growth-charge approval policy.

    approval_version is bumped by every charge proposal and acts as the
    optimistic-concurrency check on the per-firm critical section.
    """

    __tablename__ = "billing_rules"

    firm_id = Column(Uuid(as_uuid=True), ForeignKey("firms.id", ondelete="CASCADE"), nullable=False, unique=True)
    office_approval_type = Column(SQLEnum(ApprovalType), nullable=False, default=ApprovalType.THRESHOLD)
    max_offices_auto_approve = Column(Integer, nullable=True)
    user_approval_type = Column(SQLEnum(ApprovalType), nullable=False, default=ApprovalType.THRESHOLD)
    max_users_auto_approve = Column(Integer, nullable=True)
    auto_billing_enabled = Column(Boolean, nullable=False, default=True)
    billing_frequency = Column(SQLEnum(BillingFrequency), nullable=False, default=BillingFrequency.MONTHLY)
    monthly_billing_threshold = Column(Integer, nullable=True)  # Amount in cents
    approval_version = Column(Integer, nullable=False, default=0)

    # Relationships
    firm = relationship("Firm", back_populates="billing_rule")

    def approval_type_for(self, charge_type: ChargeType) -> ApprovalType:
        """Approval mode configured for a growth-charge type."""
        if charge_type == ChargeType.OFFICE:
            return self.office_approval_type
        return self.user_approval_type

    def max_auto_approve_for(self, charge_type: ChargeType) -> int:
        """Cumulative auto-approve ceiling; a missing maximum means always ask."""
        if charge_type == ChargeType.OFFICE:
            maximum = self.max_offices_auto_approve
        else:
            maximum = self.max_users_auto_approve
        return maximum if maximum is not None else 0

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<BillingRule(firm_id={self.firm_id}, office={self.office_approval_type.value}, "
            f"user={self.user_approval_type.value})>"
        )
