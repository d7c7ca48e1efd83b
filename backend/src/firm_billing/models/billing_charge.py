"""Growth charge model for offices and users beyond the plan allowance."""
from sqlalchemy import Column, Integer, Boolean, String, Enum as SQLEnum, ForeignKey, DateTime, Uuid
from sqlalchemy.orm import relationship
import enum

from firm_billing.models.base import Base


class ChargeType(enum.Enum):
    """Kind of growth a charge bills for."""

    OFFICE = "office"
    USER = "user"


class ChargeStatus(enum.Enum):
    """Growth charge lifecycle status."""

    PENDING = "pending"
    APPROVED = "approved"
    BILLED = "billed"
    PAID = "paid"
    CANCELLED = "cancelled"


# Statuses that have cleared approval and count toward cumulative thresholds
CLEARED_STATUSES = (ChargeStatus.APPROVED, ChargeStatus.BILLED, ChargeStatus.PAID)


class BillingCharge(Base):
    """
    Billable growth event for one firm.

    Lifecycle is owned by ChargeLifecycle. Immutable once PAID.
    """

    __tablename__ = "billing_charges"

    firm_id = Column(Uuid(as_uuid=True), ForeignKey("firms.id", ondelete="CASCADE"), nullable=False, index=True)
    charge_type = Column(SQLEnum(ChargeType), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Integer, nullable=False)  # Amount in cents
    total_amount = Column(Integer, nullable=False)  # quantity * unit_price, in cents
    status = Column(SQLEnum(ChargeStatus), nullable=False, default=ChargeStatus.PENDING, index=True)
    requires_approval = Column(Boolean, nullable=False, default=True)
    period_id = Column(String, nullable=False, index=True)
    billing_period_start = Column(DateTime, nullable=False)
    billing_period_end = Column(DateTime, nullable=False)
    approved_at = Column(DateTime, nullable=True)
    billed_at = Column(DateTime, nullable=True)
    paid_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    invoice_id = Column(Uuid(as_uuid=True), ForeignKey("invoices.id"), nullable=True, index=True)

    # Relationships
    firm = relationship("Firm", back_populates="charges")
    invoice = relationship("Invoice", back_populates="charges")

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<BillingCharge(id={self.id}, firm_id={self.firm_id}, type={self.charge_type.value}, "
            f"quantity={self.quantity}, status={self.status.value})>"
        )
