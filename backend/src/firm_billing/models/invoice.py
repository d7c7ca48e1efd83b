"""Invoice models carrying the firm/staff split of each line."""
from sqlalchemy import Column, Integer, String, Enum as SQLEnum, ForeignKey, DateTime, Uuid
from sqlalchemy.orm import relationship
import enum

from firm_billing.models.base import Base


class InvoiceStatus(enum.Enum):
    """Invoice lifecycle status."""

    OPEN = "open"
    PAID = "paid"
    VOID = "void"


class Invoice(Base):
    """
    Period invoice for a firm.

    firm_amount + staff_amount always equals total_amount, in cents.
    """

    __tablename__ = "invoices"

    firm_id = Column(Uuid(as_uuid=True), ForeignKey("firms.id", ondelete="CASCADE"), nullable=False, index=True)
    number = Column(String, nullable=False, unique=True, index=True)  # INV-0001, INV-0002, etc.
    period_id = Column(String, nullable=False, index=True)
    status = Column(SQLEnum(InvoiceStatus), nullable=False, default=InvoiceStatus.OPEN, index=True)
    currency = Column(String(3), nullable=False, default="USD")
    total_amount = Column(Integer, nullable=False, default=0)
    firm_amount = Column(Integer, nullable=False, default=0)
    staff_amount = Column(Integer, nullable=False, default=0)
    paid_at = Column(DateTime, nullable=True)

    # Relationships
    firm = relationship("Firm", back_populates="invoices")
    line_items = relationship(
        "InvoiceLineItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceLineItem.position",
    )
    charges = relationship("BillingCharge", back_populates="invoice")

    def __repr__(self) -> str:
        """String representation."""
        return f"<Invoice(id={self.id}, number={self.number}, status={self.status.value}, total={self.total_amount})>"


class InvoiceLineItem(Base):
    """Single allocated line of an invoice."""

    __tablename__ = "invoice_line_items"

    invoice_id = Column(Uuid(as_uuid=True), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    charge_id = Column(Uuid(as_uuid=True), ForeignKey("billing_charges.id"), nullable=True)
    position = Column(Integer, nullable=False, default=0)
    category = Column(String, nullable=False)  # base_plan, staff_addon, shared_resource
    description = Column(String, nullable=False)
    total_amount = Column(Integer, nullable=False)
    firm_amount = Column(Integer, nullable=False)
    staff_amount = Column(Integer, nullable=False)

    # Relationships
    invoice = relationship("Invoice", back_populates="line_items")

    def __repr__(self) -> str:
        """String representation."""
        return f"<InvoiceLineItem(invoice_id={self.invoice_id}, category={self.category}, total={self.total_amount})>"
