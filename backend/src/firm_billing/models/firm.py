"""Firm model: the tenant that subscribes to the platform."""
from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship

from firm_billing.models.base import Base


class Firm(Base):
    """
    Tenant organization subscribing to the platform.

    Created at signup, never deleted, only deactivated.
    """

    __tablename__ = "firms"

    name = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)
    currency = Column(String(3), nullable=False, default="USD")  # ISO 4217 currency code
    is_active = Column(Boolean, nullable=False, default=True)

    # Relationships
    subscriptions = relationship("Subscription", back_populates="firm")
    split_billing_config = relationship("SplitBillingConfig", back_populates="firm", uselist=False)
    billing_rule = relationship("BillingRule", back_populates="firm", uselist=False)
    charges = relationship("BillingCharge", back_populates="firm")
    invoices = relationship("Invoice", back_populates="firm")

    def __repr__(self) -> str:
        """String representation."""
        return f"<Firm(id={self.id}, name={self.name}, active={self.is_active})>"
