"""Subscription and plan entitlement models (read-only to the policy engine)."""
from sqlalchemy import Column, Integer, Enum as SQLEnum, ForeignKey, DateTime, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
import enum

from firm_billing.models.base import Base


class BillingCycle(enum.Enum):
    """Subscription billing cycle."""

    MONTHLY = "monthly"
    YEARLY = "yearly"


class SubscriptionStatus(enum.Enum):
    """Subscription lifecycle status."""

    ACTIVE = "active"
    SCHEDULED_CANCELLATION = "scheduled_cancellation"
    CANCELED = "canceled"


# Statuses that still grant plan entitlements
ENTITLED_STATUSES = (SubscriptionStatus.ACTIVE, SubscriptionStatus.SCHEDULED_CANCELLATION)


class Subscription(Base):
    """
    Firm subscription to a catalog plan.

    Exactly one is in force per firm; plan changes replace it.
    """

    __tablename__ = "subscriptions"

    firm_id = Column(Uuid(as_uuid=True), ForeignKey("firms.id", ondelete="CASCADE"), nullable=False, index=True)
    plan_id = Column(String, nullable=False, index=True)  # Plan catalog identifier
    billing_cycle = Column(SQLEnum(BillingCycle), nullable=False, default=BillingCycle.MONTHLY)
    status = Column(SQLEnum(SubscriptionStatus), nullable=False, default=SubscriptionStatus.ACTIVE, index=True)
    current_period_start = Column(DateTime, nullable=False)
    current_period_end = Column(DateTime, nullable=False, index=True)

    # Relationships
    firm = relationship("Firm", back_populates="subscriptions")

    def __repr__(self) -> str:
        """String representation."""
        return f"<Subscription(id={self.id}, firm_id={self.firm_id}, plan_id={self.plan_id}, status={self.status.value})>"


class ResourceLimit(Base):
    """
    Per-category limit included in a plan.

    A NULL limit means the category is unlimited on the plan.
    """

    __tablename__ = "resource_limits"
    __table_args__ = (UniqueConstraint("plan_id", "category", name="uq_resource_limits_plan_category"),)

    plan_id = Column(String, nullable=False, index=True)
    category = Column(String, nullable=False)  # clients, staff_seats, storage_gb, ...
    limit = Column(Integer, nullable=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<ResourceLimit(plan_id={self.plan_id}, category={self.category}, limit={self.limit})>"
