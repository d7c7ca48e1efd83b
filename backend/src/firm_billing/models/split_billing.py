"""Split-billing configuration model."""
from sqlalchemy import Column, Boolean, Integer, ForeignKey, CheckConstraint, Uuid
from sqlalchemy.orm import relationship
import enum

from firm_billing.models.base import Base


class CostCategory(enum.Enum):
    """Cost categories that split-billing policy distinguishes."""

    BASE_PLAN = "base_plan"
    STAFF_ADDON = "staff_addon"
    SHARED_RESOURCE = "shared_resource"


class SplitBillingConfig(Base):
    """
    Firm policy for dividing costs between the firm and its staff.

    One row per firm; mutated only by firm-admin action.
    """

    __tablename__ = "split_billing_configs"
    __table_args__ = (
        CheckConstraint(
            "shared_resources_split_percentage >= 0 AND shared_resources_split_percentage <= 100",
            name="ck_split_billing_percentage_range",
        ),
    )

    firm_id = Column(Uuid(as_uuid=True), ForeignKey("firms.id", ondelete="CASCADE"), nullable=False, unique=True)
    base_plan_firm_pays = Column(Boolean, nullable=False, default=True)
    staff_addons_firm_pays = Column(Boolean, nullable=False, default=False)
    shared_resources_split_percentage = Column(Integer, nullable=False, default=0)  # Share billed to staff

    # Relationships
    firm = relationship("Firm", back_populates="split_billing_config")

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<SplitBillingConfig(firm_id={self.firm_id}, base_plan_firm_pays={self.base_plan_firm_pays}, "
            f"staff_addons_firm_pays={self.staff_addons_firm_pays}, split={self.shared_resources_split_percentage})>"
        )
