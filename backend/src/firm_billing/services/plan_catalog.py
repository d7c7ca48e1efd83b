"""Plan catalog interface consumed by the entitlement resolver.

The catalog itself (plan CRUD, pricing) belongs to another service; the
engine only needs a firm's active subscription and the plan's resource
limits. DatabasePlanCatalog reads both from the shared tables.
"""
from typing import Protocol
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from firm_billing.models.subscription import ENTITLED_STATUSES, ResourceLimit, Subscription


class PlanCatalog(Protocol):
    """Read-only view of subscriptions and plan entitlements."""

    async def get_active_subscription(self, firm_id: UUID) -> Subscription | None:
        ...

    async def get_resource_limits(self, plan_id: str) -> list[ResourceLimit]:
        ...


class DatabasePlanCatalog:
    """Plan catalog backed by the subscriptions and resource_limits tables."""

    def __init__(self, db: AsyncSession):
        """Initialize plan catalog with database session."""
        self.db = db

    async def get_active_subscription(self, firm_id: UUID) -> Subscription | None:
        """
        Get the subscription currently granting entitlements to a firm.

        Args:
            firm_id: Firm UUID

        Returns:
            Most recent active (or scheduled-to-cancel) subscription, or None
        """
        result = await self.db.execute(
            select(Subscription)
            .where(
                Subscription.firm_id == firm_id,
                Subscription.status.in_(ENTITLED_STATUSES),
            )
            .order_by(Subscription.current_period_start.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_resource_limits(self, plan_id: str) -> list[ResourceLimit]:
        """
        Get every resource limit defined for a plan.

        Args:
            plan_id: Plan catalog identifier

        Returns:
            Resource limits ordered by category
        """
        result = await self.db.execute(
            select(ResourceLimit)
            .where(ResourceLimit.plan_id == plan_id)
            .order_by(ResourceLimit.category)
        )
        return list(result.scalars().all())
