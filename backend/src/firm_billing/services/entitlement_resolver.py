"""Resolve a firm's per-category plan limits."""
from uuid import UUID

import structlog

from firm_billing.exceptions import NotFound
from firm_billing.models.usage_record import UsageCategory
from firm_billing.services.plan_catalog import PlanCatalog

logger = structlog.get_logger(__name__)


class EntitlementResolver:
    """Maps a firm's active subscription to per-category limits."""

    def __init__(self, catalog: PlanCatalog):
        self.catalog = catalog

    async def get_limits(self, firm_id: UUID) -> dict[UsageCategory, int | None]:
        """
        Get the limits of the firm's active plan.

        Args:
            firm_id: Firm UUID

        Returns:
            Mapping of category to limit; None means unlimited. Categories
            the plan does not define are absent.

        Raises:
            NotFound: If the firm has no active subscription
        """
        subscription = await self.catalog.get_active_subscription(firm_id)
        if subscription is None:
            raise NotFound(f"No active subscription for firm {firm_id}")

        limits: dict[UsageCategory, int | None] = {}
        for resource_limit in await self.catalog.get_resource_limits(subscription.plan_id):
            try:
                category = UsageCategory(resource_limit.category)
            except ValueError:
                # Plan catalog may define categories this engine does not meter
                logger.warning(
                    "unknown_plan_category",
                    plan_id=subscription.plan_id,
                    category=resource_limit.category,
                )
                continue
            limits[category] = resource_limit.limit

        return limits
