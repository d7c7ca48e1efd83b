"""Split-billing policy: attribute every cent between the firm and its staff."""
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from firm_billing.exceptions import InvalidQuantity, InvalidSplitConfig
from firm_billing.metrics import split_allocations_total
from firm_billing.models.split_billing import CostCategory, SplitBillingConfig
from firm_billing.schemas.split_billing import Allocation, SplitBillingConfigUpdate
from firm_billing.services.firms import require_firm
from firm_billing.utils.audit import audit_update
from firm_billing.utils.enums import coerce_category

logger = structlog.get_logger(__name__)

SPLIT_CONFIG_FIELDS = (
    "base_plan_firm_pays",
    "staff_addons_firm_pays",
    "shared_resources_split_percentage",
)


def round_half_up_percent(amount: int, percentage: int) -> int:
    """
    amount * percentage / 100 rounded half-up to a whole cent.

    Integer arithmetic only, so no rounding loss is possible.

    Example:
        >>> round_half_up_percent(1001, 33)
        330
    """
    return (amount * percentage + 50) // 100


def split_amount(config: SplitBillingConfig, category: CostCategory | str, total_amount: int) -> Allocation:
    """
    Divide a line total between firm and staff according to a config.

    Shared-resource rounding remainders are absorbed by the firm, so
    firm_amount + staff_amount == total_amount for every input.

    Args:
        config: Firm split-billing configuration
        category: Cost category of the line item
        total_amount: Line total in cents

    Returns:
        Allocation with non-negative firm and staff amounts

    Raises:
        InvalidCategory: If category is not a known cost category
        InvalidSplitConfig: If the shared-resource percentage is outside [0, 100]
        InvalidQuantity: If total_amount is negative
    """
    category = coerce_category(CostCategory, category)
    if total_amount < 0:
        raise InvalidQuantity(f"Amount to allocate must be non-negative, got {total_amount}")

    if category == CostCategory.BASE_PLAN:
        if config.base_plan_firm_pays:
            return Allocation(firm_amount=total_amount, staff_amount=0)
        return Allocation(firm_amount=0, staff_amount=total_amount)

    if category == CostCategory.STAFF_ADDON:
        if config.staff_addons_firm_pays:
            return Allocation(firm_amount=total_amount, staff_amount=0)
        return Allocation(firm_amount=0, staff_amount=total_amount)

    percentage = config.shared_resources_split_percentage
    if percentage is None or not 0 <= percentage <= 100:
        raise InvalidSplitConfig(
            f"Shared resources split percentage must be between 0 and 100, got {percentage}"
        )
    staff_amount = round_half_up_percent(total_amount, percentage)
    return Allocation(firm_amount=total_amount - staff_amount, staff_amount=staff_amount)


class SplitBillingAllocator:
    """Reads a firm's split-billing config and allocates priced line items."""

    def __init__(self, db: AsyncSession):
        """Initialize allocator with database session."""
        self.db = db

    async def get_config(self, firm_id: UUID) -> SplitBillingConfig:
        """
        Get the firm's split-billing config, creating the default on first use.

        Raises:
            NotFound: If the firm does not exist
        """
        result = await self.db.execute(
            select(SplitBillingConfig).where(SplitBillingConfig.firm_id == firm_id)
        )
        config = result.scalar_one_or_none()
        if config is not None:
            return config

        await require_firm(self.db, firm_id)
        try:
            async with self.db.begin_nested():
                config = SplitBillingConfig(
                    firm_id=firm_id,
                    base_plan_firm_pays=True,
                    staff_addons_firm_pays=False,
                    shared_resources_split_percentage=0,
                )
                self.db.add(config)
        except IntegrityError:
            result = await self.db.execute(
                select(SplitBillingConfig).where(SplitBillingConfig.firm_id == firm_id)
            )
            config = result.scalar_one()

        logger.info("split_config_created", firm_id=str(firm_id))
        return config

    async def allocate(self, firm_id: UUID, category: CostCategory | str, total_amount: int) -> Allocation:
        """
        Allocate a line total between the firm and its staff.

        Args:
            firm_id: Firm UUID
            category: base_plan, staff_addon or shared_resource
            total_amount: Line total in cents

        Returns:
            Allocation summing exactly to total_amount
        """
        config = await self.get_config(firm_id)
        allocation = split_amount(config, category, total_amount)
        split_allocations_total.labels(category=coerce_category(CostCategory, category).value).inc()
        return allocation

    @audit_update("split_billing_config")
    async def update_config(
        self,
        firm_id: UUID,
        update: SplitBillingConfigUpdate,
        current_user: dict | None = None,
        request_id: str | None = None,
    ) -> tuple[SplitBillingConfig, dict]:
        """
        Apply a validated partial update as one atomic write.

        Args:
            firm_id: Firm UUID
            update: Fields to change; omitted fields keep their value
            current_user: Acting user for the audit trail
            request_id: Request correlation ID for the audit trail

        Returns:
            Tuple of (updated config, previous values)

        Raises:
            InvalidSplitConfig: If the resulting percentage is outside [0, 100]
        """
        changes = update.model_dump(exclude_unset=True)
        percentage = changes.get("shared_resources_split_percentage")
        if "shared_resources_split_percentage" in changes and (percentage is None or not 0 <= percentage <= 100):
            raise InvalidSplitConfig(
                f"Shared resources split percentage must be between 0 and 100, got {percentage}"
            )

        config = await self.get_config(firm_id)
        old_values = {field: getattr(config, field) for field in SPLIT_CONFIG_FIELDS}

        for field, value in changes.items():
            if value is not None:
                setattr(config, field, value)

        await self.db.flush()
        await self.db.refresh(config)

        logger.info(
            "split_config_updated",
            firm_id=str(firm_id),
            fields=sorted(changes),
        )
        return config, old_values
