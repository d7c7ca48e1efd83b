"""Per-firm, per-period consumption counters."""
from uuid import UUID

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from firm_billing.exceptions import InvalidQuantity
from firm_billing.metrics import usage_increments_total
from firm_billing.models.usage_record import UsageCategory, UsageRecord
from firm_billing.utils.enums import coerce_category

logger = structlog.get_logger(__name__)


class UsageLedger:
    """
    Stores usage counters keyed by (firm, period, category).

    Every write is a single SQL statement against one counter row, so
    concurrent increments of the same counter never lose updates. There is
    no atomicity across categories.
    """

    def __init__(self, db: AsyncSession):
        """Initialize usage ledger with database session."""
        self.db = db

    async def increment(
        self,
        firm_id: UUID,
        period_id: str,
        category: UsageCategory | str,
        delta: int = 1,
    ) -> int:
        """
        Atomically add consumption to a counter.

        The row is created lazily on the first increment of a period.

        Args:
            firm_id: Firm UUID
            period_id: Billing period identifier
            category: Usage category
            delta: Units consumed (non-negative)

        Returns:
            Counter value after the increment

        Raises:
            InvalidQuantity: If delta is negative
            InvalidCategory: If category is unknown
        """
        category = coerce_category(UsageCategory, category)
        if delta < 0:
            raise InvalidQuantity(f"Usage delta must be non-negative, got {delta}")

        used = await self._apply(firm_id, period_id, category, UsageRecord.used + delta, initial=delta)

        usage_increments_total.labels(category=category.value).inc()
        logger.debug(
            "usage_incremented",
            firm_id=str(firm_id),
            period_id=period_id,
            category=category.value,
            delta=delta,
            used=used,
        )
        return used

    async def correct(
        self,
        firm_id: UUID,
        period_id: str,
        category: UsageCategory | str,
        used: int,
    ) -> int:
        """
        Overwrite a counter as an explicit correction (may decrease it).

        Raises:
            InvalidQuantity: If used is negative
            InvalidCategory: If category is unknown
        """
        category = coerce_category(UsageCategory, category)
        if used < 0:
            raise InvalidQuantity(f"Corrected usage must be non-negative, got {used}")

        previous = await self.get_used(firm_id, period_id, category)
        value = await self._apply(firm_id, period_id, category, used, initial=used)

        logger.info(
            "usage_corrected",
            firm_id=str(firm_id),
            period_id=period_id,
            category=category.value,
            previous=previous,
            used=value,
        )
        return value

    async def get_used(self, firm_id: UUID, period_id: str, category: UsageCategory | str) -> int:
        """Current counter value, 0 when the period has no record yet."""
        category = coerce_category(UsageCategory, category)
        result = await self.db.execute(
            select(UsageRecord.used).where(
                UsageRecord.firm_id == firm_id,
                UsageRecord.period_id == period_id,
                UsageRecord.category == category.value,
            )
        )
        return result.scalar_one_or_none() or 0

    async def get_usage(self, firm_id: UUID, period_id: str) -> dict[UsageCategory, int]:
        """
        All counters recorded for a firm in a period.

        Categories the ledger does not know are skipped.
        """
        result = await self.db.execute(
            select(UsageRecord.category, UsageRecord.used).where(
                UsageRecord.firm_id == firm_id,
                UsageRecord.period_id == period_id,
            )
        )
        known = {member.value for member in UsageCategory}
        return {
            UsageCategory(category): used
            for category, used in result.all()
            if category in known
        }

    async def _apply(self, firm_id: UUID, period_id: str, category: UsageCategory, value, initial: int) -> int:
        """Update the counter in place, inserting it first if the period has none."""
        if await self._update(firm_id, period_id, category, value):
            return await self.get_used(firm_id, period_id, category)

        try:
            async with self.db.begin_nested():
                self.db.add(
                    UsageRecord(
                        firm_id=firm_id,
                        period_id=period_id,
                        category=category.value,
                        used=initial,
                    )
                )
        except IntegrityError:
            # Another writer created the row between our update and insert
            await self._update(firm_id, period_id, category, value)

        return await self.get_used(firm_id, period_id, category)

    async def _update(self, firm_id: UUID, period_id: str, category: UsageCategory, value) -> bool:
        result = await self.db.execute(
            update(UsageRecord)
            .where(
                UsageRecord.firm_id == firm_id,
                UsageRecord.period_id == period_id,
                UsageRecord.category == category.value,
            )
            .values(used=value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0
