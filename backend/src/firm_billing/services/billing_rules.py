"""Service for per-firm growth-charge billing rules."""
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from firm_billing.models.billing_rule import ApprovalType, BillingFrequency, BillingRule
from firm_billing.schemas.billing_rule import BillingRuleUpdate
from firm_billing.services.firms import require_firm
from firm_billing.utils.audit import audit_update

logger = structlog.get_logger(__name__)

BILLING_RULE_FIELDS = (
    "office_approval_type",
    "max_offices_auto_approve",
    "user_approval_type",
    "max_users_auto_approve",
    "auto_billing_enabled",
    "billing_frequency",
    "monthly_billing_threshold",
)

# Columns that cannot be cleared with an explicit null
NON_NULLABLE_FIELDS = {
    "office_approval_type",
    "user_approval_type",
    "auto_billing_enabled",
    "billing_frequency",
}


class BillingRuleService:
    """Reads and updates the approval policy for growth charges."""

    def __init__(self, db: AsyncSession):
        """Initialize billing rule service with database session."""
        self.db = db

    async def get_rule(self, firm_id: UUID, for_update: bool = False) -> BillingRule:
        """
        Get the firm's billing rule, creating the default on first use.

        The default is threshold approval for both offices and users with no
        maximum, i.e. every growth charge requires approval until an admin
        sets a ceiling.

        Args:
            firm_id: Firm UUID
            for_update: Lock the row for the rest of the transaction

        Raises:
            NotFound: If the firm does not exist
        """
        rule = await self._load(firm_id, for_update)
        if rule is not None:
            return rule

        await require_firm(self.db, firm_id)
        try:
            async with self.db.begin_nested():
                self.db.add(
                    BillingRule(
                        firm_id=firm_id,
                        office_approval_type=ApprovalType.THRESHOLD,
                        user_approval_type=ApprovalType.THRESHOLD,
                        auto_billing_enabled=True,
                        billing_frequency=BillingFrequency.MONTHLY,
                        approval_version=0,
                    )
                )
            logger.info("billing_rule_created", firm_id=str(firm_id))
        except IntegrityError:
            logger.debug("billing_rule_created_concurrently", firm_id=str(firm_id))

        return await self._load(firm_id, for_update)

    @audit_update("billing_rule")
    async def update_rule(
        self,
        firm_id: UUID,
        update: BillingRuleUpdate,
        current_user: dict | None = None,
        request_id: str | None = None,
    ) -> tuple[BillingRule, dict]:
        """
        Apply a validated partial update as one atomic write.

        Fields absent from the update keep their value; an explicit null
        clears a nullable maximum or threshold.

        Args:
            firm_id: Firm UUID
            update: Fields to change
            current_user: Acting user for the audit trail
            request_id: Request correlation ID for the audit trail

        Returns:
            Tuple of (updated rule, previous values)
        """
        changes = update.model_dump(exclude_unset=True)
        rule = await self.get_rule(firm_id, for_update=True)
        old_values = {field: getattr(rule, field) for field in BILLING_RULE_FIELDS}

        for field, value in changes.items():
            if value is None and field in NON_NULLABLE_FIELDS:
                continue
            setattr(rule, field, value)

        await self.db.flush()
        await self.db.refresh(rule)

        logger.info("billing_rule_updated", firm_id=str(firm_id), fields=sorted(changes))
        return rule, old_values

    async def _load(self, firm_id: UUID, for_update: bool) -> BillingRule | None:
        query = select(BillingRule).where(BillingRule.firm_id == firm_id)
        if for_update:
            # Refresh the identity-map copy so the version check sees committed state
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()
