"""Classify usage against plan entitlements and raise alerts."""
from uuid import UUID

import structlog

from firm_billing.metrics import usage_alerts_total
from firm_billing.models.usage_record import UsageCategory
from firm_billing.schemas.usage import Severity, UsageAlert, UsageClassification
from firm_billing.services.entitlement_resolver import EntitlementResolver
from firm_billing.services.usage_ledger import UsageLedger

logger = structlog.get_logger(__name__)

ALERT_TITLES = {
    Severity.NORMAL: "Within Plan Limits",
    Severity.WARNING: "Approaching Usage Limit",
    Severity.CRITICAL: "Usage Limit Nearly Reached",
}
EXCEEDED_TITLE = "Usage Limit Exceeded"

# Severity tiers; a percentage on a boundary belongs to the higher tier
WARNING_PERCENTAGE = 70.0
CRITICAL_PERCENTAGE = 90.0


def usage_percentage(used: int, limit: int) -> float:
    """
    Share of a finite limit consumed, in percent, without clamping.

    A zero limit counts each consumed unit as 100 %.

    Example:
        >>> usage_percentage(134, 100)
        134.0
    """
    if limit == 0:
        return float(used * 100)
    return used * 100 / limit


def severity_for(
    percentage: float,
    warning_at: float | None = None,
    critical_at: float | None = None,
) -> Severity:
    """Severity tier for a percentage; boundaries belong to the higher tier."""
    warning_at = WARNING_PERCENTAGE if warning_at is None else warning_at
    critical_at = CRITICAL_PERCENTAGE if critical_at is None else critical_at

    if percentage >= critical_at:
        return Severity.CRITICAL
    if percentage >= warning_at:
        return Severity.WARNING
    return Severity.NORMAL


def classify_usage(category: UsageCategory, used: int, limit: int | None) -> UsageAlert:
    """
    Build the alert for one category.

    Args:
        category: Usage category
        used: Units consumed this period
        limit: Plan limit, None for unlimited

    Returns:
        UsageAlert with unclamped percentage and clamped display percentage
    """
    if limit is None:
        return UsageAlert(
            category=category,
            severity=Severity.NORMAL,
            used=used,
            limit=None,
            unlimited=True,
            percentage=0.0,
            display_percentage=0.0,
            title=ALERT_TITLES[Severity.NORMAL],
            message=f"{category.label}: {used} (unlimited)",
        )

    percentage = usage_percentage(used, limit)
    severity = severity_for(percentage)
    title = EXCEEDED_TITLE if used > limit else ALERT_TITLES[severity]

    return UsageAlert(
        category=category,
        severity=severity,
        used=used,
        limit=limit,
        unlimited=False,
        percentage=percentage,
        display_percentage=min(max(percentage, 0.0), 100.0),
        title=title,
        message=f"{category.label}: {used}/{limit}",
    )


class UsageClassifier:
    """Combines the usage ledger with plan entitlements; pure read."""

    def __init__(self, ledger: UsageLedger, resolver: EntitlementResolver):
        self.ledger = ledger
        self.resolver = resolver

    async def classify(self, firm_id: UUID, period_id: str) -> UsageClassification:
        """
        Classify every limited category of the firm's plan for a period.

        Args:
            firm_id: Firm UUID
            period_id: Billing period identifier

        Returns:
            UsageClassification with one alert per category defined by the plan

        Raises:
            NotFound: If the firm has no active subscription
        """
        limits = await self.resolver.get_limits(firm_id)
        usage = await self.ledger.get_usage(firm_id, period_id)

        alerts = [
            classify_usage(category, usage.get(category, 0), limits[category])
            for category in UsageCategory
            if category in limits
        ]
        has_critical = any(alert.severity == Severity.CRITICAL for alert in alerts)

        for alert in alerts:
            if alert.severity != Severity.NORMAL:
                usage_alerts_total.labels(category=alert.category.value, severity=alert.severity.value).inc()

        if has_critical:
            logger.warning(
                "usage_critical",
                firm_id=str(firm_id),
                period_id=period_id,
                categories=[a.category.value for a in alerts if a.severity == Severity.CRITICAL],
            )

        return UsageClassification(
            firm_id=firm_id,
            period_id=period_id,
            alerts=alerts,
            has_critical=has_critical,
        )
