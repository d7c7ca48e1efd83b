"""Unit tests for usage classification thresholds."""
import pytest

from firm_billing.config import Settings
from firm_billing.models.usage_record import UsageCategory
from firm_billing.schemas.usage import Severity
from firm_billing.services.usage_classifier import (
    ALERT_TITLES,
    CRITICAL_PERCENTAGE,
    EXCEEDED_TITLE,
    WARNING_PERCENTAGE,
    classify_usage,
    severity_for,
    usage_percentage,
)


@pytest.mark.parametrize(
    "used, limit, expected",
    [
        (95, 100, Severity.CRITICAL),
        (90, 100, Severity.CRITICAL),
        (89, 100, Severity.WARNING),
        (70, 100, Severity.WARNING),
        (69, 100, Severity.NORMAL),
        (0, 100, Severity.NORMAL),
    ],
)
def test_severity_boundaries(used: int, limit: int, expected: Severity) -> None:
    """Boundaries belong to the higher tier."""
    assert classify_usage(UsageCategory.CLIENTS, used, limit).severity == expected


def test_boundary_with_non_round_limit() -> None:
    """7 of 10 is exactly 70 % and must not fall to normal through float error."""
    assert classify_usage(UsageCategory.STAFF_SEATS, 7, 10).severity == Severity.WARNING
    assert classify_usage(UsageCategory.STAFF_SEATS, 9, 10).severity == Severity.CRITICAL


def test_unlimited_category_never_alerts() -> None:
    alert = classify_usage(UsageCategory.STORAGE_GB, 10_000_000, None)

    assert alert.severity == Severity.NORMAL
    assert alert.unlimited is True
    assert alert.limit is None
    assert alert.percentage == 0.0
    assert "unlimited" in alert.message


def test_overage_percentage_is_not_clamped() -> None:
    alert = classify_usage(UsageCategory.E_SIGNATURES, 134, 100)

    assert alert.severity == Severity.CRITICAL
    assert alert.percentage == pytest.approx(134.0)
    assert alert.display_percentage == 100.0
    assert alert.title == EXCEEDED_TITLE
    assert alert.message == "E-Signature Envelopes: 134/100"


def test_titles_follow_severity_until_limit_exceeded() -> None:
    assert classify_usage(UsageCategory.CLIENTS, 95, 100).title == ALERT_TITLES[Severity.CRITICAL]
    assert classify_usage(UsageCategory.CLIENTS, 100, 100).title == ALERT_TITLES[Severity.CRITICAL]
    assert classify_usage(UsageCategory.CLIENTS, 75, 100).title == ALERT_TITLES[Severity.WARNING]
    assert classify_usage(UsageCategory.CLIENTS, 10, 100).title == ALERT_TITLES[Severity.NORMAL]


def test_zero_limit() -> None:
    """Any use of a zero-limit category is critical; no use is normal."""
    assert usage_percentage(0, 0) == 0.0
    assert classify_usage(UsageCategory.SMS, 0, 0).severity == Severity.NORMAL
    assert classify_usage(UsageCategory.SMS, 1, 0).severity == Severity.CRITICAL


def test_severity_for_custom_thresholds() -> None:
    assert severity_for(50.0, warning_at=50, critical_at=80) == Severity.WARNING
    assert severity_for(80.0, warning_at=50, critical_at=80) == Severity.CRITICAL
    assert severity_for(49.9, warning_at=50, critical_at=80) == Severity.NORMAL


def test_default_tiers_ignore_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Severity tiers are policy constants, not settings."""
    monkeypatch.setenv("USAGE_WARNING_PERCENTAGE", "10")
    monkeypatch.setenv("USAGE_CRITICAL_PERCENTAGE", "20")

    assert WARNING_PERCENTAGE == 70.0
    assert CRITICAL_PERCENTAGE == 90.0
    assert severity_for(69.9) == Severity.NORMAL
    assert severity_for(70.0) == Severity.WARNING
    assert severity_for(90.0) == Severity.CRITICAL
    assert not hasattr(Settings(), "usage_warning_percentage")
