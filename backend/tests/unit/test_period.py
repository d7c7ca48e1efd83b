"""Unit tests for billing period helpers and currency formatting."""
from datetime import datetime

import pytest
from pydantic import ValidationError

from firm_billing.schemas.period import BillingPeriod
from firm_billing.utils.currency import format_amount_for_currency, validate_currency


def test_for_month_bounds() -> None:
    period = BillingPeriod.for_month(2026, 2)

    assert period.period_id == "2026-02"
    assert period.start == datetime(2026, 2, 1)
    assert period.end == datetime(2026, 3, 1)


def test_december_rolls_into_next_year() -> None:
    period = BillingPeriod.for_month(2026, 12)

    assert period.end == datetime(2027, 1, 1)
    assert period.month_bounds() == (datetime(2026, 12, 1), datetime(2027, 1, 1))


def test_from_period_id() -> None:
    assert BillingPeriod.from_period_id("2026-10") == BillingPeriod.for_month(2026, 10)


@pytest.mark.parametrize("period_id", ["2026", "2026-13", "october", "2026-10-01"])
def test_from_period_id_rejects_malformed(period_id: str) -> None:
    with pytest.raises(ValueError):
        BillingPeriod.from_period_id(period_id)


def test_end_must_follow_start() -> None:
    with pytest.raises(ValidationError):
        BillingPeriod(period_id="bad", start=datetime(2026, 10, 2), end=datetime(2026, 10, 1))


def test_currency_formatting() -> None:
    assert format_amount_for_currency(4900, "USD") == "$49.00"
    assert format_amount_for_currency(1000, "JPY") == "¥1,000"
    assert validate_currency("eur")
    assert not validate_currency("XYZ")
