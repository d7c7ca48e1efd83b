"""Billing period value object passed explicitly into every engine call."""
import calendar
from datetime import datetime, timedelta

from pydantic import BaseModel, Field, ConfigDict, model_validator


class BillingPeriod(BaseModel):
    """
    Billing window computed once by the caller.

    The engine never derives the current period from the wall clock.
    """

    model_config = ConfigDict(frozen=True)

    period_id: str = Field(..., min_length=1, description="Stable period identifier, e.g. 2026-10")
    start: datetime = Field(..., description="Inclusive period start")
    end: datetime = Field(..., description="Exclusive period end")

    @model_validator(mode="after")
    def check_bounds(self) -> "BillingPeriod":
        """Reject empty or inverted periods."""
        if self.end <= self.start:
            raise ValueError("Billing period end must be after its start")
        return self

    @classmethod
    def for_month(cls, year: int, month: int) -> "BillingPeriod":
        """
        Build the calendar-month period for a year and month.

        Example:
            >>> BillingPeriod.for_month(2026, 10).period_id
            '2026-10'
        """
        last_day = calendar.monthrange(year, month)[1]
        start = datetime(year, month, 1)
        end = datetime(year, month, last_day) + timedelta(days=1)
        return cls(period_id=f"{year:04d}-{month:02d}", start=start, end=end)

    @classmethod
    def from_period_id(cls, period_id: str) -> "BillingPeriod":
        """Parse a YYYY-MM period identifier into a monthly period."""
        try:
            year_str, month_str = period_id.split("-")
            return cls.for_month(int(year_str), int(month_str))
        except ValueError as e:
            raise ValueError(f"Invalid period identifier {period_id!r}, expected YYYY-MM") from e

    def month_bounds(self) -> tuple[datetime, datetime]:
        """Calendar month containing the period start, as [start, end)."""
        month_start = self.start.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        if month_start.month == 12:
            month_end = month_start.replace(year=month_start.year + 1, month=1)
        else:
            month_end = month_start.replace(month=month_start.month + 1)
        return month_start, month_end
