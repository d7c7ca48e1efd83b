"""Test data factories using Faker for generating realistic test data."""
from typing import Any

from faker import Faker

fake = Faker()


class FirmFactory:
    """Factory for creating test firm data."""

    @staticmethod
    def create(overrides: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Create firm test data.

        Args:
            overrides: Optional field overrides

        Returns:
            dict: Firm data accepted by FirmCreate
        """
        data = {
            "name": fake.company(),
            "email": f"billing.{fake.user_name()}@example.com",
            "currency": fake.random_element(["USD", "EUR", "GBP"]),
        }
        if overrides:
            data.update(overrides)
        return data


class ChargeProposalFactory:
    """Factory for creating growth charge proposal data."""

    @staticmethod
    def create(overrides: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Create charge proposal test data.

        Args:
            overrides: Optional field overrides

        Returns:
            dict: Charge proposal data (amounts in cents)
        """
        data = {
            "charge_type": fake.random_element(["office", "user"]),
            "quantity": fake.random_int(min=1, max=5),
            "unit_price": fake.random_int(min=100, max=10000),
            "period_id": "2026-10",
        }
        if overrides:
            data.update(overrides)
        return data


class InvoiceLineFactory:
    """Factory for creating extra invoice line data."""

    @staticmethod
    def create(overrides: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Create invoice line test data.

        Args:
            overrides: Optional field overrides

        Returns:
            dict: Invoice line data accepted by InvoiceLineInput
        """
        data = {
            "category": "base_plan",
            "description": f"{fake.word().title()} plan",
            "total_amount": fake.random_int(min=1000, max=50000),
        }
        if overrides:
            data.update(overrides)
        return data
