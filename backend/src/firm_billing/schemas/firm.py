"""Pydantic schemas for Firm model."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, ConfigDict

from firm_billing.config import settings


class FirmCreate(BaseModel):
    """Schema for registering a firm with the billing engine."""

    name: str = Field(..., min_length=1, max_length=255, description="Firm display name")
    email: EmailStr = Field(..., description="Billing contact email")
    currency: str = Field(default=settings.default_currency, min_length=3, max_length=3, description="ISO 4217 currency code")


class Firm(BaseModel):
    """Schema for returning firm data."""

    id: UUID
    name: str
    email: str
    currency: str
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
