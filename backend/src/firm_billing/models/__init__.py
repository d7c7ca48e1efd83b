"""SQLAlchemy ORM models for the billing policy engine."""
# Import all models here to ensure they are registered with Alembic

from firm_billing.models.base import Base
from firm_billing.models.firm import Firm
from firm_billing.models.subscription import (
    BillingCycle,
    ResourceLimit,
    Subscription,
    SubscriptionStatus,
)
from firm_billing.models.usage_record import UsageCategory, UsageRecord
from firm_billing.models.split_billing import CostCategory, SplitBillingConfig
from firm_billing.models.billing_charge import BillingCharge, ChargeStatus, ChargeType
from firm_billing.models.billing_rule import ApprovalType, BillingFrequency, BillingRule
from firm_billing.models.invoice import Invoice, InvoiceLineItem, InvoiceStatus
from firm_billing.models.audit_log import AuditLog

__all__ = [
    "Base",
    "Firm",
    "BillingCycle",
    "ResourceLimit",
    "Subscription",
    "SubscriptionStatus",
    "UsageCategory",
    "UsageRecord",
    "CostCategory",
    "SplitBillingConfig",
    "BillingCharge",
    "ChargeStatus",
    "ChargeType",
    "ApprovalType",
    "BillingFrequency",
    "BillingRule",
    "Invoice",
    "InvoiceLineItem",
    "InvoiceStatus",
    "AuditLog",
]
