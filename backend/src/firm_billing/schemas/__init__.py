"""Pydantic schemas for API request/response validation."""

from firm_billing.schemas.billing_charge import BillingCharge, BillingChargeList, ChargeProposal
from firm_billing.schemas.billing_rule import BillingRule, BillingRuleUpdate
from firm_billing.schemas.error import ErrorCode, ErrorDetail, ErrorResponse
from firm_billing.schemas.firm import Firm, FirmCreate
from firm_billing.schemas.invoice import Invoice, InvoiceCreate, InvoiceLineInput, InvoiceLineItem
from firm_billing.schemas.period import BillingPeriod
from firm_billing.schemas.split_billing import (
    Allocation,
    AllocationRequest,
    SplitBillingConfig,
    SplitBillingConfigUpdate,
)
from firm_billing.schemas.summary import BillingSummary
from firm_billing.schemas.usage import Severity, UsageAlert, UsageClassification, UsageIncrement

__all__ = [
    "BillingCharge",
    "BillingChargeList",
    "ChargeProposal",
    "BillingRule",
    "BillingRuleUpdate",
    "ErrorCode",
    "ErrorDetail",
    "ErrorResponse",
    "Firm",
    "FirmCreate",
    "Invoice",
    "InvoiceCreate",
    "InvoiceLineInput",
    "InvoiceLineItem",
    "BillingPeriod",
    "Allocation",
    "AllocationRequest",
    "SplitBillingConfig",
    "SplitBillingConfigUpdate",
    "BillingSummary",
    "Severity",
    "UsageAlert",
    "UsageClassification",
    "UsageIncrement",
]
