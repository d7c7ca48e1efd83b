"""Typed errors raised by the billing policy engine.

Each error carries a machine-readable code; the API layer maps codes to HTTP
statuses and remediation hints. None of these are retried internally.
"""


class BillingPolicyError(Exception):
    """Base class for all policy engine errors."""

    code = "billing_policy_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidCategory(BillingPolicyError):
    """Unknown usage, cost or charge category."""

    code = "invalid_category"


class InvalidSplitConfig(BillingPolicyError):
    """Split-billing configuration violates its invariants."""

    code = "invalid_split_config"


class InvalidQuantity(BillingPolicyError):
    """Quantity or amount outside the permitted range."""

    code = "invalid_quantity"


class InvalidTransition(BillingPolicyError):
    """Charge lifecycle transition not permitted from the current status."""

    code = "invalid_state_transition"

    def __init__(self, message: str, current_status: str | None = None, target_status: str | None = None):
        super().__init__(message)
        self.current_status = current_status
        self.target_status = target_status


class ConcurrentThresholdViolation(BillingPolicyError):
    """Per-firm serialization was detectably broken during a charge proposal."""

    code = "concurrent_threshold_violation"


class NotFound(BillingPolicyError):
    """Unknown firm, charge, invoice or subscription."""

    code = "not_found"
