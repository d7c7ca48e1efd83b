"""Structured error response schemas."""
from datetime import datetime
from typing import Any
from pydantic import BaseModel, ConfigDict, Field


class ErrorDetail(BaseModel):
    """Detailed error information."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    field: str | None = Field(default=None, description="Field that caused the error (for validation errors)")
    value: Any | None = Field(default=None, description="Invalid value (for validation errors)")


class ErrorResponse(BaseModel):
    """Standard error response structure.

    This provides consistent error responses across the API with:
    - Machine-readable error codes
    - Human-readable messages
    - Remediation hints
    - Request tracing information
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "InvalidTransition",
                "message": "Cannot cancel charge in status paid",
                "details": [
                    {
                        "code": "invalid_state_transition",
                        "message": "Cannot cancel charge in status paid",
                    }
                ],
                "remediation": "Reload the charge; paid and cancelled charges can no longer change.",
                "request_id": "req_1234567890",
                "timestamp": "2026-10-15T10:30:00Z",
            }
        }
    )

    error: str = Field(..., description="Error type (e.g., 'ValidationError', 'NotFound', 'InvalidTransition')")
    message: str = Field(..., description="Primary error message")
    details: list[ErrorDetail] | None = Field(
        default=None, description="Detailed error information (for validation errors)"
    )
    remediation: str | None = Field(default=None, description="Suggestion for fixing the error")
    request_id: str | None = Field(default=None, description="Request ID for tracing")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Error timestamp")


# Error codes enum for consistency
class ErrorCode:
    """Standard error codes used across the API."""

    # Validation errors (422)
    VALIDATION_ERROR = "validation_error"
    INVALID_CATEGORY = "invalid_category"
    INVALID_SPLIT_CONFIG = "invalid_split_config"
    INVALID_QUANTITY = "invalid_quantity"

    # Conflicts (409)
    INVALID_STATE_TRANSITION = "invalid_state_transition"
    CONCURRENT_THRESHOLD_VIOLATION = "concurrent_threshold_violation"

    # Not found errors (404)
    NOT_FOUND = "not_found"

    # Infrastructure errors (503)
    DATABASE_ERROR = "database_error"

    # Internal errors (500)
    INTERNAL_ERROR = "internal_error"


# HTTP status for each policy error code
ERROR_STATUS_CODES = {
    ErrorCode.INVALID_CATEGORY: 422,
    ErrorCode.INVALID_SPLIT_CONFIG: 422,
    ErrorCode.INVALID_QUANTITY: 422,
    ErrorCode.INVALID_STATE_TRANSITION: 409,
    ErrorCode.CONCURRENT_THRESHOLD_VIOLATION: 409,
    ErrorCode.NOT_FOUND: 404,
}

# Remediation hints for common errors
REMEDIATION_HINTS = {
    ErrorCode.INVALID_CATEGORY: "Use one of the documented usage, cost or charge categories.",
    ErrorCode.INVALID_SPLIT_CONFIG: "Set the shared-resource split to a whole percentage between 0 and 100.",
    ErrorCode.INVALID_QUANTITY: "Provide a positive quantity and a non-negative amount in cents.",
    ErrorCode.INVALID_STATE_TRANSITION: "Reload the charge; paid and cancelled charges can no longer change.",
    ErrorCode.CONCURRENT_THRESHOLD_VIOLATION: "Another charge for this firm was decided concurrently. Submit the request again.",
    ErrorCode.NOT_FOUND: "Verify the firm, charge or invoice ID is correct and exists.",
    ErrorCode.DATABASE_ERROR: "Database temporarily unavailable. Please try again in a few moments.",
}
