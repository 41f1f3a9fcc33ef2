# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""TeamMove error codes and exception classes.

Error Response Schema:
```json
{
  "error": {
    "code": "ENTITLEMENT_DENIED",
    "message": "Event limit reached for the Découverte plan",
    "details": {"operation": "create_event", "remaining_events": 0}
  }
}
```
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class TeamMoveErrorCode(str, Enum):
    """Standard error codes, each mapped to an HTTP status."""

    # 400 Bad Request
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_WEBHOOK_SIGNATURE = "INVALID_WEBHOOK_SIGNATURE"
    PAYMENT_NOT_COMPLETED = "PAYMENT_NOT_COMPLETED"

    # 403 Forbidden
    PERMISSION_DENIED = "PERMISSION_DENIED"
    ENTITLEMENT_DENIED = "ENTITLEMENT_DENIED"

    # 404 Not Found
    ORGANIZATION_NOT_FOUND = "ORGANIZATION_NOT_FOUND"
    PLAN_NOT_FOUND = "PLAN_NOT_FOUND"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"

    # 409 Conflict
    ALREADY_EXISTS = "ALREADY_EXISTS"
    SUBSCRIPTION_CONFLICT = "SUBSCRIPTION_CONFLICT"

    # 500 / 502
    INTERNAL_ERROR = "INTERNAL_ERROR"
    PAYMENT_GATEWAY_ERROR = "PAYMENT_GATEWAY_ERROR"


ERROR_CODE_TO_HTTP_STATUS: dict[TeamMoveErrorCode, int] = {
    TeamMoveErrorCode.VALIDATION_ERROR: 400,
    TeamMoveErrorCode.INVALID_WEBHOOK_SIGNATURE: 400,
    TeamMoveErrorCode.PAYMENT_NOT_COMPLETED: 400,
    TeamMoveErrorCode.PERMISSION_DENIED: 403,
    TeamMoveErrorCode.ENTITLEMENT_DENIED: 403,
    TeamMoveErrorCode.ORGANIZATION_NOT_FOUND: 404,
    TeamMoveErrorCode.PLAN_NOT_FOUND: 404,
    TeamMoveErrorCode.RESOURCE_NOT_FOUND: 404,
    TeamMoveErrorCode.ALREADY_EXISTS: 409,
    TeamMoveErrorCode.SUBSCRIPTION_CONFLICT: 409,
    TeamMoveErrorCode.INTERNAL_ERROR: 500,
    TeamMoveErrorCode.PAYMENT_GATEWAY_ERROR: 502,
}


class TeamMoveErrorDetail(BaseModel):
    """Standard error response body."""

    code: str = Field(..., description="Machine-readable error code", examples=["PLAN_NOT_FOUND"])
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(None, description="Additional context")


class TeamMoveErrorResponse(BaseModel):
    """Wrapper for error responses."""

    error: TeamMoveErrorDetail


class TeamMoveError(Exception):
    """Base exception for TeamMove errors.

    Usage:
        raise TeamMoveError(
            code=TeamMoveErrorCode.RESOURCE_NOT_FOUND,
            message=f"Event '{event_id}' not found",
            details={"event_id": str(event_id)},
        )
    """

    def __init__(
        self,
        code: TeamMoveErrorCode | str,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        self.code = code if isinstance(code, TeamMoveErrorCode) else TeamMoveErrorCode(code)
        self.message = message
        self.details = details
        super().__init__(message)

    @property
    def http_status(self) -> int:
        """Get HTTP status code for this error."""
        return ERROR_CODE_TO_HTTP_STATUS.get(self.code, 500)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
            }
        }


# =============================================================================
# Specific Error Classes
# =============================================================================


class OrganizationNotFoundError(TeamMoveError):
    """Raised when an organization does not exist."""

    def __init__(self, organization_id: Any, message: str | None = None):
        super().__init__(
            code=TeamMoveErrorCode.ORGANIZATION_NOT_FOUND,
            message=message or f"Organization '{organization_id}' not found",
            details={"organization_id": str(organization_id)},
        )


class PlanNotFoundError(TeamMoveError):
    """Raised when a plan id is not in the catalog."""

    def __init__(self, plan_id: str):
        super().__init__(
            code=TeamMoveErrorCode.PLAN_NOT_FOUND,
            message=f"Plan '{plan_id}' not found",
            details={"plan_id": plan_id},
        )


class ResourceNotFoundError(TeamMoveError):
    """Raised when an event, participant or other owned resource is missing."""

    def __init__(self, resource: str, resource_id: Any):
        super().__init__(
            code=TeamMoveErrorCode.RESOURCE_NOT_FOUND,
            message=f"{resource.capitalize()} not found",
            details={"resource": resource, "id": str(resource_id)},
        )


class EntitlementDeniedError(TeamMoveError):
    """Raised when the organization's plan does not allow an operation."""

    def __init__(
        self,
        operation: str,
        reason: str,
        remaining_events: int | None = None,
        remaining_invitations: int | None = None,
    ):
        self.operation = operation
        self.reason = reason
        self.remaining_events = remaining_events
        self.remaining_invitations = remaining_invitations
        super().__init__(
            code=TeamMoveErrorCode.ENTITLEMENT_DENIED,
            message=reason,
            details={
                "operation": operation,
                "remaining_events": remaining_events,
                "remaining_invitations": remaining_invitations,
                "upgrade_url": "/dashboard/billing",
            },
        )


class SubscriptionConflictError(TeamMoveError):
    """Raised when a plan change is not allowed from the current state."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            code=TeamMoveErrorCode.SUBSCRIPTION_CONFLICT,
            message=message,
            details=details,
        )


class PaymentGatewayError(TeamMoveError):
    """Raised when the payment provider fails or is not configured."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            code=TeamMoveErrorCode.PAYMENT_GATEWAY_ERROR,
            message=message,
            details=details,
        )


class PaymentNotCompletedError(TeamMoveError):
    """Raised when a checkout session is confirmed before being paid."""

    def __init__(self, session_id: str, payment_status: str | None):
        super().__init__(
            code=TeamMoveErrorCode.PAYMENT_NOT_COMPLETED,
            message="Payment has not been completed",
            details={"session_id": session_id, "payment_status": payment_status},
        )


class WebhookSignatureError(TeamMoveError):
    """Raised when a payment webhook signature does not verify."""

    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(code=TeamMoveErrorCode.INVALID_WEBHOOK_SIGNATURE, message=message)
