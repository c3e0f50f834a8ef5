"""
Custom exception hierarchy for the enhancement bridge.
Provides structured error handling with proper HTTP status codes.
"""

from typing import Any, Optional


class BridgeError(Exception):
    """Base exception for all enhancement bridge errors."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[dict[str, Any]] = None,
        status_code: int = 500,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            }
        }


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(BridgeError):
    """Error in application configuration."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            code="CONFIGURATION_ERROR",
            details=details,
            status_code=500,
        )


# =============================================================================
# Validation Errors (400)
# =============================================================================


class ValidationError(BridgeError):
    """Request validation failed."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            details=details,
            status_code=400,
        )


class InvalidRequestError(ValidationError):
    """Invalid request parameters."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        details = {"field": field} if field else {}
        super().__init__(message=message, details=details)
        self.code = "INVALID_REQUEST"


# =============================================================================
# Not Found Errors (404)
# =============================================================================


class NotFoundError(BridgeError):
    """Requested resource not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
    ) -> None:
        msg = message or f"{resource_type} not found"
        if resource_id and not message:
            msg = f"{resource_type} with ID '{resource_id}' not found"

        super().__init__(
            message=msg,
            code="NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id},
            status_code=404,
        )


class TicketNotFoundError(NotFoundError):
    """Source ticket missing or without a description."""

    def __init__(self, ticket_id: str) -> None:
        super().__init__(
            resource_type="Ticket",
            resource_id=ticket_id,
            message=f"JIRA ticket {ticket_id} not found or missing description.",
        )
        self.code = "TICKET_NOT_FOUND"


# =============================================================================
# External Service Errors (502)
# =============================================================================


class ExternalServiceError(BridgeError):
    """Error communicating with external service."""

    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=f"{service_name} error: {message}",
            code="EXTERNAL_SERVICE_ERROR",
            details={"service": service_name, **(details or {})},
            status_code=502,
        )


class JiraError(ExternalServiceError):
    """Error communicating with the JIRA REST API."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[Any] = None,
    ) -> None:
        details: dict[str, Any] = {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(service_name="JIRA", message=message, details=details)
        self.code = "JIRA_ERROR"
        self.response_body = response_body


class LLMError(ExternalServiceError):
    """Error communicating with the generative model."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(service_name="Gemini", message=message, details=details)
        self.code = "LLM_ERROR"


class PushChannelError(ExternalServiceError):
    """Error on the event-stream push channel."""

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        details = {"url": url} if url else {}
        super().__init__(service_name="Push channel", message=message, details=details)
        self.code = "PUSH_CHANNEL_ERROR"
