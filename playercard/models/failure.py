"""
Response envelope and known-failure classification.

Every endpoint answers with the same envelope:

    {"success": bool, "message": str | None, "data": T | None}

Failures the system can explain are raised as KnownError (or a subclass)
and converted to the envelope by the application exception handler. A
degraded answer built from cached data is still a success.
"""

from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input validation failures
    INVALID_INPUT = "invalid_input"
    MISSING_REQUIRED = "missing_required"

    # Resource failures
    NOT_FOUND = "not_found"

    # Service failures
    SERVICE_UNAVAILABLE = "service_unavailable"
    EXTERNAL_API_ERROR = "external_api_error"

    # Unknown
    UNKNOWN = "unknown"


T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Universal response envelope for all API endpoints."""

    success: bool = Field(
        ...,
        description="True when data is returned, including degraded cache answers",
    )
    message: str | None = Field(
        default=None,
        description="Advisory note on success, explanation on failure",
    )
    data: T | None = Field(
        default=None,
        description="Response data (present on success)",
    )

    @classmethod
    def ok(cls, data: T, message: str | None = None) -> "ApiResponse[T]":
        """Create a success response."""
        return cls(success=True, data=data, message=message)

    @classmethod
    def error(cls, message: str) -> "ApiResponse[Any]":
        """Create a failure response."""
        return cls(success=False, message=message)


# Fixed message for failures the system cannot explain
UNKNOWN_FAILURE_MESSAGE = "An unexpected server error occurred. Please try again later."


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ApiResponse[Any]:
        """Convert to an ApiResponse."""
        message = self.message
        if self.suggestion:
            message = f"{message} {self.suggestion}"
        return ApiResponse.error(message)


class InvalidInputError(KnownError):
    """Request input could not be accepted. Terminal, never retried."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.INVALID_INPUT,
            message=message,
            detail=detail,
            status_code=400,
        )


class ServiceUnavailableError(KnownError):
    """A required collaborator is not configured and nothing can stand in."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.SERVICE_UNAVAILABLE,
            message=message,
            detail=detail,
            status_code=503,
        )


class BadGatewayError(KnownError):
    """The upstream service failed and no usable cached data exists."""

    def __init__(
        self,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
    ):
        super().__init__(
            kind=FailureKind.EXTERNAL_API_ERROR,
            message=message,
            detail=detail,
            suggestion=suggestion,
            status_code=502,
        )
