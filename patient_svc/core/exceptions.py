"""
Shared exception classes and error handling utilities for Patient Service API.

This module provides:
- Custom exception hierarchy for domain-specific errors
- Consistent error response formatting
- Exception handlers for FastAPI integration

Usage:
    from core.exceptions import PatientNotFoundError, VitalsValidationError

    # In service layer - raise domain exceptions
    raise PatientNotFoundError(patient_id="6650f0c2a1")

    # In FastAPI - register handlers via setup_exception_handlers(app)
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from core.metrics import (
    REJECTED_CONFLICT,
    REJECTED_NOT_FOUND,
    REJECTED_VALIDATION,
    get_metrics,
)

logger = logging.getLogger(__name__)


# =============================================================================
# BASE EXCEPTION CLASSES
# =============================================================================

class PatientServiceError(Exception):
    """
    Base exception for all Patient Service domain errors.

    All custom exceptions should inherit from this class.
    Provides consistent error structure with status code and detail message.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "An unexpected error occurred"

    def __init__(
        self,
        detail: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs: Any
    ):
        """
        Initialize the exception.

        Args:
            detail: Human-readable error message. Uses class default if not provided.
            status_code: HTTP status code. Uses class default if not provided.
            **kwargs: Additional context to include in error response.
        """
        self.detail = detail or self.__class__.detail
        self.status_code = status_code or self.__class__.status_code
        self.context = kwargs
        super().__init__(self.detail)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        result = {"detail": self.detail}
        if self.context:
            result["context"] = self.context
        return result


# =============================================================================
# VALIDATION EXCEPTIONS
# =============================================================================

class VitalsValidationError(PatientServiceError):
    """Raised when a vitals reading is malformed or outside its valid range."""

    status_code = 422
    detail = "Invalid vitals"

    def __init__(self, field: str, rule: str, **kwargs: Any):
        self.field = field
        self.rule = rule
        super().__init__(detail=f"{field}: {rule}", field=field, rule=rule, **kwargs)


# =============================================================================
# PATIENT EXCEPTIONS
# =============================================================================

class PatientNotFoundError(PatientServiceError):
    """Raised when a patient is not found in the document store."""

    status_code = status.HTTP_404_NOT_FOUND
    detail = "Patient not found"

    def __init__(self, patient_id: Optional[str] = None, **kwargs: Any):
        detail = f"Patient '{patient_id}' not found" if patient_id else self.detail
        super().__init__(detail=detail, patient_id=patient_id, **kwargs)


class ConcurrentUpdateError(PatientServiceError):
    """Raised when a conditional write loses against a concurrent writer."""

    status_code = status.HTTP_409_CONFLICT
    detail = "Patient was modified by another request"

    def __init__(
        self,
        patient_id: Optional[str] = None,
        expected_version: Optional[int] = None,
        **kwargs: Any
    ):
        detail = (
            f"Patient '{patient_id}' was modified by another request"
            if patient_id else self.detail
        )
        super().__init__(
            detail=detail,
            patient_id=patient_id,
            expected_version=expected_version,
            **kwargs
        )


# =============================================================================
# STORE / TRANSPORT EXCEPTIONS
# =============================================================================

class DatabaseError(PatientServiceError):
    """Raised when a document store operation fails."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Database operation failed"

    def __init__(self, operation: Optional[str] = None, message: Optional[str] = None, **kwargs: Any):
        if operation and message:
            detail = f"Database error during {operation}: {message}"
        elif operation:
            detail = f"Database error during {operation}"
        else:
            detail = message or self.detail
        super().__init__(detail=detail, operation=operation, **kwargs)


class TransportError(PatientServiceError):
    """Raised by PatientAPIClient when the service cannot be reached or fails."""

    status_code = status.HTTP_502_BAD_GATEWAY
    detail = "Patient service request failed"


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

_REJECTION_REASONS = (
    (VitalsValidationError, REJECTED_VALIDATION),
    (ConcurrentUpdateError, REJECTED_CONFLICT),
    (PatientNotFoundError, REJECTED_NOT_FOUND),
)


async def patient_service_exception_handler(
    request: Request,
    exc: PatientServiceError
) -> JSONResponse:
    """
    Handle PatientServiceError exceptions and return consistent JSON responses.

    Refusals the caller can act on (bad vitals, stale version, unknown id)
    are counted in core.metrics.
    """
    for exc_type, reason in _REJECTION_REASONS:
        if isinstance(exc, exc_type):
            get_metrics().record_rejection(reason, getattr(exc, "field", None))
            break

    logger.warning(
        f"PatientServiceError: {exc.detail}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path,
            "method": request.method,
            "context": exc.context
        }
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def generic_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle unexpected exceptions with a 500 response.

    The underlying message is passed through to the caller unchanged.
    """
    logger.exception(
        f"Unhandled exception: {exc}",
        extra={
            "path": request.url.path,
            "method": request.method
        }
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc) or type(exc).__name__}
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance.

    Example:
        app = FastAPI()
        setup_exception_handlers(app)
    """
    app.add_exception_handler(PatientServiceError, patient_service_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
