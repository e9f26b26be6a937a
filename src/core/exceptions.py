"""
Global Exception Handling
Custom exceptions and FastAPI exception handlers.

Error Response Format:
{
    "error": {
        "code": "ERROR_CODE",
        "message": "Human readable message",
        "details": {},
        "request_id": "uuid",
        "timestamp": "ISO8601"
    }
}
"""
import uuid
from datetime import datetime, timezone
from typing import Any

import sentry_sdk
from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from pydantic import ValidationError as PydanticValidationError

from src.core.logging import get_logger

logger = get_logger(__name__)


def _get_request_id(request: Request) -> str:
    """Get or generate request ID for tracing."""
    return request.headers.get("X-Request-ID", str(uuid.uuid4()))


class AgriDroneException(Exception):
    """Base exception for the AgriDrone application."""

    def __init__(
        self,
        message: str = "An error occurred",
        code: str = "INTERNAL_ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AgriDroneException):
    """Resource not found."""

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            message=f"{resource} with identifier '{identifier}' not found",
            code="NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "identifier": str(identifier)},
        )


class UnauthorizedError(AgriDroneException):
    """Authentication required."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            message=message,
            code="UNAUTHORIZED",
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class ForbiddenError(AgriDroneException):
    """Permission denied."""

    def __init__(self, message: str = "Permission denied"):
        super().__init__(
            message=message,
            code="FORBIDDEN",
            status_code=status.HTTP_403_FORBIDDEN,
        )


class ConflictError(AgriDroneException):
    """Resource conflict."""

    def __init__(self, message: str = "Resource conflict"):
        super().__init__(
            message=message,
            code="CONFLICT",
            status_code=status.HTTP_409_CONFLICT,
        )


class ValidationError(AgriDroneException):
    """Business-level validation error."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
        )


class InvalidStateError(AgriDroneException):
    """Operation not allowed in the resource's current status."""

    def __init__(self, resource: str, current: str, action: str):
        super().__init__(
            message=f"Cannot {action} {resource.lower()} in status {current}",
            code="INVALID_STATE",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"resource": resource, "status": current, "action": action},
        )


class TenantContextError(AgriDroneException):
    """Tenant context not available."""

    def __init__(self):
        super().__init__(
            message="Tenant context is required but not available",
            code="TENANT_CONTEXT_MISSING",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


def _build_error_response(
    code: str,
    message: str,
    status_code: int,
    request: Request,
    details: dict | None = None,
) -> ORJSONResponse:
    """Build standardized error response."""
    request_id = _get_request_id(request)
    timestamp = datetime.now(timezone.utc).isoformat()

    return ORJSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
                "request_id": request_id,
                "timestamp": timestamp,
                "path": str(request.url.path),
                "method": request.method,
            }
        },
        headers={"X-Request-ID": request_id},
    )


async def agridrone_exception_handler(request: Request, exc: AgriDroneException) -> ORJSONResponse:
    """Handler for AgriDroneException."""
    request_id = _get_request_id(request)

    logger.warning(
        "Application error",
        error_code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        request_id=request_id,
        path=str(request.url.path),
        method=request.method,
    )

    # Only server errors go to Sentry
    if exc.status_code >= 500:
        sentry_sdk.capture_exception(exc)

    return _build_error_response(
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        request=request,
        details=exc.details,
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> ORJSONResponse:
    """Handler for HTTPException."""
    request_id = _get_request_id(request)

    code_map = {
        400: "BAD_REQUEST",
        401: "UNAUTHORIZED",
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        409: "CONFLICT",
        422: "VALIDATION_ERROR",
        500: "INTERNAL_ERROR",
        503: "SERVICE_UNAVAILABLE",
    }

    error_code = code_map.get(exc.status_code, "HTTP_ERROR")

    logger.warning(
        "HTTP error",
        error_code=error_code,
        status_code=exc.status_code,
        detail=exc.detail,
        request_id=request_id,
        path=str(request.url.path),
    )

    return _build_error_response(
        code=error_code,
        message=str(exc.detail),
        status_code=exc.status_code,
        request=request,
    )


async def validation_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    """Handler for request body / parameter validation errors. Always 400."""
    request_id = _get_request_id(request)

    if isinstance(exc, (RequestValidationError, PydanticValidationError)):
        errors = exc.errors()
        details = {
            "validation_errors": [
                {
                    "field": ".".join(str(loc) for loc in err.get("loc", [])),
                    "message": err.get("msg", "Invalid value"),
                    "type": err.get("type", "value_error"),
                }
                for err in errors
            ]
        }
        message = f"Validation failed: {len(errors)} error(s)"
    else:
        details = {}
        message = "Request validation failed"

    logger.warning(
        "Validation error",
        request_id=request_id,
        path=str(request.url.path),
        errors=details,
    )

    return _build_error_response(
        code="VALIDATION_ERROR",
        message=message,
        status_code=status.HTTP_400_BAD_REQUEST,
        request=request,
        details=details,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    """Handler for unhandled exceptions."""
    request_id = _get_request_id(request)

    logger.exception(
        "Unhandled exception",
        request_id=request_id,
        path=str(request.url.path),
        method=request.method,
        error_type=type(exc).__name__,
        error_message=str(exc),
    )

    sentry_sdk.capture_exception(exc)

    return _build_error_response(
        code="INTERNAL_ERROR",
        message="An unexpected error occurred. Please try again later.",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        request=request,
        details={"error_id": request_id},
    )
