"""
Renders every failure as the JSON error envelope:

    {"error": {"code", "message", "timestamp", "request_id", "details"?}}

Client errors are logged as warnings, store and unexpected failures as errors
with tracebacks. Store internals never reach the response body.
"""

from typing import Dict, Any, Optional, List, Sequence
from datetime import datetime, timezone
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.utils.exceptions import APIException
import logging
import uuid

logger = logging.getLogger(__name__)

# Framework status codes that have a named error code
HTTP_ERROR_CODES = {
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    503: "SERVICE_UNAVAILABLE",
}

# (substring of the driver message, client-facing explanation)
CONSTRAINT_MESSAGES = (
    ("unique", "Duplicate value for unique field"),
    ("foreign key", "Referenced record does not exist"),
    ("not null", "Required field cannot be empty"),
)


class ErrorHandlerService:
    """Builds error envelopes for the application's exception handlers."""

    @staticmethod
    def format_error_response(
        error_code: str,
        message: str,
        details: Optional[List[Dict[str, Any]]] = None,
        request_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Build the error envelope.

        Args:
            error_code: Stable machine-readable code
            message: Human-readable message
            details: Per-field entries, omitted when empty
            request_id: Id echoed back to the client

        Returns:
            Envelope dictionary ready for JSON encoding
        """
        error: Dict[str, Any] = {
            "code": error_code,
            "message": message,
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "request_id": request_id or ErrorHandlerService._request_id(None),
        }
        if details:
            error["details"] = details
        return {"error": error}

    @staticmethod
    def _respond(
        status_code: int,
        error_code: str,
        message: str,
        request: Optional[Request],
        details: Optional[List[Dict[str, Any]]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> JSONResponse:
        body = ErrorHandlerService.format_error_response(
            error_code, message, details, ErrorHandlerService._request_id(request)
        )
        return JSONResponse(status_code=status_code, content=jsonable_encoder(body), headers=headers)

    @staticmethod
    def handle_api_exception(
        exception: APIException,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """Render an application exception with its own status and code."""
        logger.warning(
            f"{exception.error_code} ({exception.status_code}) on {_path(request)}: {exception.detail}"
        )
        return ErrorHandlerService._respond(
            exception.status_code,
            exception.error_code,
            str(exception.detail),
            request,
            details=exception.field_errors,
            headers=exception.headers
        )

    @staticmethod
    def handle_validation_error(
        errors: Sequence[Dict[str, Any]],
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Render pydantic validation errors as 400 with one detail per field.

        Args:
            errors: Entries as produced by pydantic's ``errors()``
            request: Request being handled, if any

        Returns:
            400 response listing every failing field
        """
        details = [
            {
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
                "input": error.get("input"),
            }
            for error in errors
        ]
        logger.warning(f"Validation failed on {_path(request)}: {len(details)} field error(s)")
        return ErrorHandlerService._respond(
            400, "VALIDATION_ERROR", "Request validation failed", request, details=details
        )

    @staticmethod
    def handle_database_error(
        exception: SQLAlchemyError,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Render a relational store failure.

        Constraint violations become 409, anything else 500. The driver
        message is logged but never returned.
        """
        if isinstance(exception, IntegrityError):
            status_code, error_code = 409, "INTEGRITY_ERROR"
            message = ErrorHandlerService._constraint_message(exception)
        else:
            status_code, error_code = 500, "DATABASE_ERROR"
            message = "Database operation failed"

        logger.error(
            f"{error_code} on {_path(request)}: {type(exception).__name__}: {exception}",
            exc_info=exception
        )
        return ErrorHandlerService._respond(status_code, error_code, message, request)

    @staticmethod
    def handle_http_exception(
        exception: StarletteHTTPException,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """Render framework errors such as unknown routes and wrong methods."""
        logger.warning(f"HTTP {exception.status_code} on {_path(request)}: {exception.detail}")
        return ErrorHandlerService._respond(
            exception.status_code,
            HTTP_ERROR_CODES.get(exception.status_code, f"HTTP_{exception.status_code}"),
            str(exception.detail),
            request,
            headers=getattr(exception, "headers", None)
        )

    @staticmethod
    def handle_unexpected_error(
        exception: Exception,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """Render any other exception as an opaque 500."""
        logger.error(
            f"Unhandled {type(exception).__name__} on {_path(request)}: {exception}",
            exc_info=exception
        )
        return ErrorHandlerService._respond(
            500,
            "INTERNAL_SERVER_ERROR",
            "An unexpected error occurred. Please try again later.",
            request
        )

    @staticmethod
    def _request_id(request: Optional[Request]) -> str:
        """Reuse the id assigned by the timing middleware, or make one up."""
        request_id = getattr(request.state, "request_id", None) if request is not None else None
        return request_id or uuid.uuid4().hex[:8]

    @staticmethod
    def _constraint_message(exception: IntegrityError) -> str:
        driver_message = str(exception.orig).lower()
        for marker, message in CONSTRAINT_MESSAGES:
            if marker in driver_message:
                return f"Constraint violation: {message}"
        return "Data integrity constraint violation"


def _path(request: Optional[Request]) -> str:
    return request.url.path if request is not None else "<no request>"


def _documented(description: str, code: str, message: str) -> Dict[str, Any]:
    example = {
        "error": {
            "code": code,
            "message": message,
            "timestamp": "2024-01-01T00:00:00.000000Z",
            "request_id": "abc12345",
        }
    }
    return {"description": description, "content": {"application/json": {"example": example}}}


# OpenAPI ``responses`` entries, keyed by status code
ERROR_RESPONSES: Dict[int, Dict[str, Any]] = {
    400: _documented("Bad Request", "MISSING_FIELDS", "Missing required field(s): title"),
    401: _documented("Unauthorized", "UNAUTHORIZED", "Authentication required"),
    403: _documented("Forbidden", "FORBIDDEN", "You don't own this property"),
    404: _documented("Not Found", "NOT_FOUND", "Property not found with ID: 3f9c1a7be04d2c5e8a61"),
    409: _documented("Conflict", "UPLOAD_IN_PROGRESS", "Image upload in progress, submit after it completes"),
    500: _documented("Internal Server Error", "INTERNAL_SERVER_ERROR", "An unexpected error occurred"),
    502: _documented("Mirror Write Failed", "MIRROR_SYNC_FAILED", "Failed to create property in the relational mirror"),
}


def error_responses(*status_codes: int) -> Dict[int, Dict[str, Any]]:
    """OpenAPI ``responses`` entries for the given error status codes."""
    return {code: ERROR_RESPONSES[code] for code in status_codes if code in ERROR_RESPONSES}
