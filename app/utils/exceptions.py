"""
Exception hierarchy for the InstaProperty API.

Every class carries its HTTP status and a stable ``error_code``; the error
handler renders them into the JSON error envelope. Subclasses mostly differ
in class attributes and in how they build their message.
"""

from typing import Any, Dict, Optional, List
from fastapi import HTTPException, status


class APIException(HTTPException):
    """Base API exception class."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "API_ERROR"
    default_detail: str = "Request failed"

    def __init__(
        self,
        detail: Optional[str] = None,
        field_errors: Optional[List[Dict[str, Any]]] = None,
        headers: Optional[Dict[str, str]] = None
    ):
        super().__init__(
            status_code=type(self).status_code,
            detail=detail or self.default_detail,
            headers=headers
        )
        self.field_errors: List[Dict[str, Any]] = list(field_errors or [])


# Client errors
class BadRequestError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "BAD_REQUEST"
    default_detail = "Bad request"


class ValidationError(BadRequestError):
    """Payload or query value rejected by a domain check."""

    error_code = "VALIDATION_ERROR"
    default_detail = "Validation failed"


class MissingFieldsError(ValidationError):
    """Required fields absent, null, or blank in a request body."""

    error_code = "MISSING_FIELDS"

    def __init__(self, fields: List[str]):
        self.fields = list(fields)
        super().__init__(
            f"Missing required field(s): {', '.join(self.fields)}",
            field_errors=[{"field": name, "message": "Field is required"} for name in self.fields]
        )


class UnsupportedFileTypeError(BadRequestError):
    error_code = "UNSUPPORTED_FILE_TYPE"

    def __init__(self, file_type: str, supported_types: List[str]):
        super().__init__(
            f"Unsupported file type '{file_type}'. Supported types: {', '.join(supported_types)}"
        )


class FileSizeExceededError(BadRequestError):
    error_code = "FILE_TOO_LARGE"

    def __init__(self, size: int, max_size: int):
        super().__init__(f"File size {size} bytes exceeds maximum allowed size {max_size} bytes")


# Authentication and authorization
class UnauthorizedError(APIException):
    """Missing or unusable credentials. Always asks for a bearer token."""

    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "UNAUTHORIZED"
    default_detail = "Authentication required"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class InvalidCredentialsError(UnauthorizedError):
    default_detail = "Invalid email or password"


class TokenExpiredError(UnauthorizedError):
    default_detail = "Token has expired"


class InvalidTokenError(UnauthorizedError):
    default_detail = "Invalid token"


class ForbiddenError(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"
    default_detail = "Access forbidden"


class InactiveUserError(ForbiddenError):
    default_detail = "User account is inactive"


class PropertyOwnershipError(ForbiddenError):
    default_detail = "You don't own this property"


class UserMismatchError(ForbiddenError):
    """Request names a user other than the signed-in one."""

    default_detail = "userId does not match the signed-in user"


# Missing resources
class NotFoundError(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        detail = f"{resource} not found"
        if resource_id:
            detail += f" with ID: {resource_id}"
        super().__init__(detail)


class PropertyNotFoundError(NotFoundError):

    def __init__(self, property_id: str):
        super().__init__("Property", property_id)


# Conflicts
class ConflictError(APIException):
    status_code = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"
    default_detail = "Resource conflict"


class DuplicateResourceError(ConflictError):

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} with identifier '{identifier}' already exists")


class UploadInProgressError(ConflictError):
    """A listing was submitted while the owner's image upload is still running."""

    error_code = "UPLOAD_IN_PROGRESS"
    default_detail = "Image upload in progress, submit after it completes"


# Store failures
class StorageError(APIException):
    """Object storage could not write or remove a file."""

    error_code = "STORAGE_ERROR"
    default_detail = "File storage failed"


class MirrorSyncError(APIException):
    """The relational mirror write failed and the primary write was undone."""

    status_code = status.HTTP_502_BAD_GATEWAY
    error_code = "MIRROR_SYNC_FAILED"

    def __init__(self, operation: str, property_id: str):
        self.operation = operation
        self.property_id = property_id
        super().__init__(
            f"Failed to {operation} property {property_id} in the relational mirror; changes were rolled back"
        )
