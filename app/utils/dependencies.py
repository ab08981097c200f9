"""
FastAPI dependency injection utilities for authentication, stores, and services.
Provides reusable dependencies for route protection and user extraction.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.documents import DocumentStore, get_document_store
from app.services.auth import AuthService, CurrentUser
from app.services.image import ImageService
from app.services.listing import ListingService
from app.services.mirror import PropertyMirrorService
from app.services.session import SessionRegistry
from app.utils.exceptions import (
    UnauthorizedError,
    InvalidTokenError,
    TokenExpiredError,
    InactiveUserError,
)
from app.utils.file_utils import ObjectStorage, get_object_storage


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


async def get_session_registry(
    store: DocumentStore = Depends(get_document_store)
) -> SessionRegistry:
    """Session registry over the primary store."""
    return SessionRegistry(store)


async def get_auth_service(
    store: DocumentStore = Depends(get_document_store),
    sessions: SessionRegistry = Depends(get_session_registry)
) -> AuthService:
    """
    Get authentication service instance.

    Args:
        store: Primary document store
        sessions: Session registry

    Returns:
        AuthService instance
    """
    return AuthService(store, sessions)


async def get_mirror_service(db: AsyncSession = Depends(get_db)) -> PropertyMirrorService:
    """
    Get relational mirror service instance.

    Args:
        db: Database session

    Returns:
        PropertyMirrorService instance
    """
    return PropertyMirrorService(db)


async def get_listing_service(
    store: DocumentStore = Depends(get_document_store),
    mirror: PropertyMirrorService = Depends(get_mirror_service),
    storage: ObjectStorage = Depends(get_object_storage)
) -> ListingService:
    """Get listing service instance."""
    return ListingService(store, mirror, storage)


async def get_image_service(
    storage: ObjectStorage = Depends(get_object_storage)
) -> ImageService:
    """Get image upload service instance."""
    return ImageService(storage)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> CurrentUser:
    """
    Get current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer credentials
        auth_service: Authentication service

    Returns:
        Current user

    Raises:
        UnauthorizedError: If no token provided or token is invalid
        TokenExpiredError: If token is expired
        InactiveUserError: If user account is inactive
    """
    if not credentials:
        raise UnauthorizedError("Authentication token required")

    return await auth_service.get_current_user(credentials.credentials)


async def get_optional_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[CurrentUser]:
    """
    Get current user if a valid token is provided, otherwise None.

    Args:
        credentials: HTTP Bearer credentials (optional)
        auth_service: Authentication service

    Returns:
        Current user if authenticated, None otherwise
    """
    if not credentials:
        return None

    try:
        return await auth_service.get_current_user(credentials.credentials)
    except (InvalidTokenError, TokenExpiredError, InactiveUserError):
        return None
