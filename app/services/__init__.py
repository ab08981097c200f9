"""
Service layer for business logic implementation.
Contains services for authentication, sessions, listings, images, the
relational mirror, reconciliation, and error handling.
"""

from .auth import AuthService, CurrentUser
from .session import SessionRegistry, SessionEvent, session_events
from .mirror import PropertyMirrorService
from .image import ImageService, UploadTracker, upload_tracker
from .listing import ListingService
from .sync import MirrorReconciler
from .error_handler import ErrorHandlerService

__all__ = [
    "AuthService",
    "CurrentUser",
    "SessionRegistry",
    "SessionEvent",
    "session_events",
    "PropertyMirrorService",
    "ImageService",
    "UploadTracker",
    "upload_tracker",
    "ListingService",
    "MirrorReconciler",
    "ErrorHandlerService",
]
