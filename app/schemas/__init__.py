"""
Pydantic schemas for request/response validation.
"""

# Authentication schemas
from .auth import (
    SignupRequest,
    LoginRequest,
    RefreshTokenRequest,
    UserProfile,
    AccessTokenResponse,
    AuthResponse,
)

# Relational mirror schemas
from .property import (
    PropertyFields,
    PropertyMirrorCreate,
    PropertyMirrorUpdate,
    PropertyRecord,
    PropertyUpdatedResponse,
    PropertyDeletedResponse,
    ShortlistRequest,
    ShortlistRecord,
    ShortlistWithProperty,
    ShortlistCreatedResponse,
    ShortlistedPropertiesResponse,
)

# Listing screen schemas
from .listing import (
    ListingForm,
    ListingDetail,
    ListingResponse,
    ContactResponse,
    ListingOptionsResponse,
    ImageUploadResponse,
)

__all__ = [
    # Authentication
    "SignupRequest",
    "LoginRequest",
    "RefreshTokenRequest",
    "UserProfile",
    "AccessTokenResponse",
    "AuthResponse",

    # Mirror
    "PropertyFields",
    "PropertyMirrorCreate",
    "PropertyMirrorUpdate",
    "PropertyRecord",
    "PropertyUpdatedResponse",
    "PropertyDeletedResponse",
    "ShortlistRequest",
    "ShortlistRecord",
    "ShortlistWithProperty",
    "ShortlistCreatedResponse",
    "ShortlistedPropertiesResponse",

    # Listings
    "ListingForm",
    "ListingDetail",
    "ListingResponse",
    "ContactResponse",
    "ListingOptionsResponse",
    "ImageUploadResponse",
]
