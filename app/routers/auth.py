"""
Authentication API endpoints for sign-up, login, token refresh, profile, and logout.
Provides JWT-based authentication bound to server-side sessions.
"""

from fastapi import APIRouter, Depends, Response, status
from app.services.auth import AuthService, CurrentUser, IssuedTokens, profile_from_document
from app.documents import Document
from app.schemas.auth import (
    SignupRequest,
    LoginRequest,
    RefreshTokenRequest,
    AccessTokenResponse,
    AuthResponse,
    UserProfile,
)
from app.utils.dependencies import get_auth_service, get_current_user


router = APIRouter(prefix="/auth", tags=["Authentication"])


def _auth_response(user: Document, tokens: IssuedTokens) -> AuthResponse:
    return AuthResponse(
        user=UserProfile.model_validate(profile_from_document(user)),
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        token_type="bearer",
        expires_in=tokens.expires_in
    )


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Sign up",
    description="Create an account with name, email, mobile and password, and sign in"
)
async def signup(
    signup_data: SignupRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> AuthResponse:
    """
    Register a user and return JWT tokens.

    Raises:
        DuplicateResourceError: If the email is already registered
    """
    user, tokens = await auth_service.signup(signup_data)
    return _auth_response(user, tokens)


@router.post(
    "/login",
    response_model=AuthResponse,
    status_code=status.HTTP_200_OK,
    summary="User login",
    description="Authenticate user with email and password, returns JWT tokens"
)
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> AuthResponse:
    """
    Authenticate user and return JWT tokens.

    Args:
        login_data: Login credentials (email and password)
        auth_service: Authentication service

    Returns:
        Login response with user profile and JWT tokens

    Raises:
        InvalidCredentialsError: If credentials are invalid
        InactiveUserError: If user account is inactive
    """
    user, tokens = await auth_service.login(
        email=login_data.email,
        password=login_data.password
    )
    return _auth_response(user, tokens)


@router.post(
    "/refresh",
    response_model=AccessTokenResponse,
    status_code=status.HTTP_200_OK,
    summary="Refresh access token",
    description="Generate new access token using refresh token"
)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> AccessTokenResponse:
    """
    Create new access token from refresh token.

    Raises:
        InvalidTokenError: If refresh token is invalid or its session ended
        TokenExpiredError: If refresh token is expired
    """
    tokens = await auth_service.refresh_access_token(refresh_data.refresh_token)
    return AccessTokenResponse(
        access_token=tokens.access_token,
        token_type="bearer",
        expires_in=tokens.expires_in
    )


@router.get(
    "/me",
    response_model=UserProfile,
    status_code=status.HTTP_200_OK,
    summary="Get current user",
    description="Profile of the signed-in user (name, email, mobile)"
)
async def get_current_user_info(
    current_user: CurrentUser = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> UserProfile:
    """Get the signed-in user's profile."""
    return UserProfile.model_validate(await auth_service.get_profile(current_user.id))


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Logout",
    description="End the current session; its tokens stop working"
)
async def logout(
    current_user: CurrentUser = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> Response:
    """Sign the current session out."""
    await auth_service.logout(current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
