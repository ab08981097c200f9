"""
Authentication service for sign-up, login, token management, and profiles.
User records live in the ``users`` collection of the primary store.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple
from app.config import settings
from app.documents import DocumentStore, Document, FieldFilter
from app.schemas.auth import SignupRequest
from app.services.session import SessionRegistry
from app.utils.auth import (
    create_access_token,
    create_refresh_token,
    verify_token,
    hash_password,
    verify_password,
    TokenPayload,
)
from app.utils.exceptions import (
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    InactiveUserError,
    NotFoundError,
    DuplicateResourceError,
)
from jose import ExpiredSignatureError, JWTError
import logging

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"


@dataclass(frozen=True)
class CurrentUser:
    """The signed-in user behind a request."""

    id: str
    email: str
    name: str
    session_id: str


@dataclass(frozen=True)
class IssuedTokens:
    access_token: str
    refresh_token: str
    expires_in: int


def profile_from_document(document: Document) -> Dict[str, Any]:
    """Public profile fields of a user document."""
    return {
        "id": document.id,
        "name": document.data.get("name", ""),
        "email": document.data.get("email", ""),
        "mobile": document.data.get("mobile", ""),
        "created_at": document.data.get("createdAt"),
    }


class AuthService:
    """
    Authentication service for managing users, sessions, and tokens.
    """

    def __init__(self, store: DocumentStore, sessions: SessionRegistry):
        self.store = store
        self.sessions = sessions

    async def get_user_by_email(self, email: str) -> Optional[Document]:
        """Find a user document by email; returns None when there is none."""
        matches = await self.store.query(
            USERS_COLLECTION, [FieldFilter("email", "==", email.lower().strip())]
        )
        return matches[0] if matches else None

    async def get_user_by_id(self, user_id: str) -> Document:
        """
        Get a user document by id.

        Raises:
            NotFoundError: If the user does not exist
        """
        try:
            document = await self.store.get(USERS_COLLECTION, user_id)
        except ValueError:
            document = None
        if document is None:
            raise NotFoundError("User", user_id)
        return document

    async def signup(self, signup: SignupRequest) -> Tuple[Document, IssuedTokens]:
        """
        Register a user and sign them in.

        Args:
            signup: Sign-up form

        Returns:
            Tuple of (user document, issued tokens)

        Raises:
            DuplicateResourceError: If the email is already registered
        """
        if await self.get_user_by_email(signup.email) is not None:
            logger.warning(f"Sign-up attempt with registered email: {signup.email}")
            raise DuplicateResourceError("User", signup.email)

        user = await self.store.add(USERS_COLLECTION, {
            "name": signup.name,
            "email": signup.email,
            "mobile": signup.mobile,
            "hashedPassword": hash_password(signup.password),
            "isActive": True,
            "createdAt": datetime.now(timezone.utc).isoformat(),
        })
        logger.info(f"User created: {signup.email} (ID: {user.id})")

        tokens = await self._start_session(user)
        return user, tokens

    async def authenticate_user(self, email: str, password: str) -> Document:
        """
        Check email and password.

        Raises:
            InvalidCredentialsError: If credentials are invalid
            InactiveUserError: If the account is inactive
        """
        user = await self.get_user_by_email(email)
        if user is None or not verify_password(password, user.data.get("hashedPassword", "")):
            logger.warning(f"Failed authentication attempt for email: {email}")
            raise InvalidCredentialsError()

        if not user.data.get("isActive", True):
            raise InactiveUserError()

        logger.info(f"User authenticated successfully: {email}")
        return user

    async def login(self, email: str, password: str) -> Tuple[Document, IssuedTokens]:
        """
        Authenticate a user and open a session.

        Returns:
            Tuple of (user document, issued tokens)
        """
        user = await self.authenticate_user(email, password)
        tokens = await self._start_session(user)
        return user, tokens

    async def _start_session(self, user: Document) -> IssuedTokens:
        session_id = await self.sessions.open(user.id)
        email = user.data["email"]
        return IssuedTokens(
            access_token=create_access_token(user.id, email, session_id),
            refresh_token=create_refresh_token(user.id, email, session_id),
            expires_in=settings.access_token_expire_minutes * 60,
        )

    async def _resolve(self, token: str, token_type: str) -> Tuple[TokenPayload, Document]:
        try:
            payload = verify_token(token, token_type=token_type)
        except ExpiredSignatureError:
            raise TokenExpiredError()
        except JWTError as e:
            raise InvalidTokenError(str(e))

        if not await self.sessions.is_active(payload.session_id, payload.user_id):
            raise InvalidTokenError("Session has ended")

        try:
            user = await self.get_user_by_id(payload.user_id)
        except NotFoundError:
            raise InvalidTokenError("User no longer exists")

        if not user.data.get("isActive", True):
            raise InactiveUserError()

        return payload, user

    async def refresh_access_token(self, refresh_token: str) -> IssuedTokens:
        """
        Issue a new access token from a refresh token of a live session.

        Raises:
            InvalidTokenError: If the token is invalid or its session ended
            TokenExpiredError: If the token is expired
        """
        payload, user = await self._resolve(refresh_token, "refresh")
        return IssuedTokens(
            access_token=create_access_token(user.id, user.data["email"], payload.session_id),
            refresh_token=refresh_token,
            expires_in=settings.access_token_expire_minutes * 60,
        )

    async def get_current_user(self, token: str) -> CurrentUser:
        """
        Resolve the user behind an access token.

        Raises:
            InvalidTokenError: If the token is invalid or its session ended
            TokenExpiredError: If the token is expired
            InactiveUserError: If the account is inactive
        """
        payload, user = await self._resolve(token, "access")
        return CurrentUser(
            id=user.id,
            email=user.data["email"],
            name=user.data.get("name", ""),
            session_id=payload.session_id,
        )

    async def logout(self, user: CurrentUser) -> None:
        """End the session the current request was made with."""
        await self.sessions.close(user.session_id)
        logger.info(f"User logged out: {user.email}")

    async def get_profile(self, user_id: str) -> Dict[str, Any]:
        """
        Get a user's public profile.

        Raises:
            NotFoundError: If the user does not exist
        """
        return profile_from_document(await self.get_user_by_id(user_id))
