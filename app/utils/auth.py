"""
Authentication utilities for JWT token management and password hashing.

Every token carries the id of the session it was issued for (``sid``), so
ending a session invalidates both its access and refresh tokens.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from passlib.context import CryptContext
from app.config import settings


# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS = "access"
REFRESH = "refresh"
REQUIRED_CLAIMS = ("sub", "email", "sid")


@dataclass(frozen=True)
class TokenPayload:
    """Claims of a verified token."""

    user_id: str
    email: str
    session_id: str
    exp: datetime

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "TokenPayload":
        return cls(
            user_id=claims["sub"],
            email=claims["email"],
            session_id=claims["sid"],
            exp=datetime.fromtimestamp(claims["exp"], tz=timezone.utc)
        )


def _issue(token_type: str, user_id: str, email: str, session_id: str, lifetime: timedelta) -> str:
    issued_at = datetime.now(timezone.utc)
    claims = {
        "sub": user_id,
        "email": email,
        "sid": session_id,
        "type": token_type,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(
    user_id: str,
    email: str,
    session_id: str,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a short-lived access token for a session.

    Args:
        user_id: User's document id
        email: User's email address
        session_id: Id of the session document the token belongs to
        expires_delta: Lifetime override, defaults to the configured minutes

    Returns:
        Encoded JWT
    """
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    return _issue(ACCESS, user_id, email, session_id, lifetime)


def create_refresh_token(
    user_id: str,
    email: str,
    session_id: str,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create a long-lived refresh token for a session."""
    lifetime = expires_delta or timedelta(days=settings.jwt_refresh_token_expire_days)
    return _issue(REFRESH, user_id, email, session_id, lifetime)


def verify_token(token: str, token_type: str = ACCESS) -> TokenPayload:
    """
    Decode a token and check it is of the expected type.

    Args:
        token: Encoded JWT
        token_type: ``"access"`` or ``"refresh"``

    Returns:
        Decoded claims

    Raises:
        ExpiredSignatureError: If the token has expired
        JWTError: If the token is malformed, of another type, or lacks claims
    """
    claims = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])

    if claims.get("type") != token_type:
        raise JWTError(f"Expected a {token_type} token")
    if not all(claims.get(name) for name in REQUIRED_CLAIMS):
        raise JWTError("Token is missing required claims")

    return TokenPayload.from_claims(claims)


def hash_password(password: str) -> str:
    """
    Hash a password with bcrypt.

    Raises:
        ValueError: If the password is shorter than 8 characters
    """
    if not password or len(password) < 8:
        raise ValueError("Password must be at least 8 characters long")
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)
