"""Security utilities: JWT access tokens, magic link tokens and shared secrets"""

from datetime import datetime, timedelta
from typing import Optional
from jose import jwt, JWTError
from app.config import settings
import secrets


def create_access_token(subject: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT for a user

    Args:
        subject: User id stored as the `sub` claim
        role: User role stored as the `role` claim
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    issued_at = datetime.utcnow()
    expire = issued_at + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))

    claims = {"sub": subject, "role": role, "exp": expire, "iat": issued_at}
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> Optional[dict]:
    """Decoded claims of a valid token, or None if it is invalid or expired"""
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Token part of an `Authorization: Bearer <token>` header"""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization[len("Bearer "):].strip() or None


def verify_shared_secret(authorization: Optional[str], expected: str) -> bool:
    """Constant-time check of a bearer header against a shared secret"""
    token = bearer_token(authorization)
    if token is None:
        return False
    return secrets.compare_digest(token.encode(), expected.encode())


def generate_magic_token() -> str:
    """URL-safe random token for magic links"""
    return secrets.token_urlsafe(32)


def get_magic_link_expiry() -> datetime:
    return datetime.utcnow() + timedelta(minutes=settings.magic_link_expire_minutes)
