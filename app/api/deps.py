"""FastAPI dependencies for authentication and database access"""

from fastapi import Depends, HTTPException, status, Header
from motor.motor_asyncio import AsyncIOMotorDatabase
from app.config import settings
from app.database import get_database
from app.core.security import bearer_token, verify_token, verify_shared_secret
from app.models.user import UserRole
from app.utils.validators import validate_object_id
from bson import ObjectId
from typing import Optional
import logging

logger = logging.getLogger(__name__)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _user_from_token(token: str, db: AsyncIOMotorDatabase) -> dict:
    payload = verify_token(token)
    if not payload:
        raise _unauthorized("Invalid or expired token")

    user_id = payload.get("sub")
    if not user_id or not validate_object_id(user_id):
        raise _unauthorized("Invalid token payload")

    user = await db.users.find_one({"_id": ObjectId(user_id)})
    if not user:
        raise _unauthorized("User not found")

    if not user.get("active", True):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    # Convert ObjectId to string for JSON serialization
    user["_id"] = str(user["_id"])
    return user


async def get_current_user(
    authorization: Optional[str] = Header(None),
    db: AsyncIOMotorDatabase = Depends(get_database)
) -> dict:
    """
    Dependency to get current authenticated user from JWT token

    Raises:
        HTTPException: 401 if the token is missing or invalid, 403 if the
            account is inactive
    """
    token = bearer_token(authorization)
    if token is None:
        raise _unauthorized("Not authenticated")
    return await _user_from_token(token, db)


async def require_admin(
    current_user: dict = Depends(get_current_user)
) -> dict:
    """Dependency to require the admin role"""
    if current_user.get("role") != UserRole.ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions. Admin role required.",
        )
    return current_user


async def get_optional_user(
    authorization: Optional[str] = Header(None),
    db: AsyncIOMotorDatabase = Depends(get_database)
) -> Optional[dict]:
    """
    Dependency for endpoints open to anonymous callers.

    Returns None without a bearer token. A token that is present but
    invalid is still rejected with 401.
    """
    token = bearer_token(authorization)
    if token is None:
        return None
    return await _user_from_token(token, db)


async def require_webhook_token(
    authorization: Optional[str] = Header(None),
) -> None:
    """Shared-secret check of the inbound webhook"""
    expected = settings.webhook_secret_token
    if not expected:
        logger.warning("WEBHOOK_SECRET_TOKEN is not configured, accepting unauthenticated webhook")
        return

    if not verify_shared_secret(authorization, expected):
        raise _unauthorized("Invalid or missing webhook token")
