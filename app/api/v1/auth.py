"""Authentication endpoints: passwordless magic link sign-in"""

from fastapi import APIRouter, Depends, HTTPException, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
import logging

from aiosmtplib import SMTPException

from app.config import settings
from app.database import get_database
from app.api.deps import get_current_user
from app.core.notifications import dispatch_event
from app.core.security import (
    create_access_token,
    generate_magic_token,
    get_magic_link_expiry
)
from app.core.email import send_magic_link_email
from app.models.user import UserRole
from app.schemas.auth import (
    MagicLinkRequest,
    MagicLinkResponse,
    VerifyMagicLinkRequest,
    TokenResponse,
    UserProfileResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def user_to_profile(user: dict) -> UserProfileResponse:
    return UserProfileResponse(
        id=str(user["_id"]),
        email=user["email"],
        name=user.get("name"),
        phone=user.get("phone"),
        role=user.get("role", UserRole.CUSTOMER.value),
        order_count=user.get("order_count", 0),
    )


@router.post("/magic-link", response_model=MagicLinkResponse)
async def request_magic_link(
    request: MagicLinkRequest,
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Request a sign-in link.
    Unknown addresses get a customer account; admin accounts are promoted in the database.
    """
    email = request.email.lower()

    user = await db.users.find_one({"email": email})

    if not user:
        now = datetime.utcnow()
        user_data = {
            "email": email,
            "name": None,
            "phone": None,
            "role": UserRole.CUSTOMER.value,
            "active": True,
            "order_count": 0,
            "created_at": now,
            "updated_at": now,
        }
        result = await db.users.insert_one(user_data)
        user_id = result.inserted_id
        logger.info(f"Customer account created for {email}")
        await dispatch_event(db, "customer.created", {"id": str(user_id), "email": email})
    else:
        user_id = user["_id"]

    if user and not user.get("active", True):
        logger.warning(f"Magic link requested for inactive account {email}")
        return MagicLinkResponse()

    token = generate_magic_token()
    await db.magic_links.insert_one({
        "email": email,
        "token": token,
        "user_id": user_id,
        "used": False,
        "expires_at": get_magic_link_expiry(),
        "created_at": datetime.utcnow(),
    })

    try:
        await send_magic_link_email(email, token)
    except SMTPException:
        # already logged by the email service; the link stays valid for a retry
        pass

    return MagicLinkResponse()


@router.post("/verify", response_model=TokenResponse)
async def verify_magic_link(
    request: VerifyMagicLinkRequest,
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Exchange a magic link token for a JWT access token"""
    magic_link = await db.magic_links.find_one({"token": request.token})

    if not magic_link:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid magic link"
        )

    if magic_link.get("used", False):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Magic link already used"
        )

    if datetime.utcnow() > magic_link["expires_at"]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Magic link expired"
        )

    await db.magic_links.update_one(
        {"_id": magic_link["_id"]},
        {"$set": {"used": True}}
    )

    user = await db.users.find_one({"_id": magic_link["user_id"]})

    if not user or not user.get("active", True):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    role = user.get("role", UserRole.CUSTOMER.value)
    access_token = create_access_token(str(user["_id"]), role)
    logger.info(f"User {user['email']} signed in as {role}")

    return TokenResponse(
        token=access_token,
        expires_in=settings.jwt_expire_minutes * 60,
        user=user_to_profile(user),
    )


@router.get("/me", response_model=UserProfileResponse)
async def get_current_user_profile(
    current_user: dict = Depends(get_current_user)
):
    """Get current authenticated user's profile"""
    return user_to_profile(current_user)
