"""Authentication schemas"""

from pydantic import BaseModel, EmailStr
from typing import Optional
from app.models.user import UserRole


class MagicLinkRequest(BaseModel):
    """Request schema for magic link"""
    email: EmailStr

    class Config:
        json_schema_extra = {
            "example": {
                "email": "cliente@example.com"
            }
        }


class MagicLinkResponse(BaseModel):
    success: bool = True
    message: str = "If the address is registered, a sign-in link was sent"


class VerifyMagicLinkRequest(BaseModel):
    """Request schema for verifying magic link"""
    token: str


class UserProfileResponse(BaseModel):
    """User profile response"""
    id: str
    email: EmailStr
    name: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole
    order_count: int = 0

    class Config:
        json_schema_extra = {
            "example": {
                "id": "507f1f77bcf86cd799439011",
                "email": "cliente@example.com",
                "name": "Maria Silva",
                "phone": "11987654321",
                "role": "customer",
                "order_count": 3
            }
        }


class TokenResponse(BaseModel):
    """JWT token response"""
    success: bool = True
    token: str
    expires_in: int
    user: UserProfileResponse
