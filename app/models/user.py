"""User models"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional
from enum import Enum


class UserRole(str, Enum):
    """User role enumeration"""
    CUSTOMER = "customer"
    ADMIN = "admin"


class User(BaseModel):
    """User model for authentication and authorization"""
    id: Optional[str] = Field(None, alias="_id")
    email: EmailStr
    name: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole = UserRole.CUSTOMER
    active: bool = True
    order_count: int = 0
    last_order_date: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        populate_by_name = True
        use_enum_values = True
        json_schema_extra = {
            "example": {
                "email": "cliente@example.com",
                "name": "Maria Silva",
                "phone": "11987654321",
                "role": "customer",
                "active": True
            }
        }


class MagicLink(BaseModel):
    """Magic link model for passwordless authentication"""
    id: Optional[str] = Field(None, alias="_id")
    email: EmailStr
    token: str
    user_id: str
    used: bool = False
    expires_at: datetime
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        populate_by_name = True
