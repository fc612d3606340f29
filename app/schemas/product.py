"""Product and category schemas for CRUD operations"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from app.models.product import SizePrice, Addon


class ProductCreate(BaseModel):
    """Schema for creating a new product"""
    name: str = Field(min_length=1)
    description: Optional[str] = None
    categoryId: Optional[str] = None
    sizes: List[SizePrice] = Field(min_length=1)
    addons: List[Addon] = []
    highlight: bool = False
    imageUrl: Optional[str] = None
    active: bool = True

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Torta de Limão",
                "description": "Massa amanteigada e merengue",
                "categoryId": "507f1f77bcf86cd799439011",
                "sizes": [
                    {"size": "Fatia", "price": 12.0},
                    {"size": "Inteira", "price": 75.0}
                ],
                "addons": [{"name": "Chantilly", "price": 2.5}],
                "highlight": False,
                "active": True
            }
        }


class ProductUpdate(BaseModel):
    """Schema for updating a product"""
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    categoryId: Optional[str] = None
    sizes: Optional[List[SizePrice]] = Field(None, min_length=1)
    addons: Optional[List[Addon]] = None
    highlight: Optional[bool] = None
    imageUrl: Optional[str] = None
    active: Optional[bool] = None


class ProductResponse(BaseModel):
    """Schema for product response"""
    id: str
    name: str
    description: Optional[str] = None
    categoryId: Optional[str] = None
    sizes: List[SizePrice]
    addons: List[Addon]
    basePrice: float
    highlight: bool
    imageUrl: Optional[str] = None
    active: bool
    orderCount: int
    created_at: datetime
    updated_at: datetime


class CategoryCreate(BaseModel):
    """Schema for creating a new category"""
    name: str = Field(min_length=1)
    slug: str = Field(min_length=1, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    icon: Optional[str] = None
    sortOrder: int = 0
    active: bool = True


class CategoryUpdate(BaseModel):
    """Schema for updating a category"""
    name: Optional[str] = Field(None, min_length=1)
    slug: Optional[str] = Field(None, min_length=1, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    icon: Optional[str] = None
    sortOrder: Optional[int] = None
    active: Optional[bool] = None


class CategoryResponse(BaseModel):
    """Schema for category response"""
    id: str
    name: str
    slug: str
    icon: Optional[str] = None
    sortOrder: int
    active: bool
    created_at: datetime
    updated_at: datetime
