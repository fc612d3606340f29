"""Product and category models"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List


DEFAULT_SIZE_NAME = "Único"


class SizePrice(BaseModel):
    """Price of a product in one size"""
    size: str = DEFAULT_SIZE_NAME
    price: float = Field(ge=0)
    originalPrice: Optional[float] = Field(None, ge=0)
    onSale: bool = False


class Addon(BaseModel):
    """Optional extra that can be added to a product"""
    name: str
    price: float = Field(default=0.0, ge=0)
    maxQuantity: Optional[int] = Field(None, ge=1)


class Product(BaseModel):
    """Catalog product"""
    id: Optional[str] = Field(None, alias="_id")
    name: str
    description: Optional[str] = None
    categoryId: Optional[str] = None
    sizes: List[SizePrice] = Field(min_length=1)
    addons: List[Addon] = []
    highlight: bool = False
    imageUrl: Optional[str] = None
    active: bool = True
    orderCount: int = 0
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "name": "Bolo de Cenoura",
                "description": "Com cobertura de chocolate",
                "categoryId": "507f1f77bcf86cd799439011",
                "sizes": [
                    {"size": "Fatia", "price": 9.5},
                    {"size": "Inteiro", "price": 58.0, "originalPrice": 65.0, "onSale": True}
                ],
                "addons": [{"name": "Calda extra", "price": 3.0, "maxQuantity": 2}],
                "highlight": True,
                "imageUrl": "https://example.com/bolo.jpg",
                "active": True
            }
        }

    def size_price(self, size: Optional[str]) -> Optional[SizePrice]:
        """Price entry for a size; without a size the first entry applies"""
        if not size:
            return self.sizes[0]
        for entry in self.sizes:
            if entry.size == size:
                return entry
        return None

    def addon(self, name: str) -> Optional[Addon]:
        for entry in self.addons:
            if entry.name == name:
                return entry
        return None

    @property
    def base_price(self) -> float:
        return min(entry.price for entry in self.sizes)


class Category(BaseModel):
    """Product category"""
    id: Optional[str] = Field(None, alias="_id")
    name: str
    slug: str
    icon: Optional[str] = None
    sortOrder: int = 0
    active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "name": "Bolos & Tortas",
                "slug": "bolos-tortas",
                "icon": "cake",
                "sortOrder": 1,
                "active": True
            }
        }
