"""Catalog reads: legacy product normalization and product lookups"""

from motor.motor_asyncio import AsyncIOMotorDatabase
from bson import ObjectId
from typing import Optional
import logging

from app.models.product import Product, Category, DEFAULT_SIZE_NAME
from app.utils.validators import validate_object_id

logger = logging.getLogger(__name__)


def normalize_product(doc: dict) -> Product:
    """
    Build a Product from a stored document.

    Older documents carry a single `price` (optionally `originalPrice`,
    `isOnSale` and a plain list of size names). They are converted into the
    `sizes` price list here so the rest of the code only sees one shape.
    """
    doc = dict(doc)
    if "_id" in doc:
        doc["_id"] = str(doc["_id"])
    if "categoryId" not in doc and doc.get("category"):
        doc["categoryId"] = str(doc["category"])

    sizes = doc.get("sizes") or []
    if not sizes or not isinstance(sizes[0], dict):
        price = doc.get("price", 0.0)
        entry = {
            "price": price,
            "originalPrice": doc.get("originalPrice"),
            "onSale": bool(doc.get("isOnSale", False)),
        }
        if sizes:
            doc["sizes"] = [{**entry, "size": str(name)} for name in sizes]
        else:
            doc["sizes"] = [{**entry, "size": DEFAULT_SIZE_NAME}]

    for legacy_field in ("price", "originalPrice", "isOnSale", "category"):
        doc.pop(legacy_field, None)

    return Product(**doc)


def normalize_category(doc: dict) -> Category:
    doc = dict(doc)
    doc["_id"] = str(doc["_id"])
    return Category(**doc)


async def fetch_active_product(db: AsyncIOMotorDatabase, product_id: str) -> Optional[Product]:
    """Active product by id, or None when the id is unknown, malformed or inactive"""
    if not validate_object_id(product_id):
        return None
    doc = await db.products.find_one({"_id": ObjectId(product_id), "active": True})
    if not doc:
        return None
    return normalize_product(doc)
