"""Catalog endpoints: public menu and back-office product/category management"""

from fastapi import APIRouter, Depends, HTTPException, status, Query
from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from bson import ObjectId
from typing import List, Optional
import logging
import re

from app.database import get_database
from app.api.deps import require_admin
from app.core.catalog import normalize_product, normalize_category
from app.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
)
from app.schemas.common import SuccessResponse
from app.utils.validators import validate_object_id

logger = logging.getLogger(__name__)

router = APIRouter()
admin_router = APIRouter()


def product_to_response(doc: dict) -> ProductResponse:
    """Convert a stored product, legacy shapes included, to ProductResponse"""
    product = normalize_product(doc)
    return ProductResponse(
        id=product.id,
        name=product.name,
        description=product.description,
        categoryId=product.categoryId,
        sizes=product.sizes,
        addons=product.addons,
        basePrice=product.base_price,
        highlight=product.highlight,
        imageUrl=product.imageUrl,
        active=product.active,
        orderCount=product.orderCount,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


def category_to_response(doc: dict) -> CategoryResponse:
    category = normalize_category(doc)
    return CategoryResponse(id=category.id, **category.model_dump(exclude={"id"}))


def _object_id_or_400(value: str, label: str) -> ObjectId:
    if not validate_object_id(value):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {label} ID"
        )
    return ObjectId(value)


async def _ensure_category(db: AsyncIOMotorDatabase, category_id: str):
    category_oid = _object_id_or_400(category_id, "category")
    if not await db.categories.find_one({"_id": category_oid}):
        logger.warning(f"Category not found: {category_id}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Category not found"
        )


# Public catalog

@router.get("/categories", response_model=List[CategoryResponse])
async def list_categories(db: AsyncIOMotorDatabase = Depends(get_database)):
    """Active categories in menu order"""
    cursor = db.categories.find({"active": True}).sort("sortOrder", 1)
    categories = await cursor.to_list(length=200)
    return [category_to_response(c) for c in categories]


@router.get("/products", response_model=List[ProductResponse])
async def list_products(
    category: Optional[str] = None,
    highlight: Optional[bool] = None,
    search: Optional[str] = None,
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Active products of the menu.
    Public endpoint - no authentication required.
    """
    query = {"active": True}

    if category:
        query["categoryId"] = category

    if highlight is not None:
        query["highlight"] = highlight

    if search:
        query["name"] = {"$regex": re.escape(search), "$options": "i"}

    cursor = db.products.find(query).sort("name", 1)
    products = await cursor.to_list(length=500)

    return [product_to_response(p) for p in products]


@router.get("/products/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: str,
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Get a single active product by ID.
    Public endpoint - no authentication required.
    """
    product = await db.products.find_one({"_id": _object_id_or_400(product_id, "product"), "active": True})

    if not product:
        logger.info(f"Product not found: {product_id}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )

    return product_to_response(product)


# Back office: products

@admin_router.get("/products", response_model=List[ProductResponse])
async def admin_list_products(
    active: Optional[bool] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    current_user: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """All products, inactive ones included (Admin only)"""
    query = {}
    if active is not None:
        query["active"] = active

    skip = (page - 1) * limit
    cursor = db.products.find(query).sort("created_at", -1).skip(skip).limit(limit)
    products = await cursor.to_list(length=limit)
    return [product_to_response(p) for p in products]


@admin_router.post("/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    product_data: ProductCreate,
    current_user: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Create a new product (Admin only)"""
    if product_data.categoryId:
        await _ensure_category(db, product_data.categoryId)

    product_dict = product_data.model_dump()
    product_dict["orderCount"] = 0
    product_dict["created_at"] = datetime.utcnow()
    product_dict["updated_at"] = datetime.utcnow()

    result = await db.products.insert_one(product_dict)
    logger.info(f"Product '{product_data.name}' created by {current_user['email']}")

    created_product = await db.products.find_one({"_id": result.inserted_id})
    return product_to_response(created_product)


@admin_router.put("/products/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: str,
    product_data: ProductUpdate,
    current_user: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Update a product (Admin only).
    Saving a legacy single-price product stores it in the sizes format.
    """
    product_oid = _object_id_or_400(product_id, "product")

    existing_product = await db.products.find_one({"_id": product_oid})
    if not existing_product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )

    if product_data.categoryId:
        await _ensure_category(db, product_data.categoryId)

    update_dict = product_data.model_dump(exclude_unset=True)
    if "sizes" not in update_dict:
        normalized = normalize_product(existing_product)
        update_dict["sizes"] = [size.model_dump() for size in normalized.sizes]
    update_dict["updated_at"] = datetime.utcnow()

    await db.products.update_one(
        {"_id": product_oid},
        {
            "$set": update_dict,
            "$unset": {"price": "", "originalPrice": "", "isOnSale": ""},
        }
    )

    updated_product = await db.products.find_one({"_id": product_oid})
    return product_to_response(updated_product)


@admin_router.delete("/products/{product_id}", response_model=SuccessResponse)
async def delete_product(
    product_id: str,
    current_user: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Delete a product (Admin only).
    Orders keep their own copy of name and prices, so the document is removed.
    """
    result = await db.products.delete_one({"_id": _object_id_or_400(product_id, "product")})

    if result.deleted_count == 0:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )

    logger.info(f"Product {product_id} deleted by {current_user['email']}")
    return SuccessResponse(message="Product deleted successfully")


# Back office: categories

@admin_router.get("/categories", response_model=List[CategoryResponse])
async def admin_list_categories(
    current_user: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """All categories, inactive ones included (Admin only)"""
    categories = await db.categories.find({}).sort("sortOrder", 1).to_list(length=200)
    return [category_to_response(c) for c in categories]


@admin_router.post("/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    category_data: CategoryCreate,
    current_user: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Create a new category (Admin only)"""
    if await db.categories.find_one({"slug": category_data.slug}):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Category with this slug already exists"
        )

    category_dict = category_data.model_dump()
    category_dict["created_at"] = datetime.utcnow()
    category_dict["updated_at"] = datetime.utcnow()

    result = await db.categories.insert_one(category_dict)
    created_category = await db.categories.find_one({"_id": result.inserted_id})
    return category_to_response(created_category)


@admin_router.put("/categories/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: str,
    category_data: CategoryUpdate,
    current_user: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Update a category (Admin only)"""
    category_oid = _object_id_or_400(category_id, "category")

    if not await db.categories.find_one({"_id": category_oid}):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Category not found"
        )

    update_dict = category_data.model_dump(exclude_unset=True)
    if "slug" in update_dict:
        clash = await db.categories.find_one({"slug": update_dict["slug"], "_id": {"$ne": category_oid}})
        if clash:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Category with this slug already exists"
            )

    update_dict["updated_at"] = datetime.utcnow()
    await db.categories.update_one({"_id": category_oid}, {"$set": update_dict})

    updated_category = await db.categories.find_one({"_id": category_oid})
    return category_to_response(updated_category)


@admin_router.delete("/categories/{category_id}", response_model=SuccessResponse)
async def delete_category(
    category_id: str,
    current_user: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Delete a category (Admin only).
    Refused while any product still references it.
    """
    category_oid = _object_id_or_400(category_id, "category")

    if not await db.categories.find_one({"_id": category_oid}):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Category not found"
        )

    product_count = await db.products.count_documents({"categoryId": category_id})
    if product_count > 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot delete category with {product_count} products"
        )

    await db.categories.delete_one({"_id": category_oid})
    return SuccessResponse(message="Category deleted successfully")
