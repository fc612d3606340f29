"""Order endpoints: public submission, customer history and back-office management"""

from fastapi import APIRouter, Depends, HTTPException, status, Query
from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime, timedelta
from typing import List, Optional
import logging

from app.config import settings
from app.database import get_database
from app.api.deps import get_current_user, get_optional_user, require_admin
from app.core.config_loader import ConfigLoader, get_config_loader
from app.core.errors import NotFound
from app.core.geo import MapboxClient, get_mapbox_client
from app.core.notifications import format_whatsapp_message, whatsapp_link
from app.core.orders import submit_order, get_order, transition_order_status
from app.models.order import Order, OrderSource, OrderStatus
from app.models.user import UserRole
from app.schemas.order import (
    OrderCreate,
    AdminOrderCreate,
    OrderStatusUpdate,
    OrderSubmitResponse,
    OrderResponse,
    WhatsAppMessageResponse,
)
from app.schemas.common import PaginatedResponse
from app.utils.pagination import page_offset, paginate

logger = logging.getLogger(__name__)

router = APIRouter()
admin_router = APIRouter()


def order_to_response(order: dict) -> OrderResponse:
    """Convert database order document to OrderResponse"""
    data = {key: value for key, value in order.items() if key != "_id"}
    return OrderResponse(id=str(order["_id"]), **data)


def whatsapp_summary(doc: dict) -> WhatsAppMessageResponse:
    """WhatsApp message of a stored order and the deep link that opens it for the store"""
    order = Order(**{**doc, "_id": str(doc["_id"])})
    message = format_whatsapp_message(order)

    link = None
    if settings.store_whatsapp_number:
        link = whatsapp_link(settings.store_whatsapp_number, message)
    else:
        logger.warning("Store WhatsApp number not configured")

    return WhatsAppMessageResponse(message=message, link=link)


@router.post("/orders", response_model=OrderSubmitResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: OrderCreate,
    db: AsyncIOMotorDatabase = Depends(get_database),
    loader: ConfigLoader = Depends(get_config_loader),
    mapbox: MapboxClient = Depends(get_mapbox_client),
    current_user: Optional[dict] = Depends(get_optional_user)
):
    """
    Submit an order from the storefront checkout.

    Prices and totals are recomputed from the catalog. Sending the same
    idempotencyKey again returns the first order instead of a new one. The
    response carries the WhatsApp summary for the customer to send.
    """
    if current_user is None:
        logger.warning(f"Anonymous order submission from {order_data.customer.name}")

    result = await submit_order(
        db,
        order_data,
        loader,
        customer=current_user,
        source=OrderSource.WEB,
        mapbox=mapbox,
    )
    doc = await get_order(db, result["orderId"])
    return OrderSubmitResponse(**result, whatsapp=whatsapp_summary(doc))


@router.get("/orders/mine", response_model=List[OrderResponse])
async def list_my_orders(
    limit: int = Query(20, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Orders placed by the signed-in customer, newest first"""
    cursor = db.orders.find({"customer_uid": current_user["_id"]}).sort("created_at", -1).limit(limit)
    orders = await cursor.to_list(length=limit)
    return [order_to_response(o) for o in orders]


@router.get("/orders/{order_id}/whatsapp", response_model=WhatsAppMessageResponse)
async def get_order_whatsapp_message(
    order_id: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    WhatsApp summary of an order.

    Only the customer who placed the order or an admin may read it; for
    anyone else the order does not exist.
    """
    doc = await get_order(db, order_id)
    is_admin = current_user.get("role") == UserRole.ADMIN.value
    if not is_admin and doc.get("customer_uid") != current_user["_id"]:
        raise NotFound("Order not found", ids=[order_id])
    return whatsapp_summary(doc)


# Back office

@admin_router.get("/orders", response_model=PaginatedResponse[OrderResponse])
async def list_orders(
    order_status: Optional[OrderStatus] = Query(None, alias="status"),
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    List orders with optional filters (Admin only).

    `date_to` is inclusive of the whole day when given without a time.
    """
    query = {}

    if order_status:
        query["status"] = order_status.value

    if date_from or date_to:
        created_at = {}
        if date_from:
            created_at["$gte"] = date_from
        if date_to:
            if date_to.hour == 0 and date_to.minute == 0 and date_to.second == 0:
                date_to = date_to + timedelta(days=1)
            created_at["$lt"] = date_to
        query["created_at"] = created_at

    total = await db.orders.count_documents(query)
    cursor = db.orders.find(query).sort("created_at", -1).skip(page_offset(page, limit)).limit(limit)
    orders = await cursor.to_list(length=limit)

    return paginate([order_to_response(o) for o in orders], total, page, limit)


@admin_router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order_detail(
    order_id: str,
    current_user: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Get order details (Admin only)"""
    return order_to_response(await get_order(db, order_id))


@admin_router.patch("/orders/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    status_update: OrderStatusUpdate,
    current_user: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Move an order along its lifecycle (Admin only)"""
    order = await transition_order_status(db, order_id, status_update.status, current_user["email"])
    return order_to_response(order)


@admin_router.post("/orders", response_model=OrderSubmitResponse, status_code=status.HTTP_201_CREATED)
async def create_admin_order(
    order_data: AdminOrderCreate,
    current_user: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database),
    loader: ConfigLoader = Depends(get_config_loader),
    mapbox: MapboxClient = Depends(get_mapbox_client)
):
    """
    Register an order taken by phone or at the counter (Admin only).

    Same pricing rules as the storefront, plus an optional discount; the
    operating schedule is not enforced and the initial status may be chosen.
    """
    if order_data.status and order_data.status not in (OrderStatus.RECEIVED, OrderStatus.PREPARING):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="New orders start as received or preparing"
        )

    result = await submit_order(
        db,
        order_data,
        loader,
        source=OrderSource.ADMIN,
        default_status=order_data.status,
        enforce_schedule=False,
        mapbox=mapbox,
    )
    logger.info(f"Order {result['orderNumber']} registered by {current_user['email']}")
    return OrderSubmitResponse(**result)
