"""
Order aggregate builder and order status lifecycle.

Orders are always priced on the server: client unit prices and totals are
display hints, kept only under `declared_totals` for auditing. The delivery fee
comes from a fresh route quote, and only staff orders may carry a discount.
"""

from motor.motor_asyncio import AsyncIOMotorDatabase
from bson import ObjectId
from collections import Counter
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union
import asyncio
import logging
import secrets

from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.core.catalog import fetch_active_product
from app.core.config_loader import ConfigLoader
from app.core.delivery import quote_for_coordinates
from app.core.errors import (
    ValidationFailed,
    NotFound,
    AddressNotValidated,
    ClosedForOrders,
    InvalidStatusTransition,
)
from app.core.geo import MapboxClient
from app.core.notifications import notify_order_created, dispatch_event
from app.core.scheduling import (
    store_now,
    decide,
    check_eligibility,
    validate_schedule_selection,
)
from app.models.order import (
    Order,
    OrderItem,
    OrderTotals,
    OrderStatus,
    OrderType,
    OrderSource,
    PaymentMethod,
    CustomerInfo,
    StatusChange,
)
from app.schemas.order import OrderCreate, AdminOrderCreate
from app.utils.validators import validate_object_id, parse_money

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

ALLOWED_TRANSITIONS = {
    OrderStatus.RECEIVED.value: {OrderStatus.PREPARING.value, OrderStatus.CANCELED.value},
    OrderStatus.SCHEDULED.value: {OrderStatus.PREPARING.value, OrderStatus.CANCELED.value},
    OrderStatus.PREPARING.value: {OrderStatus.OUT_FOR_DELIVERY.value, OrderStatus.CANCELED.value},
    OrderStatus.OUT_FOR_DELIVERY.value: {OrderStatus.DELIVERED.value, OrderStatus.CANCELED.value},
    OrderStatus.DELIVERED.value: set(),
    OrderStatus.CANCELED.value: set(),
}

STATUS_EVENTS = {
    OrderStatus.CANCELED.value: "order.canceled",
    OrderStatus.DELIVERED.value: "order.delivered",
}


def generate_order_number() -> str:
    """Generate unique order number"""
    day = store_now().strftime("%Y%m%d")
    random_suffix = secrets.token_hex(4).upper()
    return f"PED-{day}-{random_suffix}"


def _money(value: Decimal) -> float:
    return float(value.quantize(CENT, rounding=ROUND_HALF_UP))


def _field_path(location: tuple) -> str:
    return ".".join(str(part) for part in location)


def parse_order_payload(raw: dict) -> OrderCreate:
    """
    Validate a raw order payload.

    Raises:
        ValidationFailed: with one message per offending field
    """
    try:
        return OrderCreate(**raw)
    except ValidationError as e:
        fields = {_field_path(err["loc"]) or "body": err["msg"] for err in e.errors()}
        raise ValidationFailed("Invalid order data", fields)


def can_transition(current: str, new: str) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, set())


def _existing_submission(doc: dict) -> dict:
    return {
        "orderId": str(doc["_id"]),
        "orderNumber": doc["order_number"],
        "status": doc["status"],
        "total": doc["totals"]["total"],
        "duplicate": True,
    }


async def _price_items(db: AsyncIOMotorDatabase, payload: OrderCreate) -> list:
    """Rebuild every line from the catalog; all lookups run concurrently"""
    products = await asyncio.gather(
        *(fetch_active_product(db, item.productId) for item in payload.lineItems)
    )

    missing = [
        item.productId
        for item, product in zip(payload.lineItems, products)
        if product is None
    ]
    if missing:
        for product_id in missing:
            logger.warning(f"Order rejected, product not found: {product_id}")
        raise NotFound(
            "Some products in your cart are no longer available",
            ids=missing,
            fields={
                f"lineItems.{i}.productId": "Product not found"
                for i, product in enumerate(products)
                if product is None
            },
        )

    errors = {}
    items = []
    for i, (item, product) in enumerate(zip(payload.lineItems, products)):
        size = product.size_price(item.selectedSize)
        if size is None:
            errors[f"lineItems.{i}.selectedSize"] = f"Size '{item.selectedSize}' is not available for {product.name}"
            continue

        unit_price = Decimal(str(size.price))
        addon_counts = Counter(item.selectedAddons)
        for name, count in addon_counts.items():
            addon = product.addon(name)
            if addon is None:
                errors[f"lineItems.{i}.selectedAddons"] = f"Add-on '{name}' is not available for {product.name}"
                break
            if addon.maxQuantity is not None and count > addon.maxQuantity:
                errors[f"lineItems.{i}.selectedAddons"] = (
                    f"Add-on '{name}' can be added at most {addon.maxQuantity} times"
                )
                break
            unit_price += Decimal(str(addon.price)) * count

        description = ", ".join(
            f"{count}x {name}" if count > 1 else name
            for name, count in addon_counts.items()
        )
        items.append((item, product, unit_price, description or None))

    if errors:
        raise ValidationFailed("Invalid order items", errors)

    return [
        OrderItem(
            product_id=product.id,
            name=product.name,
            quantity=item.quantity,
            selected_size=item.selectedSize or product.sizes[0].size,
            selected_addons=list(item.selectedAddons),
            selected_addons_description=description,
            notes=item.notes,
            unit_price=_money(unit_price),
            line_subtotal=_money(unit_price * item.quantity),
        )
        for item, product, unit_price, description in items
    ]


async def _quote_delivery_fee(
    db: AsyncIOMotorDatabase,
    payload: OrderCreate,
    loader: ConfigLoader,
    mapbox: Optional[MapboxClient],
) -> Decimal:
    if payload.orderType == OrderType.PICKUP:
        return Decimal(0)

    destination = payload.deliveryAddress.coordinates
    if destination is None:
        raise AddressNotValidated(
            "Select your address on the map so we can calculate the delivery fee",
            {"deliveryAddress": "Address has no coordinates"},
        )

    delivery = await loader.get_delivery_config(db)
    quote = await quote_for_coordinates(destination, delivery, mapbox or MapboxClient())
    return Decimal(str(quote.fee))


async def _check_ordering_window(
    db: AsyncIOMotorDatabase,
    payload: OrderCreate,
    loader: ConfigLoader,
    now: datetime,
):
    schedule = await loader.get_schedule_config(db)
    decision = decide(now, schedule)
    selection = payload.scheduleSelection

    if selection is None and decision.closed:
        raise ClosedForOrders("The store is not accepting orders right now")

    errors = check_eligibility(decision, selection)
    if not errors and selection is not None:
        errors = validate_schedule_selection(schedule, selection, now.date())
    if errors:
        raise ValidationFailed("Invalid schedule selection", errors)

    delivery = await loader.get_delivery_config(db)
    if payload.orderType == OrderType.DELIVERY and not delivery.deliveryEnabled:
        raise ValidationFailed("Delivery is not available", {"orderType": "Delivery is disabled"})
    if payload.orderType == OrderType.PICKUP and not delivery.pickupEnabled:
        raise ValidationFailed("Pickup is not available", {"orderType": "Pickup is disabled"})


async def submit_order(
    db: AsyncIOMotorDatabase,
    payload: Union[OrderCreate, dict],
    loader: ConfigLoader,
    customer: Optional[dict] = None,
    source: OrderSource = OrderSource.WEB,
    default_status: Optional[OrderStatus] = None,
    enforce_schedule: bool = True,
    now: Optional[datetime] = None,
    mapbox: Optional[MapboxClient] = None,
) -> dict:
    """
    Validate, price and persist a new order.

    Nothing is written unless every check passes. A repeated idempotency key
    returns the order created by the first submission with duplicate=True.

    Raises:
        ValidationFailed: malformed payload, unknown size or add-on, change
            below the total, or a schedule selection the store does not accept
        NotFound: a line references a missing or inactive product
        ClosedForOrders: no immediate or scheduled ordering is possible now
        AddressNotValidated: the delivery address could not be routed
        OutOfServiceArea: the delivery address is beyond the service area
    """
    if isinstance(payload, dict):
        payload = parse_order_payload(payload)

    if payload.idempotencyKey:
        existing = await db.orders.find_one({"idempotency_key": payload.idempotencyKey})
        if existing:
            logger.info(f"Duplicate submission for order {existing['order_number']}")
            return _existing_submission(existing)

    now = now or store_now()
    if enforce_schedule:
        await _check_ordering_window(db, payload, loader, now)

    items = await _price_items(db, payload)

    items_subtotal = sum((Decimal(str(item.line_subtotal)) for item in items), Decimal(0))
    delivery_fee = await _quote_delivery_fee(db, payload, loader, mapbox)
    discounts = Decimal(0)
    if isinstance(payload, AdminOrderCreate):
        discounts = min(Decimal(str(payload.discount)), items_subtotal)
    total = items_subtotal + delivery_fee - discounts

    change_due = None
    if payload.paymentMethod == PaymentMethod.CASH and payload.changeDue not in (None, ""):
        amount = parse_money(payload.changeDue)
        if amount is None:
            raise ValidationFailed("Invalid change amount", {"changeDue": "Change must be a number"})
        if amount < total:
            raise ValidationFailed(
                "Invalid change amount",
                {"changeDue": f"Change must be at least the order total (R$ {_money(total):.2f})"},
            )
        change_due = _money(amount)

    if payload.scheduleSelection:
        status = OrderStatus.SCHEDULED
    else:
        status = default_status or OrderStatus.RECEIVED

    actor = customer["email"] if customer else source.value
    created_at = datetime.utcnow()
    order = Order(
        order_number=generate_order_number(),
        customer=CustomerInfo(name=payload.customer.name, phone=payload.customer.phone),
        customer_uid=customer["_id"] if customer else None,
        order_type=payload.orderType,
        delivery_address=payload.deliveryAddress if payload.orderType == OrderType.DELIVERY else None,
        items=items,
        payment_method=payload.paymentMethod,
        change_due=change_due,
        notes=payload.notes,
        totals=OrderTotals(
            items_subtotal=_money(items_subtotal),
            delivery_fee=_money(delivery_fee),
            discounts=_money(discounts),
            total=_money(total),
        ),
        declared_totals=payload.declaredTotals.model_dump(),
        status=status,
        schedule_selection=payload.scheduleSelection,
        idempotency_key=payload.idempotencyKey,
        source=source,
        status_history=[StatusChange(status=status, at=created_at, by=actor)],
        created_at=created_at,
        updated_at=created_at,
        updated_by=actor,
    )

    doc = order.model_dump(exclude={"id"})
    if doc["idempotency_key"] is None:
        # the unique index is sparse, so the field must be absent rather than null
        doc.pop("idempotency_key")

    try:
        result = await db.orders.insert_one(doc)
    except DuplicateKeyError:
        existing = await db.orders.find_one({"idempotency_key": payload.idempotencyKey})
        if existing is None:
            raise
        logger.info(f"Concurrent duplicate submission for order {existing['order_number']}")
        return _existing_submission(existing)

    order_id = str(result.inserted_id)
    logger.info(f"Order {order.order_number} created ({order_id}), total R$ {order.totals.total:.2f}")

    try:
        await _record_side_effects(db, order, customer)
    except PyMongoError as e:
        logger.error(f"Failed to update counters for order {order.order_number}: {e}")

    order_data = {"id": order_id, **order.model_dump(mode="json", exclude={"id"})}
    await asyncio.gather(
        notify_order_created(order_data),
        dispatch_event(db, "order.created", order_data),
    )

    return {
        "orderId": order_id,
        "orderNumber": order.order_number,
        "status": order.status,
        "total": order.totals.total,
        "duplicate": False,
    }


async def _record_side_effects(db: AsyncIOMotorDatabase, order: Order, customer: Optional[dict]):
    """Product popularity and customer counters; the order is already committed"""
    for item in order.items:
        await db.products.update_one(
            {"_id": ObjectId(item.product_id)},
            {"$inc": {"orderCount": item.quantity}},
        )

    if customer:
        await db.users.update_one(
            {"_id": ObjectId(customer["_id"])},
            {
                "$inc": {"order_count": 1},
                "$set": {"last_order_date": order.created_at},
            },
        )


async def get_order(db: AsyncIOMotorDatabase, order_id: str) -> dict:
    """
    Raises:
        NotFound: unknown or malformed order id
    """
    if not validate_object_id(order_id):
        logger.warning(f"Invalid order id: {order_id}")
        raise NotFound("Order not found", ids=[order_id])

    order = await db.orders.find_one({"_id": ObjectId(order_id)})
    if not order:
        logger.warning(f"Order not found: {order_id}")
        raise NotFound("Order not found", ids=[order_id])
    return order


async def transition_order_status(
    db: AsyncIOMotorDatabase,
    order_id: str,
    new_status: Union[OrderStatus, str],
    actor: str,
) -> dict:
    """
    Move an order along its lifecycle and return the updated document.

    received|scheduled -> preparing -> out-for-delivery -> delivered, with
    canceled reachable from every state before delivered. Setting the
    current status again is a no-op.

    Raises:
        NotFound: unknown order id
        InvalidStatusTransition: the lifecycle does not allow the change
    """
    new_status = OrderStatus(new_status).value
    order = await get_order(db, order_id)
    current = order["status"]

    if current == new_status:
        return order

    if not can_transition(current, new_status):
        raise InvalidStatusTransition(
            f"Cannot change order {order['order_number']} from '{current}' to '{new_status}'",
            {"status": f"Allowed from '{current}': {', '.join(sorted(ALLOWED_TRANSITIONS[current])) or 'none'}"},
        )

    now = datetime.utcnow()
    change = StatusChange(status=new_status, at=now, by=actor)
    result = await db.orders.update_one(
        {"_id": order["_id"], "status": current},
        {
            "$set": {"status": new_status, "updated_at": now, "updated_by": actor},
            "$push": {"status_history": change.model_dump()},
        },
    )
    if result.modified_count == 0:
        raise InvalidStatusTransition(
            f"Order {order['order_number']} was changed by someone else, reload and try again"
        )

    logger.info(f"Order {order['order_number']} status {current} -> {new_status} by {actor}")

    updated = await db.orders.find_one({"_id": order["_id"]})
    event = STATUS_EVENTS.get(new_status, "order.updated")
    await dispatch_event(db, event, {
        "id": str(updated["_id"]),
        "order_number": updated["order_number"],
        "previous_status": current,
        "status": new_status,
        "updated_by": actor,
    })
    return updated
