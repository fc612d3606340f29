"""Checkout step validation endpoint"""

from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Optional, Tuple
import logging

from app.database import get_database
from app.core.checkout import validate_step, next_step, previous_step
from app.core.config_loader import ConfigLoader, get_config_loader
from app.core.delivery import quote_for_coordinates
from app.core.errors import AddressNotValidated, OutOfServiceArea, ValidationFailed
from app.core.geo import MapboxClient, get_mapbox_client
from app.core.scheduling import store_now, decide
from app.models.delivery import DeliveryConfig, DeliveryQuote
from app.models.order import OrderType
from app.schemas.checkout import CheckoutStep, CheckoutData, CheckoutValidateRequest, CheckoutValidateResponse

logger = logging.getLogger(__name__)

router = APIRouter()

# Steps whose checks depend on the delivery fee
QUOTED_STEPS = {CheckoutStep.ADDRESS, CheckoutStep.PAYMENT, CheckoutStep.REVIEW}


async def _quote_address(
    data: CheckoutData,
    delivery: DeliveryConfig,
    mapbox: MapboxClient,
) -> Tuple[Optional[DeliveryQuote], Optional[str]]:
    """Quote the checkout address on the server; the client's own quote is never used"""
    if data.orderType != OrderType.DELIVERY.value or data.deliveryAddress is None:
        return None, None
    destination = data.deliveryAddress.coordinates
    if destination is None:
        return None, None

    try:
        return await quote_for_coordinates(destination, delivery, mapbox), None
    except (AddressNotValidated, OutOfServiceArea, ValidationFailed) as e:
        logger.info(f"Checkout address rejected: {e.detail}")
        return None, e.detail


@router.post("/checkout/validate", response_model=CheckoutValidateResponse)
async def validate_checkout_step(
    request: CheckoutValidateRequest,
    db: AsyncIOMotorDatabase = Depends(get_database),
    loader: ConfigLoader = Depends(get_config_loader),
    mapbox: MapboxClient = Depends(get_mapbox_client)
):
    """Field errors of a checkout step and where the customer goes next"""
    schedule = await loader.get_schedule_config(db)
    delivery = await loader.get_delivery_config(db)
    decision = decide(store_now(), schedule)

    quote, quote_error = None, None
    if request.step in QUOTED_STEPS:
        quote, quote_error = await _quote_address(request.data, delivery, mapbox)

    errors = validate_step(request.step, request.data, decision, delivery, quote, quote_error)
    order_type = request.data.orderType

    return CheckoutValidateResponse(
        valid=not errors,
        errors=errors,
        nextStep=None if errors else next_step(request.step, order_type),
        previousStep=previous_step(request.step, order_type),
        deliveryQuote=quote,
    )
