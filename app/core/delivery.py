"""Delivery fee calculation and service area checks"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
import logging

from app.core.errors import AddressNotValidated, OutOfServiceArea, ValidationFailed
from app.core.geo import MapboxClient
from app.models.common import Coordinates
from app.models.delivery import DeliveryConfig, DeliveryQuote

logger = logging.getLogger(__name__)

# Addresses up to radius * SERVICE_AREA_SLACK km away are still served
SERVICE_AREA_SLACK = Decimal("1.5")

CENT = Decimal("0.01")


def round_to_step(amount: Decimal, step: float) -> Decimal:
    """
    Round half-up to the nearest multiple of `step`.

    This is the single fee rounding policy of the store: with the default
    step of 0.50 a fee of 12.74 becomes 12.50 and 12.75 becomes 13.00.
    """
    step = Decimal(str(step))
    units = (amount / step).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return (units * step).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_fee(distance_meters: float, config: DeliveryConfig) -> float:
    """
    Delivery fee for a route distance.

    Inside the free radius (minDeliveryDistanceForFee meters) or with no
    per-km rate there is no fee; beyond it the whole distance is charged.
    """
    if distance_meters <= config.minDeliveryDistanceForFee or config.deliveryFeePerKm <= 0:
        return 0.0

    distance_km = Decimal(str(distance_meters)) / Decimal(1000)
    raw_fee = distance_km * Decimal(str(config.deliveryFeePerKm))
    return float(round_to_step(raw_fee, config.feeRoundingStep))


def is_within_service_area(distance_meters: float, config: DeliveryConfig) -> bool:
    distance_km = Decimal(str(distance_meters)) / Decimal(1000)
    return distance_km <= Decimal(str(config.radius)) * SERVICE_AREA_SLACK


def quote_delivery(distance_meters: Optional[float], config: DeliveryConfig) -> DeliveryQuote:
    """
    Evaluate a route distance against the delivery area.

    Raises:
        AddressNotValidated: the distance is unknown (lookup failed or no route)
        OutOfServiceArea: the address is beyond the service radius slack
    """
    if distance_meters is None:
        raise AddressNotValidated(
            "Could not calculate the route to this address. Check the address or try again."
        )

    distance_km = distance_meters / 1000

    if not is_within_service_area(distance_meters, config):
        logger.info(f"Address out of service area: {distance_km:.1f} km (radius {config.radius} km)")
        raise OutOfServiceArea(
            f"Sorry, this address is too far away ({distance_km:.1f} km). "
            f"Maximum delivery radius: {config.radius:g} km.",
            distance_km=distance_km,
        )

    fee = compute_fee(distance_meters, config)
    if fee > 0:
        message = f"Delivery available! Distance: {distance_km:.1f} km. Fee: R$ {fee:.2f}."
    else:
        message = f"Delivery available! Distance: {distance_km:.1f} km. No delivery fee."

    return DeliveryQuote(
        deliverable=True,
        distanceMeters=distance_meters,
        distanceKm=round(distance_km, 3),
        fee=fee,
        message=message,
    )


async def quote_for_coordinates(destination: Coordinates, config: DeliveryConfig, client: MapboxClient) -> DeliveryQuote:
    """
    Route the store to `destination` and quote the delivery.

    Raises:
        ValidationFailed: delivery is disabled
        AddressNotValidated: no store location, or the route could not be found
        OutOfServiceArea: the address is beyond the service radius slack
    """
    if not config.deliveryEnabled:
        raise ValidationFailed("Delivery is not available", {"orderType": "Delivery is disabled"})

    if not config.has_store_location:
        logger.error("Delivery quote requested but the store location is not configured")
        raise AddressNotValidated("Store location is not configured. Try again later.")

    origin = Coordinates(lat=config.storeLat, lng=config.storeLng)
    distance = await client.route_distance(origin, destination, config.routeProfile)
    return quote_delivery(distance, config)
