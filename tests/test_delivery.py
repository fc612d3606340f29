from decimal import Decimal

import pytest

from app.core.delivery import compute_fee, round_to_step, quote_delivery, is_within_service_area, quote_for_coordinates
from app.core.errors import AddressNotValidated, OutOfServiceArea, ValidationFailed
from app.models.common import Coordinates
from app.models.delivery import DeliveryConfig
from conftest import route_client, run


def delivery_config(**overrides):
    values = {
        "storeLat": -23.55052,
        "storeLng": -46.633308,
        "deliveryFeePerKm": 2.5,
        "minDeliveryDistanceForFee": 3000,
        "radius": 10,
        "feeRoundingStep": 0.5,
    }
    values.update(overrides)
    return DeliveryConfig(**values)


def test_full_distance_is_charged_beyond_free_radius():
    assert compute_fee(5000, delivery_config()) == 12.50


@pytest.mark.parametrize("distance", [0, 1200, 2999.9, 3000])
def test_no_fee_inside_free_radius(distance):
    assert compute_fee(distance, delivery_config()) == 0.0


def test_no_fee_without_rate():
    assert compute_fee(8000, delivery_config(deliveryFeePerKm=0)) == 0.0


def test_fee_grows_with_distance():
    config = delivery_config()
    fees = [compute_fee(distance, config) for distance in range(0, 15001, 250)]
    assert fees == sorted(fees)


def test_fees_land_on_the_rounding_step():
    config = delivery_config(deliveryFeePerKm=2.37)
    for distance in range(3100, 15000, 333):
        fee = Decimal(str(compute_fee(distance, config)))
        assert fee % Decimal("0.5") == 0


@pytest.mark.parametrize("amount,step,expected", [
    ("12.74", 0.5, "12.50"),
    ("12.75", 0.5, "13.00"),
    ("12.25", 0.5, "12.50"),
    ("12.2499", 0.5, "12.00"),
    ("7.345", 0.01, "7.35"),
    ("7.3449", 0.01, "7.34"),
    ("4.10", 1, "4.00"),
])
def test_round_to_step(amount, step, expected):
    assert round_to_step(Decimal(amount), step) == Decimal(expected)


def test_service_area_has_slack_beyond_radius():
    config = delivery_config(radius=10)
    assert is_within_service_area(15000, config)
    assert not is_within_service_area(15001, config)


def test_quote_with_fee():
    quote = quote_delivery(5000, delivery_config())
    assert quote.deliverable
    assert quote.fee == 12.50
    assert quote.distanceKm == 5.0
    assert "R$ 12.50" in quote.message


def test_quote_without_fee():
    quote = quote_delivery(1500, delivery_config())
    assert quote.fee == 0.0
    assert "No delivery fee" in quote.message


def test_quote_out_of_service_area():
    with pytest.raises(OutOfServiceArea) as exc_info:
        quote_delivery(16200, delivery_config())

    assert exc_info.value.distance_km == pytest.approx(16.2)
    assert "16.2 km" in exc_info.value.detail
    assert exc_info.value.fields == {"distanceKm": "16.2"}
    assert exc_info.value.status_code == 422


def test_quote_without_distance():
    with pytest.raises(AddressNotValidated):
        quote_delivery(None, delivery_config())


CUSTOMER = Coordinates(lat=-23.56, lng=-46.65)


def test_quote_for_coordinates_routes_from_the_store():
    quote = run(quote_for_coordinates(CUSTOMER, delivery_config(), route_client(5000)))
    assert quote.fee == 12.5
    assert quote.distanceKm == 5.0


def test_quote_for_coordinates_without_route():
    with pytest.raises(AddressNotValidated):
        run(quote_for_coordinates(CUSTOMER, delivery_config(), route_client(None)))


def test_quote_for_coordinates_without_store_location():
    with pytest.raises(AddressNotValidated):
        run(quote_for_coordinates(CUSTOMER, delivery_config(storeLat=None, storeLng=None), route_client(5000)))


def test_quote_for_coordinates_with_delivery_disabled():
    with pytest.raises(ValidationFailed) as exc_info:
        run(quote_for_coordinates(CUSTOMER, delivery_config(deliveryEnabled=False), route_client(5000)))
    assert "orderType" in exc_info.value.fields
