import pytest

from app.core.checkout import validate_step, next_step, previous_step, cart_total
from app.models.delivery import DeliveryConfig, DeliveryQuote
from app.models.schedule import EligibilityDecision
from app.schemas.checkout import CheckoutStep, CheckoutData

OPEN = EligibilityDecision(allowImmediate=True, allowScheduled=False, schedulingRequired=False)
CLOSED = EligibilityDecision(allowImmediate=False, allowScheduled=False, schedulingRequired=False)
SCHEDULE_REQUIRED = EligibilityDecision(allowImmediate=False, allowScheduled=True, schedulingRequired=True)
QUOTE = DeliveryQuote(deliverable=True, distanceMeters=5000, distanceKm=5.0, fee=12.5, message="ok")


def checkout_data(**overrides):
    data = {
        "lineItems": [{"productId": "p1", "quantity": 2, "unitPrice": 12.5}],
        "name": "Maria Silva",
        "phone": "(11) 98765-4321",
        "orderType": "delivery",
        "deliveryAddress": {"fullAddress": "Rua das Flores, 120", "lat": -22.9, "lng": -47.06, "number": "120"},
        "paymentMethod": "pix",
    }
    data.update(overrides)
    return CheckoutData(**data)


def validate(step, data, decision=OPEN, delivery=None, quote=QUOTE, quote_error=None):
    return validate_step(step, data, decision, delivery or DeliveryConfig(), quote, quote_error)


def test_step_navigation_for_delivery():
    assert next_step(CheckoutStep.ORDER_TYPE, "delivery") == CheckoutStep.ADDRESS
    assert next_step(CheckoutStep.ADDRESS, "delivery") == CheckoutStep.PAYMENT
    assert previous_step(CheckoutStep.PAYMENT, "delivery") == CheckoutStep.ADDRESS
    assert previous_step(CheckoutStep.CART) is None
    assert next_step(CheckoutStep.REVIEW) is None


def test_pickup_skips_address_step():
    assert next_step(CheckoutStep.ORDER_TYPE, "pickup") == CheckoutStep.PAYMENT
    assert previous_step(CheckoutStep.PAYMENT, "pickup") == CheckoutStep.ORDER_TYPE


def test_empty_cart():
    assert validate(CheckoutStep.CART, checkout_data(lineItems=[])) == {"lineItems": "Your cart is empty"}


@pytest.mark.parametrize("name,phone,fields", [
    ("", "(11) 98765-4321", {"name"}),
    ("Maria", "98765-4321", {"phone"}),
    ("Maria", "+55 11 98765-4321", {"phone"}),
    ("  ", None, {"name", "phone"}),
    ("Maria", "(11) 3456-7890", set()),
])
def test_contact_step(name, phone, fields):
    assert set(validate(CheckoutStep.CONTACT, checkout_data(name=name, phone=phone))) == fields


def test_order_type_step():
    assert "orderType" in validate(CheckoutStep.ORDER_TYPE, checkout_data(orderType="drone"))
    assert "orderType" in validate(
        CheckoutStep.ORDER_TYPE, checkout_data(orderType="pickup"), delivery=DeliveryConfig(pickupEnabled=False)
    )
    assert validate(CheckoutStep.ORDER_TYPE, checkout_data()) == {}


def test_address_needs_quote_and_number():
    errors = validate(
        CheckoutStep.ADDRESS,
        checkout_data(deliveryAddress={"fullAddress": "Rua das Flores", "lat": -22.9, "lng": -47.06}),
        quote=None,
    )
    assert set(errors) == {"deliveryAddress", "deliveryAddress.number"}


def test_address_reports_why_the_quote_failed():
    errors = validate(CheckoutStep.ADDRESS, checkout_data(), quote=None, quote_error="Too far")
    assert errors == {"deliveryAddress": "Too far"}


def test_client_quote_is_ignored():
    data = checkout_data(deliveryQuote={"deliverable": True, "distanceMeters": 1, "distanceKm": 0.0, "fee": 0.0, "message": "ok"})
    assert "deliveryAddress" in validate(CheckoutStep.ADDRESS, data, quote=None)
    assert cart_total(data) == 25


def test_address_needs_coordinates():
    errors = validate(CheckoutStep.ADDRESS, checkout_data(deliveryAddress={"fullAddress": "Rua das Flores, 120"}))
    assert "deliveryAddress" in errors


def test_address_step_is_empty_for_pickup():
    assert validate(CheckoutStep.ADDRESS, checkout_data(orderType="pickup", deliveryAddress=None)) == {}


def test_cart_total_includes_quoted_fee():
    assert cart_total(checkout_data(), QUOTE) == 37.5
    assert cart_total(checkout_data(orderType="pickup"), QUOTE) == 25


@pytest.mark.parametrize("change_due,valid", [
    ("50,00", True),
    ("37,50", True),
    ("30", False),
    ("abc", False),
    (None, True),
])
def test_cash_change(change_due, valid):
    errors = validate(CheckoutStep.PAYMENT, checkout_data(paymentMethod="cash", changeDue=change_due))
    assert (errors == {}) is valid


def test_payment_method_required():
    assert "paymentMethod" in validate(CheckoutStep.PAYMENT, checkout_data(paymentMethod=None))


def test_review_rechecks_everything():
    errors = validate(CheckoutStep.REVIEW, checkout_data(name="", paymentMethod="boleto"))
    assert {"name", "paymentMethod"} <= set(errors)


def test_review_when_closed():
    errors = validate(CheckoutStep.REVIEW, checkout_data(), decision=CLOSED)
    assert "scheduleSelection" in errors


def test_review_requires_schedule_selection():
    errors = validate(CheckoutStep.REVIEW, checkout_data(), decision=SCHEDULE_REQUIRED)
    assert "scheduleSelection" in errors

    partial = checkout_data(scheduleSelection={"date": "2025-01-07"})
    assert "scheduleSelection" in validate(CheckoutStep.REVIEW, partial, decision=SCHEDULE_REQUIRED)

    complete = checkout_data(scheduleSelection={"date": "2025-01-07", "timeWindow": "09:00-10:00"})
    assert validate(CheckoutStep.REVIEW, complete, decision=SCHEDULE_REQUIRED) == {}
