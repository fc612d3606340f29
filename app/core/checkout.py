"""Checkout step navigation and per-step validation"""

from decimal import Decimal
from typing import Optional, Dict, List

from pydantic import ValidationError

from app.core.scheduling import check_eligibility
from app.models.delivery import DeliveryConfig, DeliveryQuote
from app.models.order import OrderType, PaymentMethod
from app.models.schedule import EligibilityDecision, ScheduleSelection
from app.schemas.checkout import CheckoutStep, CheckoutData
from app.utils.validators import digits_only, parse_money

STEPS: List[CheckoutStep] = [
    CheckoutStep.CART,
    CheckoutStep.CONTACT,
    CheckoutStep.ORDER_TYPE,
    CheckoutStep.ADDRESS,
    CheckoutStep.PAYMENT,
    CheckoutStep.REVIEW,
]


def _steps_for(order_type: Optional[str]) -> List[CheckoutStep]:
    # pickup orders have no address step
    if order_type == OrderType.PICKUP.value:
        return [step for step in STEPS if step != CheckoutStep.ADDRESS]
    return STEPS


def next_step(step: CheckoutStep, order_type: Optional[str] = None) -> Optional[CheckoutStep]:
    steps = _steps_for(order_type)
    if step not in steps:
        return CheckoutStep.PAYMENT
    index = steps.index(step)
    return steps[index + 1] if index + 1 < len(steps) else None


def previous_step(step: CheckoutStep, order_type: Optional[str] = None) -> Optional[CheckoutStep]:
    steps = _steps_for(order_type)
    if step not in steps:
        return CheckoutStep.ORDER_TYPE
    index = steps.index(step)
    return steps[index - 1] if index > 0 else None


def cart_total(data: CheckoutData, quote: Optional[DeliveryQuote] = None) -> Decimal:
    """Items subtotal plus the server-quoted delivery fee, as shown to the customer"""
    subtotal = sum(
        (Decimal(str(line.unitPrice)) * line.quantity for line in data.lineItems),
        Decimal(0),
    )
    if data.orderType == OrderType.DELIVERY.value and quote is not None:
        subtotal += Decimal(str(quote.fee))
    return subtotal


def _validate_cart(data: CheckoutData) -> Dict[str, str]:
    if not data.lineItems:
        return {"lineItems": "Your cart is empty"}
    for i, line in enumerate(data.lineItems):
        if line.quantity < 1:
            return {f"lineItems.{i}.quantity": "Quantity must be at least 1"}
    return {}


def _validate_contact(data: CheckoutData) -> Dict[str, str]:
    errors = {}
    if not (data.name or "").strip():
        errors["name"] = "Please fill in your full name"
    phone = digits_only(data.phone)
    if len(phone) < 10 or len(phone) > 11:
        errors["phone"] = "Please fill in a valid phone number with area code"
    return errors


def _validate_order_type(data: CheckoutData, delivery: DeliveryConfig) -> Dict[str, str]:
    if data.orderType not in [t.value for t in OrderType]:
        return {"orderType": "Please choose delivery or pickup"}
    if data.orderType == OrderType.DELIVERY.value and not delivery.deliveryEnabled:
        return {"orderType": "Delivery is not available at the moment"}
    if data.orderType == OrderType.PICKUP.value and not delivery.pickupEnabled:
        return {"orderType": "Pickup is not available at the moment"}
    return {}


def _validate_address(
    data: CheckoutData,
    quote: Optional[DeliveryQuote],
    quote_error: Optional[str],
) -> Dict[str, str]:
    if data.orderType == OrderType.PICKUP.value:
        return {}
    address = data.deliveryAddress
    if address is None or address.coordinates is None:
        return {"deliveryAddress": "Please select an address from the suggestions"}
    errors = {}
    if quote is None or not quote.deliverable:
        errors["deliveryAddress"] = quote_error or "The address has not been validated for delivery"
    if not (address.number or "").strip():
        errors["deliveryAddress.number"] = "Please fill in the street number"
    return errors


def _validate_payment(data: CheckoutData, quote: Optional[DeliveryQuote]) -> Dict[str, str]:
    if data.paymentMethod not in [m.value for m in PaymentMethod]:
        return {"paymentMethod": "Please select a payment method"}
    if data.paymentMethod == PaymentMethod.CASH.value and data.changeDue not in (None, ""):
        total = cart_total(data, quote)
        amount = parse_money(data.changeDue)
        if amount is None or amount < total:
            return {
                "changeDue": f"Change must be a number greater than or equal to the order total (R$ {total:.2f})"
            }
    return {}


def _validate_schedule(data: CheckoutData, decision: EligibilityDecision) -> Dict[str, str]:
    raw = data.scheduleSelection
    selection = None
    if raw is not None and (raw.date or raw.timeWindow):
        if not (raw.date and raw.timeWindow):
            return {"scheduleSelection": "Select both a date and a time window"}
        try:
            selection = ScheduleSelection(date=raw.date, timeWindow=raw.timeWindow)
        except ValidationError:
            return {"scheduleSelection": "Invalid date or time window"}

    if selection is None and decision.closed:
        return {"scheduleSelection": "The store is closed for orders right now"}
    return check_eligibility(decision, selection)


def validate_step(
    step: CheckoutStep,
    data: CheckoutData,
    decision: EligibilityDecision,
    delivery: DeliveryConfig,
    quote: Optional[DeliveryQuote] = None,
    quote_error: Optional[str] = None,
) -> Dict[str, str]:
    """
    Field errors that block leaving `step`.

    `quote` is the delivery quote computed on the server for the address in
    `data` (None when it could not be computed, with `quote_error` saying
    why). The review step re-checks every earlier step so a stale client
    state cannot skip one.
    """
    if step == CheckoutStep.CART:
        return _validate_cart(data)
    if step == CheckoutStep.CONTACT:
        return _validate_contact(data)
    if step == CheckoutStep.ORDER_TYPE:
        return _validate_order_type(data, delivery)
    if step == CheckoutStep.ADDRESS:
        return _validate_address(data, quote, quote_error)
    if step == CheckoutStep.PAYMENT:
        return _validate_payment(data, quote)

    errors = {}
    errors.update(_validate_cart(data))
    errors.update(_validate_contact(data))
    errors.update(_validate_order_type(data, delivery))
    errors.update(_validate_address(data, quote, quote_error))
    errors.update(_validate_payment(data, quote))
    errors.update(_validate_schedule(data, decision))
    return errors
