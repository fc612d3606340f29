"""Checkout step validation schemas"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Union
from enum import Enum
from app.models.common import DeliveryAddress
from app.models.delivery import DeliveryQuote


class CheckoutStep(str, Enum):
    """Checkout steps in navigation order"""
    CART = "cart"
    CONTACT = "contact"
    ORDER_TYPE = "order-type"
    ADDRESS = "address"
    PAYMENT = "payment"
    REVIEW = "review"


class CheckoutCartLine(BaseModel):
    productId: str
    quantity: int = 1
    unitPrice: float = 0.0


class CheckoutScheduleInput(BaseModel):
    """Schedule picker state; either field may still be missing"""
    date: Optional[str] = None
    timeWindow: Optional[str] = None


class CheckoutData(BaseModel):
    """
    Checkout state collected so far.

    Fields are loose on purpose: every step reports its own field errors
    instead of failing the whole request.
    """
    lineItems: List[CheckoutCartLine] = []
    name: Optional[str] = None
    phone: Optional[str] = None
    orderType: Optional[str] = None
    deliveryAddress: Optional[DeliveryAddress] = None
    paymentMethod: Optional[str] = None
    changeDue: Optional[Union[str, float]] = None
    scheduleSelection: Optional[CheckoutScheduleInput] = None


class CheckoutValidateRequest(BaseModel):
    """Schema for validating one checkout step"""
    step: CheckoutStep
    data: CheckoutData = Field(default_factory=CheckoutData)

    class Config:
        json_schema_extra = {
            "example": {
                "step": "contact",
                "data": {"name": "Maria Silva", "phone": "(11) 98765-4321", "orderType": "delivery"}
            }
        }


class CheckoutValidateResponse(BaseModel):
    """Result of a checkout step validation"""
    valid: bool
    errors: Dict[str, str] = {}
    nextStep: Optional[CheckoutStep] = None
    previousStep: Optional[CheckoutStep] = None
    deliveryQuote: Optional[DeliveryQuote] = None
