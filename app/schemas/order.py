"""Order schemas for submission, status changes and responses"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List, Union
from app.models.common import DeliveryAddress
from app.models.order import Order, OrderStatus, OrderType, PaymentMethod
from app.models.schedule import ScheduleSelection
from app.utils.validators import is_plausible_phone


class CustomerInput(BaseModel):
    """Customer contact data typed at checkout"""
    name: str
    phone: str

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("phone")
    @classmethod
    def phone_plausible(cls, v: str) -> str:
        if not is_plausible_phone(v):
            raise ValueError("Phone must have between 10 and 15 digits")
        return v.strip()


class LineItemInput(BaseModel):
    """Cart line as sent by the client; name and unitPrice are display hints only"""
    productId: str = Field(min_length=1)
    name: Optional[str] = None
    unitPrice: Optional[float] = None
    quantity: int = Field(ge=1, le=99)
    selectedSize: Optional[str] = None
    selectedAddons: List[str] = []
    selectedAddonsDescription: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=500)


class DeclaredTotals(BaseModel):
    """Totals shown to the customer; stored for auditing, never charged"""
    itemsSubtotal: Optional[float] = None
    deliveryFee: float = Field(default=0.0, ge=0)
    discounts: float = Field(default=0.0, ge=0)
    total: Optional[float] = None


class OrderCreate(BaseModel):
    """Schema for submitting an order"""
    customer: CustomerInput
    orderType: OrderType = OrderType.DELIVERY
    deliveryAddress: Optional[DeliveryAddress] = None
    lineItems: List[LineItemInput] = Field(min_length=1)
    paymentMethod: PaymentMethod
    changeDue: Optional[Union[float, str]] = None
    notes: Optional[str] = Field(None, max_length=1000)
    declaredTotals: DeclaredTotals = Field(default_factory=DeclaredTotals)
    scheduleSelection: Optional[ScheduleSelection] = None
    idempotencyKey: Optional[str] = Field(None, min_length=8, max_length=128)

    @model_validator(mode="after")
    def address_for_delivery(self):
        if self.orderType == OrderType.DELIVERY and self.deliveryAddress is None:
            raise ValueError("deliveryAddress is required for delivery orders")
        return self

    class Config:
        json_schema_extra = {
            "example": {
                "customer": {"name": "Maria Silva", "phone": "(11) 98765-4321"},
                "orderType": "delivery",
                "deliveryAddress": {
                    "fullAddress": "Rua das Flores, 120 - Centro, Campinas - SP",
                    "lat": -22.9056,
                    "lng": -47.0608,
                    "number": "120"
                },
                "lineItems": [
                    {
                        "productId": "507f191e810c19729de860ea",
                        "name": "Bolo de Cenoura",
                        "unitPrice": 9.5,
                        "quantity": 2,
                        "selectedSize": "Fatia",
                        "selectedAddons": ["Calda extra"]
                    }
                ],
                "paymentMethod": "cash",
                "changeDue": "50,00",
                "declaredTotals": {"itemsSubtotal": 25.0, "deliveryFee": 5.0, "total": 30.0},
                "scheduleSelection": {"date": "2025-01-02", "timeWindow": "09:00-10:00"},
                "idempotencyKey": "6f1c2a9e-checkout-session"
            }
        }


class AdminOrderCreate(OrderCreate):
    """Order typed by the store staff"""
    status: Optional[OrderStatus] = None
    # Absolute amount taken off the items subtotal
    discount: float = Field(default=0.0, ge=0)


class OrderStatusUpdate(BaseModel):
    """Schema for changing the status of an order"""
    status: OrderStatus


class WhatsAppMessageResponse(BaseModel):
    """Order summary ready to be sent over WhatsApp"""
    message: str
    link: Optional[str] = None


class OrderSubmitResponse(BaseModel):
    """Result of an order submission"""
    success: bool = True
    orderId: str
    orderNumber: str
    status: OrderStatus
    total: float
    duplicate: bool = False
    whatsapp: Optional[WhatsAppMessageResponse] = None


class OrderResponse(Order):
    """Schema for order response"""
    id: str
