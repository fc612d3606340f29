"""Order models"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from enum import Enum
from app.models.common import DeliveryAddress
from app.models.schedule import ScheduleSelection


class OrderStatus(str, Enum):
    """Order status enumeration"""
    RECEIVED = "received"
    SCHEDULED = "scheduled"
    PREPARING = "preparing"
    OUT_FOR_DELIVERY = "out-for-delivery"
    DELIVERED = "delivered"
    CANCELED = "canceled"


class PaymentMethod(str, Enum):
    """Payment methods accepted on delivery or pickup"""
    CASH = "cash"
    CREDIT_CARD = "credit-card"
    DEBIT_CARD = "debit-card"
    PIX = "pix"


class OrderType(str, Enum):
    """Whether the order is delivered or picked up at the store"""
    DELIVERY = "delivery"
    PICKUP = "pickup"


class OrderSource(str, Enum):
    """Where the order was created"""
    WEB = "web"
    ADMIN = "admin"


class CustomerInfo(BaseModel):
    """Customer contact data"""
    name: str
    phone: str


class OrderItem(BaseModel):
    """Order line with server-side prices"""
    product_id: str
    name: str
    quantity: int = Field(ge=1)
    selected_size: Optional[str] = None
    selected_addons: List[str] = []
    selected_addons_description: Optional[str] = None
    notes: Optional[str] = None
    unit_price: float = Field(ge=0)
    line_subtotal: float = Field(ge=0)


class OrderTotals(BaseModel):
    """Totals computed by the server"""
    items_subtotal: float = Field(ge=0)
    delivery_fee: float = Field(ge=0)
    discounts: float = Field(default=0.0, ge=0)
    total: float = Field(ge=0)


class StatusChange(BaseModel):
    """Entry of the order status history"""
    status: OrderStatus
    at: datetime
    by: str

    class Config:
        use_enum_values = True


class Order(BaseModel):
    """Order model"""
    id: Optional[str] = Field(None, alias="_id")
    order_number: str
    customer: CustomerInfo
    customer_uid: Optional[str] = None
    order_type: OrderType = OrderType.DELIVERY
    delivery_address: Optional[DeliveryAddress] = None
    items: List[OrderItem]
    payment_method: PaymentMethod
    change_due: Optional[float] = None
    notes: Optional[str] = None
    totals: OrderTotals
    declared_totals: Optional[dict] = None
    status: OrderStatus = OrderStatus.RECEIVED
    schedule_selection: Optional[ScheduleSelection] = None
    idempotency_key: Optional[str] = None
    source: OrderSource = OrderSource.WEB
    status_history: List[StatusChange] = []
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    updated_by: Optional[str] = None

    class Config:
        populate_by_name = True
        use_enum_values = True
        json_schema_extra = {
            "example": {
                "order_number": "PED-20250101-1A2B3C4D",
                "customer": {"name": "Maria Silva", "phone": "11987654321"},
                "order_type": "delivery",
                "delivery_address": {"fullAddress": "Rua das Flores, 120 - Centro"},
                "items": [
                    {
                        "product_id": "507f191e810c19729de860ea",
                        "name": "Bolo de Cenoura",
                        "quantity": 2,
                        "selected_size": "Fatia",
                        "unit_price": 9.5,
                        "line_subtotal": 19.0
                    }
                ],
                "payment_method": "pix",
                "totals": {
                    "items_subtotal": 19.0,
                    "delivery_fee": 5.0,
                    "discounts": 0.0,
                    "total": 24.0
                },
                "status": "received"
            }
        }
