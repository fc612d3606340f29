"""MongoDB models using Pydantic"""

from app.models.common import Coordinates, DeliveryAddress, PostalAddress, GeocodeResult
from app.models.user import User, UserRole, MagicLink
from app.models.product import Product, Category, SizePrice, Addon
from app.models.order import (
    Order,
    OrderItem,
    OrderStatus,
    OrderTotals,
    OrderType,
    OrderSource,
    PaymentMethod,
    CustomerInfo,
    StatusChange,
)
from app.models.schedule import (
    ScheduleConfig,
    SpecialDateConfig,
    WeeklySlots,
    OperationMode,
    SpecialDateMode,
    PickerMode,
    AvailableTimeWindow,
    ScheduleSelection,
    EligibilityDecision,
)
from app.models.delivery import DeliveryConfig, DeliveryQuote, RouteProfile
from app.models.webhook import Webhook, WebhookLog, WebhookEvent, InboundMessage

__all__ = [
    "Coordinates",
    "DeliveryAddress",
    "PostalAddress",
    "GeocodeResult",
    "User",
    "UserRole",
    "MagicLink",
    "Product",
    "Category",
    "SizePrice",
    "Addon",
    "Order",
    "OrderItem",
    "OrderStatus",
    "OrderTotals",
    "OrderType",
    "OrderSource",
    "PaymentMethod",
    "CustomerInfo",
    "StatusChange",
    "ScheduleConfig",
    "SpecialDateConfig",
    "WeeklySlots",
    "OperationMode",
    "SpecialDateMode",
    "PickerMode",
    "AvailableTimeWindow",
    "ScheduleSelection",
    "EligibilityDecision",
    "DeliveryConfig",
    "DeliveryQuote",
    "RouteProfile",
    "Webhook",
    "WebhookLog",
    "WebhookEvent",
    "InboundMessage",
]
