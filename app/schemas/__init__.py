"""Pydantic schemas for request/response validation"""

from app.schemas.common import SuccessResponse, ErrorResponse, PaginatedResponse
from app.schemas.auth import (
    MagicLinkRequest,
    MagicLinkResponse,
    VerifyMagicLinkRequest,
    TokenResponse,
    UserProfileResponse,
)
from app.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
)
from app.schemas.order import (
    OrderCreate,
    AdminOrderCreate,
    OrderStatusUpdate,
    OrderSubmitResponse,
    OrderResponse,
    WhatsAppMessageResponse,
)
from app.schemas.settings import ScheduleAvailabilityResponse, TimeWindowsResponse
from app.schemas.address import GeocodeResponse, ReverseGeocodeResponse, DeliveryQuoteRequest
from app.schemas.checkout import CheckoutStep, CheckoutValidateRequest, CheckoutValidateResponse
from app.schemas.webhook import (
    WebhookCreate,
    WebhookUpdate,
    WebhookResponse,
    WebhookLogResponse,
    WebhookTestRequest,
    WebhookTestResponse,
    InboundWebhookPayload,
    InboundWebhookResponse,
)

__all__ = [
    "SuccessResponse",
    "ErrorResponse",
    "PaginatedResponse",
    "MagicLinkRequest",
    "MagicLinkResponse",
    "VerifyMagicLinkRequest",
    "TokenResponse",
    "UserProfileResponse",
    "ProductCreate",
    "ProductUpdate",
    "ProductResponse",
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryResponse",
    "OrderCreate",
    "AdminOrderCreate",
    "OrderStatusUpdate",
    "OrderSubmitResponse",
    "OrderResponse",
    "WhatsAppMessageResponse",
    "ScheduleAvailabilityResponse",
    "TimeWindowsResponse",
    "GeocodeResponse",
    "ReverseGeocodeResponse",
    "DeliveryQuoteRequest",
    "CheckoutStep",
    "CheckoutValidateRequest",
    "CheckoutValidateResponse",
    "WebhookCreate",
    "WebhookUpdate",
    "WebhookResponse",
    "WebhookLogResponse",
    "WebhookTestRequest",
    "WebhookTestResponse",
    "InboundWebhookPayload",
    "InboundWebhookResponse",
]
