"""Webhook schemas: registered webhooks, test deliveries and the inbound endpoint"""

from pydantic import BaseModel, Field, HttpUrl
from typing import Optional, List, Any
from datetime import datetime
from app.models.order import OrderStatus
from app.models.webhook import WebhookEvent

INBOUND_MESSAGE_TYPE = "whatsapp_message"


class WebhookCreate(BaseModel):
    """Schema for registering a webhook"""
    name: str = Field(min_length=1)
    url: HttpUrl
    secret: Optional[str] = None
    events: List[WebhookEvent] = Field(min_length=1)
    active: bool = True

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Kitchen display",
                "url": "https://kitchen.example.com/hooks/orders",
                "secret": "s3cr3t",
                "events": ["order.created", "order.canceled"],
                "active": True
            }
        }


class WebhookUpdate(BaseModel):
    """Schema for updating a webhook"""
    name: Optional[str] = Field(None, min_length=1)
    url: Optional[HttpUrl] = None
    secret: Optional[str] = None
    events: Optional[List[WebhookEvent]] = Field(None, min_length=1)
    active: Optional[bool] = None


class WebhookResponse(BaseModel):
    """Schema for webhook response; the secret is never returned"""
    id: str
    name: str
    url: str
    hasSecret: bool
    events: List[WebhookEvent]
    active: bool
    successCount: int = 0
    failureCount: int = 0
    lastTriggeredAt: Optional[datetime] = None
    createdAt: datetime
    updatedAt: datetime


class WebhookLogResponse(BaseModel):
    id: str
    webhookId: str
    event: str
    status: str
    statusCode: Optional[int] = None
    errorMessage: Optional[str] = None
    timestamp: datetime


class WebhookTestRequest(BaseModel):
    """Synthetic event forwarded to a webhook URL"""
    webhookId: str = Field(min_length=1)
    url: HttpUrl
    secret: Optional[str] = None


class WebhookTestResponse(BaseModel):
    success: bool
    message: str
    statusCode: int
    data: Any = None


class InboundWebhookPayload(BaseModel):
    """
    Body accepted by the inbound webhook.

    Either a status update (`orderId` + `newStatus`) or an inbound message
    (`type` = "whatsapp_message" + `phone` + `message`).
    """
    orderId: Optional[str] = None
    newStatus: Optional[OrderStatus] = None
    type: Optional[str] = None
    phone: Optional[str] = None
    message: Optional[str] = None


class InboundWebhookResponse(BaseModel):
    success: bool = True
    message: str = "Webhook processed"
    processedAt: datetime
    processedType: str
