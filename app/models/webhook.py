"""Webhook models"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List, Any, Dict
from enum import Enum


class WebhookEvent(str, Enum):
    """Events that registered webhooks can subscribe to"""
    ORDER_CREATED = "order.created"
    ORDER_UPDATED = "order.updated"
    ORDER_CANCELED = "order.canceled"
    ORDER_DELIVERED = "order.delivered"
    CUSTOMER_CREATED = "customer.created"
    MESSAGE_RECEIVED = "message.received"


class Webhook(BaseModel):
    """Outbound webhook registered in the back-office"""
    id: Optional[str] = Field(None, alias="_id")
    name: str
    url: str
    secret: Optional[str] = None
    events: List[WebhookEvent] = []
    active: bool = True
    successCount: int = 0
    failureCount: int = 0
    lastTriggeredAt: Optional[datetime] = None
    createdAt: datetime = Field(default_factory=datetime.utcnow)
    updatedAt: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        populate_by_name = True
        use_enum_values = True


class WebhookLog(BaseModel):
    """Result of one webhook delivery attempt"""
    webhookId: str
    event: str
    status: str  # "success" | "failure"
    statusCode: Optional[int] = None
    requestPayload: Dict[str, Any]
    responseData: Optional[Any] = None
    errorMessage: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class InboundMessage(BaseModel):
    """Chat message forwarded by the inbound webhook"""
    phone: str
    message: str = ""
    receivedAt: datetime = Field(default_factory=datetime.utcnow)
    processed: bool = False
