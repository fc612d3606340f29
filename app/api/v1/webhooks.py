"""Webhook endpoints: inbound integration hook and back-office webhook registry"""

from fastapi import APIRouter, Depends, HTTPException, status, Query
from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from bson import ObjectId
from typing import List, Optional
import logging

from pymongo.errors import PyMongoError

from app.database import get_database
from app.api.deps import require_admin, require_webhook_token
from app.core.notifications import dispatch_event, send_test_event
from app.core.orders import transition_order_status
from app.schemas.common import SuccessResponse
from app.schemas.webhook import (
    INBOUND_MESSAGE_TYPE,
    WebhookCreate,
    WebhookUpdate,
    WebhookResponse,
    WebhookLogResponse,
    WebhookTestRequest,
    WebhookTestResponse,
    InboundWebhookPayload,
    InboundWebhookResponse,
)
from app.utils.validators import validate_object_id

logger = logging.getLogger(__name__)

router = APIRouter()
admin_router = APIRouter()


def webhook_to_response(webhook: dict) -> WebhookResponse:
    """Convert database webhook document to WebhookResponse"""
    return WebhookResponse(
        id=str(webhook["_id"]),
        name=webhook["name"],
        url=webhook["url"],
        hasSecret=bool(webhook.get("secret")),
        events=webhook.get("events", []),
        active=webhook.get("active", True),
        successCount=webhook.get("successCount", 0),
        failureCount=webhook.get("failureCount", 0),
        lastTriggeredAt=webhook.get("lastTriggeredAt"),
        createdAt=webhook["createdAt"],
        updatedAt=webhook["updatedAt"],
    )


def _webhook_oid(webhook_id: str) -> ObjectId:
    if not validate_object_id(webhook_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid webhook ID"
        )
    return ObjectId(webhook_id)


@router.post("/webhook", response_model=InboundWebhookResponse, dependencies=[Depends(require_webhook_token)])
async def receive_webhook(
    payload: InboundWebhookPayload,
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Inbound integration hook, authenticated with the shared bearer secret.

    `{orderId, newStatus}` moves an order along its lifecycle;
    `{type: "whatsapp_message", phone, message}` stores an inbound message.
    """
    logger.info(f"Webhook received: {payload.model_dump(exclude_none=True)}")

    if payload.orderId and payload.newStatus:
        await transition_order_status(db, payload.orderId, payload.newStatus, "webhook")
        processed_type = "order_status"

    elif payload.type == INBOUND_MESSAGE_TYPE and payload.phone:
        message = {
            "phone": payload.phone,
            "message": payload.message or "",
            "receivedAt": datetime.utcnow(),
            "processed": False,
        }
        try:
            await db.messages.insert_one(message)
            logger.info(f"WhatsApp message stored for {payload.phone}")
        except PyMongoError as e:
            logger.error(f"Failed to store WhatsApp message from {payload.phone}: {e}")
        await dispatch_event(db, "message.received", {"phone": payload.phone, "message": message["message"]})
        processed_type = INBOUND_MESSAGE_TYPE

    else:
        processed_type = "other"

    return InboundWebhookResponse(processedAt=datetime.utcnow(), processedType=processed_type)


# Back office

@admin_router.get("/webhooks", response_model=List[WebhookResponse])
async def list_webhooks(
    current_user: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Registered webhooks (Admin only)"""
    webhooks = await db.webhooks.find({}).sort("createdAt", -1).to_list(length=100)
    return [webhook_to_response(w) for w in webhooks]


@admin_router.post("/webhooks", response_model=WebhookResponse, status_code=status.HTTP_201_CREATED)
async def create_webhook(
    webhook_data: WebhookCreate,
    current_user: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Register a webhook (Admin only)"""
    now = datetime.utcnow()
    webhook_dict = webhook_data.model_dump(mode="json")
    webhook_dict.update({
        "successCount": 0,
        "failureCount": 0,
        "lastTriggeredAt": None,
        "createdAt": now,
        "updatedAt": now,
    })

    result = await db.webhooks.insert_one(webhook_dict)
    logger.info(f"Webhook '{webhook_data.name}' registered by {current_user['email']}")

    created = await db.webhooks.find_one({"_id": result.inserted_id})
    return webhook_to_response(created)


@admin_router.get("/webhooks/logs", response_model=List[WebhookLogResponse])
async def list_webhook_logs(
    webhook_id: Optional[str] = Query(None, alias="webhookId"),
    limit: int = Query(50, ge=1, le=200),
    current_user: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Latest delivery attempts, optionally of one webhook (Admin only)"""
    query = {"webhookId": webhook_id} if webhook_id else {}
    logs = await db.webhook_logs.find(query).sort("timestamp", -1).limit(limit).to_list(length=limit)
    return [
        WebhookLogResponse(
            id=str(log["_id"]),
            webhookId=log["webhookId"],
            event=log["event"],
            status=log["status"],
            statusCode=log.get("statusCode"),
            errorMessage=log.get("errorMessage"),
            timestamp=log["timestamp"],
        )
        for log in logs
    ]


@admin_router.post("/webhooks/test", response_model=WebhookTestResponse)
async def test_webhook(
    request: WebhookTestRequest,
    current_user: dict = Depends(require_admin)
):
    """Forward the synthetic `webhook.test` event and report the destination's answer (Admin only)"""
    result = await send_test_event(request.webhookId, str(request.url), request.secret)

    if result["success"]:
        message = f"Webhook tested successfully. Status code: {result['statusCode']}"
    else:
        message = f"Webhook test failed. Destination answered with status code {result['statusCode']}"

    return WebhookTestResponse(message=message, **result)


@admin_router.put("/webhooks/{webhook_id}", response_model=WebhookResponse)
async def update_webhook(
    webhook_id: str,
    webhook_data: WebhookUpdate,
    current_user: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Update a webhook (Admin only)"""
    webhook_oid = _webhook_oid(webhook_id)

    update_dict = webhook_data.model_dump(mode="json", exclude_unset=True)
    update_dict["updatedAt"] = datetime.utcnow()

    result = await db.webhooks.update_one({"_id": webhook_oid}, {"$set": update_dict})
    if result.matched_count == 0:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Webhook not found"
        )

    updated = await db.webhooks.find_one({"_id": webhook_oid})
    return webhook_to_response(updated)


@admin_router.delete("/webhooks/{webhook_id}", response_model=SuccessResponse)
async def delete_webhook(
    webhook_id: str,
    current_user: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Remove a webhook (Admin only)"""
    result = await db.webhooks.delete_one({"_id": _webhook_oid(webhook_id)})
    if result.deleted_count == 0:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Webhook not found"
        )

    logger.info(f"Webhook {webhook_id} removed by {current_user['email']}")
    return SuccessResponse(message="Webhook deleted successfully")
