"""Order notifications: WhatsApp message, outbound webhooks and webhook tests"""

from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from typing import Optional
from urllib.parse import quote
import logging

import httpx
from pymongo.errors import PyMongoError

from app.config import settings
from app.core.errors import ExternalServiceError
from app.models.order import Order, OrderType, PaymentMethod
from app.utils.validators import digits_only

logger = logging.getLogger(__name__)

PAYMENT_LABELS = {
    PaymentMethod.CASH.value: "Dinheiro",
    PaymentMethod.CREDIT_CARD.value: "Cartão de Crédito",
    PaymentMethod.DEBIT_CARD.value: "Cartão de Débito",
    PaymentMethod.PIX.value: "PIX",
}

TEST_EVENT = "webhook.test"


def _money(value: float) -> str:
    return f"R$ {value:.2f}"


def format_whatsapp_message(order: Order) -> str:
    """Order summary sent to the store over WhatsApp"""
    pickup = order.order_type == OrderType.PICKUP.value

    lines = ["*Novo Pedido Recebido*", ""]

    if order.schedule_selection:
        year, month, day = order.schedule_selection.date.split("-")
        window = order.schedule_selection.timeWindow.replace("-", " - ")
        label = "RETIRADA AGENDADA" if pickup else "ENTREGA AGENDADA"
        lines += [f"📅 *{label}* para {day}/{month}/{year}, entre {window}", ""]

    lines.append(f"*Cliente:* {order.customer.name}")
    lines.append(f"*Telefone:* {order.customer.phone}")
    if pickup:
        lines.append("*Tipo de pedido:* Retirada no local")
    elif order.delivery_address:
        lines.append(f"*Endereço:* {order.delivery_address.fullAddress}")
        if order.delivery_address.reference:
            lines.append(f"*Referência:* {order.delivery_address.reference}")

    lines += ["", "*Itens:*"]
    for item in order.items:
        lines.append(
            f"- {item.quantity}x {item.name} ({_money(item.unit_price)} c/u) = {_money(item.line_subtotal)}"
        )
        if item.selected_size:
            lines.append(f"   Tamanho: {item.selected_size}")
        addons = item.selected_addons_description or ", ".join(item.selected_addons)
        if addons:
            lines.append(f"   Adicionais: {addons}")
        if item.notes:
            lines.append(f"   Obs: {item.notes}")

    totals = order.totals
    lines += ["", f"*Subtotal dos Produtos:* {_money(totals.items_subtotal)}"]
    if totals.delivery_fee > 0:
        lines.append(f"*Taxa de Entrega:* {_money(totals.delivery_fee)}")
    if totals.discounts > 0:
        lines.append(f"*Desconto:* -{_money(totals.discounts)}")
    lines.append(f"*Total do Pedido:* {_money(totals.total)}")

    payment = PAYMENT_LABELS.get(order.payment_method, order.payment_method)
    lines += ["", f"*Forma de Pagamento:* {payment}"]
    if order.payment_method == PaymentMethod.CASH.value and order.change_due:
        lines.append(f"*Troco para:* {_money(order.change_due)}")

    if order.notes and order.notes.strip():
        lines += ["", "*Observações:*", order.notes.strip()]

    lines += ["", "---", f"Pedido {order.order_number} gerado via site."]
    return "\n".join(lines)


def whatsapp_link(number: str, text: str) -> str:
    """wa.me deep link that opens a chat with `text` prefilled"""
    return f"https://wa.me/{digits_only(number)}?text={quote(text, safe='')}"


async def _post_json(
    url: str,
    payload: dict,
    secret: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.Response:
    headers = {"Content-Type": "application/json"}
    if secret:
        headers["Authorization"] = f"Bearer {secret}"
    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds, transport=transport) as client:
        return await client.post(url, json=payload, headers=headers)


def _response_data(response: httpx.Response):
    try:
        return response.json()
    except ValueError:
        return {"text": response.text}


async def notify_order_created(
    order_data: dict,
    url: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> bool:
    """
    POST the persisted order to the configured order webhook.

    Best effort: failures are logged and reported as False, never raised.
    """
    url = url or settings.order_webhook_url
    if not url:
        return False

    try:
        response = await _post_json(url, {"event": "order.created", "data": order_data}, transport=transport)
        response.raise_for_status()
    except httpx.HTTPError as e:
        logger.error(f"Failed to notify order {order_data.get('order_number')} to {url}: {e}")
        return False

    logger.info(f"Order {order_data.get('order_number')} notified to {url}")
    return True


async def dispatch_event(
    db: AsyncIOMotorDatabase,
    event: str,
    data: dict,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> int:
    """
    Deliver an event to every active webhook subscribed to it.

    Each attempt is written to `webhook_logs` and counted on the webhook.
    Returns the number of successful deliveries; never raises.
    """
    try:
        webhooks = await db.webhooks.find({"active": True, "events": event}).to_list(length=100)
    except PyMongoError as e:
        logger.error(f"Failed to load webhooks for {event}: {e}")
        return 0

    delivered = 0

    for webhook in webhooks:
        payload = {"event": event, "timestamp": datetime.utcnow().isoformat(), "data": data}
        log = {
            "webhookId": str(webhook["_id"]),
            "event": event,
            "requestPayload": payload,
            "timestamp": datetime.utcnow(),
        }

        try:
            response = await _post_json(webhook["url"], payload, webhook.get("secret"), transport)
            log["statusCode"] = response.status_code
            log["responseData"] = _response_data(response)
            success = response.is_success
            if not success:
                log["errorMessage"] = f"Destination answered with status {response.status_code}"
        except httpx.HTTPError as e:
            success = False
            log["errorMessage"] = str(e) or e.__class__.__name__

        log["status"] = "success" if success else "failure"
        counter = "successCount" if success else "failureCount"

        try:
            await db.webhook_logs.insert_one(log)
            await db.webhooks.update_one(
                {"_id": webhook["_id"]},
                {"$inc": {counter: 1}, "$set": {"lastTriggeredAt": datetime.utcnow()}},
            )
        except PyMongoError as e:
            logger.error(f"Failed to record delivery of {event} to webhook {webhook['_id']}: {e}")

        if success:
            delivered += 1
        else:
            logger.warning(f"Webhook {webhook['_id']} failed for {event}: {log['errorMessage']}")

    return delivered


async def send_test_event(
    webhook_id: str,
    url: str,
    secret: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> dict:
    """
    Send the synthetic test event to `url` and report what the destination answered.

    Raises:
        ExternalServiceError: the destination could not be reached
    """
    payload = {
        "event": TEST_EVENT,
        "timestamp": datetime.utcnow().isoformat(),
        "data": {
            "webhookId": webhook_id,
            "message": "Test webhook sent from the admin panel",
            "source": "admin_panel",
        },
    }

    logger.info(f"Sending test event for webhook {webhook_id} to {url}")
    try:
        response = await _post_json(url, payload, secret, transport)
    except httpx.HTTPError as e:
        logger.error(f"Test event for webhook {webhook_id} failed: {e}")
        raise ExternalServiceError(f"Could not reach {url}: {e}")

    return {
        "success": response.is_success,
        "statusCode": response.status_code,
        "data": _response_data(response),
    }
