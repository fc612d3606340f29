import json
from urllib.parse import unquote

import httpx
import pytest
from pymongo.errors import PyMongoError

from app.core.errors import ExternalServiceError
from app.core.notifications import (
    format_whatsapp_message,
    whatsapp_link,
    notify_order_created,
    dispatch_event,
    send_test_event,
)
from app.models.order import Order
from conftest import run


def make_order(**overrides):
    data = {
        "order_number": "PED-20250106-1A2B3C4D",
        "customer": {"name": "Maria Silva", "phone": "(11) 98765-4321"},
        "order_type": "delivery",
        "delivery_address": {"fullAddress": "Rua das Flores, 120 - Centro", "reference": "Portão azul"},
        "items": [
            {
                "product_id": "507f191e810c19729de860ea",
                "name": "Bolo de Cenoura",
                "quantity": 2,
                "selected_size": "Fatia",
                "selected_addons": ["Calda extra"],
                "selected_addons_description": "Calda extra",
                "notes": "Sem açúcar",
                "unit_price": 12.5,
                "line_subtotal": 25.0,
            }
        ],
        "payment_method": "pix",
        "totals": {"items_subtotal": 25.0, "delivery_fee": 5.0, "discounts": 0.0, "total": 30.0},
    }
    data.update(overrides)
    return Order(**data)


def test_message_lists_items_and_totals():
    message = format_whatsapp_message(make_order())

    assert "*Cliente:* Maria Silva" in message
    assert "*Endereço:* Rua das Flores, 120 - Centro" in message
    assert "*Referência:* Portão azul" in message
    assert "- 2x Bolo de Cenoura (R$ 12.50 c/u) = R$ 25.00" in message
    assert "Tamanho: Fatia" in message
    assert "Adicionais: Calda extra" in message
    assert "Obs: Sem açúcar" in message
    assert "*Taxa de Entrega:* R$ 5.00" in message
    assert "*Total do Pedido:* R$ 30.00" in message
    assert "*Forma de Pagamento:* PIX" in message
    assert "AGENDADA" not in message
    assert message.endswith("Pedido PED-20250106-1A2B3C4D gerado via site.")


def test_message_for_scheduled_pickup_paid_in_cash():
    order = make_order(
        order_type="pickup",
        delivery_address=None,
        payment_method="cash",
        change_due=50.0,
        totals={"items_subtotal": 25.0, "delivery_fee": 0.0, "discounts": 0.0, "total": 25.0},
        schedule_selection={"date": "2025-01-07", "timeWindow": "09:00-10:00"},
    )

    message = format_whatsapp_message(order)

    assert "📅 *RETIRADA AGENDADA* para 07/01/2025, entre 09:00 - 10:00" in message
    assert "*Tipo de pedido:* Retirada no local" in message
    assert "Endereço" not in message
    assert "Taxa de Entrega" not in message
    assert "*Forma de Pagamento:* Dinheiro" in message
    assert "*Troco para:* R$ 50.00" in message


def test_whatsapp_link_encodes_the_message():
    link = whatsapp_link("+55 (11) 98765-4321", "Pedido #1\nTotal: R$ 30,00 & mais")

    assert link.startswith("https://wa.me/5511987654321?text=")
    encoded = link.split("text=", 1)[1]
    assert "\n" not in encoded and " " not in encoded and "&" not in encoded
    assert unquote(encoded) == "Pedido #1\nTotal: R$ 30,00 & mais"


def test_notify_without_url_is_skipped():
    assert run(notify_order_created({"order_number": "PED-1"}, url=None)) is False


def test_notify_failure_is_reported_not_raised():
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    assert run(notify_order_created({"order_number": "PED-1"}, url="https://hooks.example.com", transport=transport)) is False


def test_notify_posts_the_order():
    received = []

    def handler(request):
        received.append(json.loads(request.content))
        return httpx.Response(200, json={"ok": True})

    sent = run(notify_order_created(
        {"order_number": "PED-1"},
        url="https://hooks.example.com",
        transport=httpx.MockTransport(handler),
    ))

    assert sent is True
    assert received == [{"event": "order.created", "data": {"order_number": "PED-1"}}]


def add_webhook(db, url, events, secret=None, active=True):
    return db.webhooks.add({
        "name": url,
        "url": url,
        "secret": secret,
        "events": events,
        "active": active,
        "successCount": 0,
        "failureCount": 0,
    })


def test_dispatch_logs_every_attempt(db):
    add_webhook(db, "https://ok.example.com/hook", ["order.created"], secret="s3cr3t")
    add_webhook(db, "https://down.example.com/hook", ["order.created"])
    add_webhook(db, "https://other.example.com/hook", ["order.canceled"])
    add_webhook(db, "https://off.example.com/hook", ["order.created"], active=False)
    seen = []

    def handler(request):
        seen.append((request.url.host, request.headers.get("Authorization")))
        if request.url.host == "down.example.com":
            return httpx.Response(500, text="unavailable")
        return httpx.Response(200, json={"received": True})

    delivered = run(dispatch_event(db, "order.created", {"id": "1"}, transport=httpx.MockTransport(handler)))

    assert delivered == 1
    assert sorted(seen) == [("down.example.com", None), ("ok.example.com", "Bearer s3cr3t")]

    logs = {log["webhookId"]: log for log in db.webhook_logs.docs}
    ok, down = db.webhooks.docs[0], db.webhooks.docs[1]
    assert logs[str(ok["_id"])]["status"] == "success"
    assert logs[str(ok["_id"])]["responseData"] == {"received": True}
    assert logs[str(down["_id"])]["status"] == "failure"
    assert logs[str(down["_id"])]["statusCode"] == 500
    assert logs[str(down["_id"])]["responseData"] == {"text": "unavailable"}
    assert ok["successCount"] == 1 and ok["failureCount"] == 0
    assert down["failureCount"] == 1
    assert "lastTriggeredAt" in down


def test_dispatch_survives_unreachable_destination(db):
    add_webhook(db, "https://gone.example.com/hook", ["order.created"])

    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    delivered = run(dispatch_event(db, "order.created", {"id": "1"}, transport=httpx.MockTransport(handler)))

    assert delivered == 0
    assert db.webhook_logs.docs[0]["status"] == "failure"
    assert "connection refused" in db.webhook_logs.docs[0]["errorMessage"]


def test_dispatch_without_webhook_registry(db, monkeypatch):
    def failing_find(*args, **kwargs):
        raise PyMongoError("not primary")

    monkeypatch.setattr(db.webhooks, "find", failing_find)

    assert run(dispatch_event(db, "order.created", {"id": "1"})) == 0
    assert db.webhook_logs.docs == []

def test_send_test_event_reports_answer():
    def handler(request):
        assert json.loads(request.content)["event"] == "webhook.test"
        return httpx.Response(202, text="accepted")

    result = run(send_test_event("abc", "https://hooks.example.com", transport=httpx.MockTransport(handler)))

    assert result == {"success": True, "statusCode": 202, "data": {"text": "accepted"}}


def test_send_test_event_unreachable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ExternalServiceError):
        run(send_test_event("abc", "https://hooks.example.com", transport=httpx.MockTransport(handler)))
