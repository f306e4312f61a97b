import json
from unittest.mock import AsyncMock, Mock

import pytest
from sqlalchemy.exc import OperationalError

from gomatcha.payments.config import PaymentSettings
from gomatcha.payments.exceptions import (
    InvalidWebhookPayloadException,
    SignatureVerificationException,
    WebhookProcessingException,
)
from gomatcha.payments.webhook import WebhookService


def make_service(order_service, secret=None, gateway=None, task_queue=None):
    return WebhookService(
        gateway=gateway or Mock(),
        order_service=order_service,
        settings=PaymentSettings(STRIPE_SECRET_KEY="sk_test", STRIPE_WEBHOOK_SECRET=secret),
        task_queue=task_queue or Mock(),
        email_service=Mock(),
    )


def completed_payload(order_id="order-1"):
    return json.dumps({
        "id": "evt_1",
        "type": "checkout.session.completed",
        "data": {"object": {"id": "cs_1", "metadata": {"order_id": order_id}, "payment_intent": {"id": "pi_9"}}},
    }).encode("utf-8")


def test_parse_requires_signature_when_secret_is_set():
    service = make_service(AsyncMock(), secret="whsec_x")
    with pytest.raises(SignatureVerificationException):
        service.parse(completed_payload(), None)


def test_parse_delegates_verification_to_gateway():
    gateway = Mock()
    service = make_service(AsyncMock(), secret="whsec_x", gateway=gateway)
    service.parse(b"{}", "t=1,v1=abc")
    gateway.parse_event.assert_called_once_with(b"{}", "t=1,v1=abc", "whsec_x")


def test_parse_unverified_reads_nested_payment_intent():
    event = make_service(AsyncMock()).parse(completed_payload(), None)
    assert event.order_id == "order-1"
    assert event.session_id == "cs_1"
    assert event.payment_intent_id == "pi_9"


def test_parse_unverified_rejects_garbage():
    with pytest.raises(InvalidWebhookPayloadException):
        make_service(AsyncMock()).parse(b"[not json", None)


@pytest.mark.asyncio
async def test_database_error_is_reported_for_redelivery():
    order_service = AsyncMock()
    order_service.mark_paid.side_effect = OperationalError("UPDATE orders", {}, Exception("db down"))
    task_queue = Mock()
    service = make_service(order_service, task_queue=task_queue)

    with pytest.raises(WebhookProcessingException):
        await service.handle(completed_payload(), None)
    task_queue.enqueue.assert_not_called()
