"""
Traitement des webhooks Stripe.

Les livraisons répétées d'un même événement sont sans effet : la transition
`pending -> paid` est une mise à jour conditionnelle, et les effets de bord
(emails, envoi transporteur) ne sont planifiés que par la livraison qui a
effectivement fait la transition.
"""
import json
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from gomatcha.core.tasks import TaskQueue
from gomatcha.email.service import EmailService
from gomatcha.orders.exceptions import OrderUpdateFailedException
from gomatcha.orders.models import OrderRead
from gomatcha.orders.service import OrderService
from gomatcha.payments.config import PaymentSettings
from gomatcha.payments.exceptions import (
    InvalidWebhookPayloadException,
    SignatureVerificationException,
    WebhookProcessingException,
)
from gomatcha.payments.gateway import AbstractPaymentGateway
from gomatcha.payments.models import WebhookEvent, WebhookResult, webhook_event_from_payload

logger = logging.getLogger(__name__)

CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"
CHECKOUT_SESSION_EXPIRED = "checkout.session.expired"


class WebhookService:

    def __init__(
        self,
        gateway: AbstractPaymentGateway,
        order_service: OrderService,
        settings: PaymentSettings,
        task_queue: TaskQueue,
        email_service: EmailService,
        fulfillment_dispatcher=None,
    ):
        self.gateway = gateway
        self.order_service = order_service
        self.settings = settings
        self.task_queue = task_queue
        self.email_service = email_service
        self.fulfillment_dispatcher = fulfillment_dispatcher

    def parse(self, payload: bytes, signature: Optional[str]) -> WebhookEvent:
        secret = self.settings.STRIPE_WEBHOOK_SECRET
        if secret:
            if not signature:
                logger.warning("[Webhook] En-tête de signature absent, événement rejeté.")
                raise SignatureVerificationException("Missing signature")
            return self.gateway.parse_event(payload, signature, secret)

        logger.warning("[Webhook] STRIPE_WEBHOOK_SECRET non configuré : événement traité SANS vérification.")
        try:
            return webhook_event_from_payload(json.loads(payload))
        except (ValueError, AttributeError) as e:
            raise InvalidWebhookPayloadException("Invalid payload") from e

    async def handle(self, payload: bytes, signature: Optional[str]) -> WebhookResult:
        event = self.parse(payload, signature)
        logger.info(f"[Webhook] Événement reçu: {event.type} ({event.id})")
        try:
            if event.type == CHECKOUT_SESSION_COMPLETED:
                return await self._handle_completed(event)
            if event.type == CHECKOUT_SESSION_EXPIRED:
                return await self._handle_expired(event)
        except (OrderUpdateFailedException, SQLAlchemyError) as e:
            logger.error(f"[Webhook] Erreur DB pendant le traitement de {event.id}: {e}", exc_info=True)
            raise WebhookProcessingException("Database error") from e

        return WebhookResult(event_type=event.type)

    async def _resolve_order_id(self, event: WebhookEvent) -> Optional[str]:
        if event.order_id:
            return event.order_id
        if event.session_id:
            order = await self.order_service.find_by_payment_session(event.session_id)
            if order:
                logger.info(f"[Webhook] Commande {order.id} retrouvée par la session {event.session_id}.")
                return order.id
        return None

    async def _handle_completed(self, event: WebhookEvent) -> WebhookResult:
        order_id = await self._resolve_order_id(event)
        if not order_id:
            # Rien à corriger par un nouvel essai : on acquitte
            logger.error(f"[Webhook] Aucune commande pour l'événement {event.id} (session {event.session_id}).")
            return WebhookResult(event_type=event.type)

        order, transitioned = await self.order_service.mark_paid(order_id, event.payment_intent_id)
        if order is None:
            logger.error(f"[Webhook] Commande {order_id} introuvable pour l'événement {event.id}.")
            return WebhookResult(event_type=event.type, order_id=order_id)

        if transitioned:
            self.task_queue.enqueue(self.email_service.send_order_emails, OrderRead.model_validate(order))
            if self.settings.AUTO_FULFILL_ON_PAYMENT and self.fulfillment_dispatcher is not None:
                logger.info(f"[Webhook] Envoi transporteur planifié pour la commande {order_id}.")
                self.task_queue.enqueue(self.fulfillment_dispatcher.run, order_id)

        return WebhookResult(event_type=event.type, order_id=order_id, status_changed=transitioned)

    async def _handle_expired(self, event: WebhookEvent) -> WebhookResult:
        order_id = await self._resolve_order_id(event)
        if not order_id:
            return WebhookResult(event_type=event.type)
        cancelled = await self.order_service.cancel_unpaid(order_id)
        return WebhookResult(event_type=event.type, order_id=order_id, status_changed=cancelled)
