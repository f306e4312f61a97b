import json
import logging

import stripe
from fastapi.concurrency import run_in_threadpool

from gomatcha.payments.config import PaymentSettings
from gomatcha.payments.exceptions import (
    InvalidWebhookPayloadException,
    PaymentConfigurationException,
    PaymentProviderException,
    SignatureVerificationException,
)
from gomatcha.payments.gateway import AbstractPaymentGateway
from gomatcha.payments.models import (
    PaymentSession,
    PaymentSessionRequest,
    WebhookEvent,
    webhook_event_from_payload,
)

logger = logging.getLogger(__name__)


class StripePaymentGateway(AbstractPaymentGateway):
    """Sessions Stripe Checkout hébergées."""

    def __init__(self, settings: PaymentSettings):
        self.api_key = settings.STRIPE_SECRET_KEY

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def create_checkout_session(self, request: PaymentSessionRequest) -> PaymentSession:
        if not self.is_configured:
            logger.error("[StripeGateway] STRIPE_SECRET_KEY non configurée.")
            raise PaymentConfigurationException("Payment provider is not configured.")

        line_items = [
            {
                "price_data": {
                    "currency": request.currency.lower(),
                    "product_data": {
                        "name": item.name,
                        **({"description": item.description} if item.description else {}),
                    },
                    "unit_amount": item.unit_amount,
                },
                "quantity": item.quantity,
            }
            for item in request.line_items
        ]
        params = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": line_items,
            "success_url": request.success_url,
            "cancel_url": request.cancel_url,
            "metadata": {"order_id": request.order_id},
            "payment_intent_data": {"metadata": {"order_id": request.order_id}},
        }
        if request.shipping_amount > 0:
            params["shipping_options"] = [
                {
                    "shipping_rate_data": {
                        "type": "fixed_amount",
                        "fixed_amount": {"amount": request.shipping_amount, "currency": request.currency.lower()},
                        "display_name": request.shipping_label or "Shipping",
                    }
                }
            ]
        if request.customer_email:
            params["customer_email"] = request.customer_email

        try:
            # Le SDK Stripe est synchrone
            session = await run_in_threadpool(stripe.checkout.Session.create, api_key=self.api_key, **params)
        except stripe.StripeError as e:
            logger.error(f"[StripeGateway] Erreur Stripe pour la commande {request.order_id}: {e}", exc_info=True)
            raise PaymentProviderException("Payment provider error.", original_exception=e)

        logger.info(f"[StripeGateway] Session {session.id} créée pour la commande {request.order_id}")
        return PaymentSession(session_id=session.id, url=session.url)

    def parse_event(self, payload: bytes, signature: str, secret: str) -> WebhookEvent:
        try:
            stripe.Webhook.construct_event(payload, signature, secret)
        except stripe.SignatureVerificationError as e:
            raise SignatureVerificationException("Invalid signature") from e
        except ValueError as e:
            raise InvalidWebhookPayloadException("Invalid payload") from e
        return webhook_event_from_payload(json.loads(payload))
