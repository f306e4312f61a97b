import logging
from typing import Optional

from fastapi import APIRouter, Header, Request, status
from fastapi.responses import JSONResponse

from gomatcha.payments.dependencies import WebhookServiceDep
from gomatcha.payments.exceptions import (
    InvalidWebhookPayloadException,
    SignatureVerificationException,
    WebhookProcessingException,
)

logger = logging.getLogger(__name__)

payment_router = APIRouter(
    prefix="/payments",
    tags=["Payments"],
)


@payment_router.post("/webhook")
async def stripe_webhook_endpoint(
    request: Request,
    service: WebhookServiceDep,
    stripe_signature: Optional[str] = Header(default=None, alias="stripe-signature"),
):
    """Réception des événements Stripe ; le corps brut est requis pour la signature."""
    payload = await request.body()
    try:
        await service.handle(payload, stripe_signature)
    except SignatureVerificationException as e:
        logger.warning(f"[Webhook] Signature rejetée: {e.message}")
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Invalid signature"})
    except InvalidWebhookPayloadException:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Invalid payload"})
    except WebhookProcessingException as e:
        logger.error(f"[Webhook] Traitement en échec: {e.message}")
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": "Webhook processing failed"})
    return {"received": True}
