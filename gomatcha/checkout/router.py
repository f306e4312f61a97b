import logging

from fastapi import APIRouter, HTTPException, status

from gomatcha.checkout.dependencies import CheckoutServiceDep
from gomatcha.checkout.exceptions import CheckoutValidationException
from gomatcha.checkout.models import CheckoutRequest, CheckoutResponse
from gomatcha.orders.exceptions import OrderCreationFailedException
from gomatcha.payments.exceptions import (
    EmptyPaymentSessionException,
    PaymentConfigurationException,
    PaymentProviderException,
)

logger = logging.getLogger(__name__)

checkout_router = APIRouter(
    prefix="/checkout",
    tags=["Checkout"],
)


@checkout_router.post("", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED)
async def submit_checkout_endpoint(service: CheckoutServiceDep, checkout_request: CheckoutRequest):
    """Crée la commande ; `redirectUrl` pointe vers Stripe (carte) ou la page de confirmation (COD)."""
    try:
        return await service.submit(checkout_request)
    except (CheckoutValidationException, EmptyPaymentSessionException) as e:
        logger.info(f"Checkout refusé: {e.message}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except PaymentConfigurationException as e:
        logger.error(f"Checkout impossible, configuration paiement: {e.message}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service temporarily unavailable")
    except PaymentProviderException as e:
        logger.error(f"Checkout: erreur fournisseur de paiement: {e.original_exception or e.message}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Payment provider error")
    except OrderCreationFailedException:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Unable to create order")
