import logging
import time
from decimal import Decimal
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from gomatcha.config import Settings, get_settings
from gomatcha.core.security import AdminDep, api_key_header, require_admin_api_key
from gomatcha.fulfillment.dependencies import CarrierClientDep, FulfillmentServiceDep, FulfillmentSettingsDep
from gomatcha.fulfillment.exceptions import (
    CarrierApiException,
    FulfillmentConfigurationException,
    OrderNotDispatchableException,
)
from gomatcha.fulfillment.mock_client import MockCarrierClient
from gomatcha.fulfillment.models import (
    FulfillmentResult,
    FulfillmentTestResponse,
    FulfillmentTriggerRequest,
    OfficesResponse,
    SamedayBoxesResponse,
)
from gomatcha.fulfillment.service import FulfillmentService
from gomatcha.orders.exceptions import OrderNotFoundException, OrderUpdateFailedException
from gomatcha.orders.models import Order

logger = logging.getLogger(__name__)

fulfillment_router = APIRouter(
    prefix="/fulfillment",
    tags=["Fulfillment"],
)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def build_test_order() -> Order:
    """Commande fictive pour le diagnostic (jamais persistée)."""
    return Order(
        id=f"TEST-{int(time.time() * 1000)}",
        status="cod_pending",
        payment_method="cod",
        currency="BGN",
        items=[{
            "product_title": "SEIJAKU Церемониална Матча",
            "variant_title": "30g",
            "quantity": 1,
            "unit_price": 28.00,
            "currency": "BGN",
        }],
        total_amount=Decimal("28.00"),
        shipping_price=Decimal("6.00"),
        total_with_shipping=Decimal("34.00"),
        customer_name="Тест Клиент",
        customer_email="test@example.com",
        customer_phone="+359888123456",
        shipping_country="BG",
        shipping_city="София",
        shipping_address="ул. Тестова 1",
        shipping_postal_code="1000",
        shipping_method="econt_address",
        courier_code="ECONT",
        courier_name="Econt",
    )


@fulfillment_router.post("", response_model=FulfillmentResult, dependencies=[AdminDep])
async def trigger_fulfillment_endpoint(
    service: FulfillmentServiceDep,
    trigger: FulfillmentTriggerRequest,
):
    """Envoie une commande payée ou en paiement à la livraison au transporteur."""
    if not trigger.order_id:
        return _error(status.HTTP_400_BAD_REQUEST, "Order ID is required")
    try:
        return await service.dispatch(trigger.order_id)
    except OrderNotFoundException:
        return _error(status.HTTP_404_NOT_FOUND, "Order not found")
    except OrderNotDispatchableException as e:
        return _error(status.HTTP_409_CONFLICT, e.message)
    except FulfillmentConfigurationException:
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "Service temporarily unavailable")
    except OrderUpdateFailedException as e:
        logger.exception(f"Erreur DB lors de l'envoi de {trigger.order_id}: {e}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


@fulfillment_router.get("")
async def fulfillment_action_endpoint(
    carrier_client: CarrierClientDep,
    fulfillment_settings: FulfillmentSettingsDep,
    app_settings: Annotated[Settings, Depends(get_settings)],
    api_key: Annotated[Optional[str], Depends(api_key_header)],
    action: str = Query(...),
    country: Optional[str] = Query(default=None),
    place: Optional[str] = Query(default=None),
    post_code: Optional[str] = Query(default=None),
    courier: Optional[str] = Query(default=None),
    machines_only: bool = Query(default=False),
):
    """Actions de lecture : `test`, `sameday-boxes`, `offices`, `countries`."""
    if action == "test":
        await require_admin_api_key(app_settings, api_key)
        # Le diagnostic passe toujours par le transporteur simulé
        service = FulfillmentService(
            order_repository=None,
            carrier_client=MockCarrierClient(),
            settings=fulfillment_settings,
        )
        test_request = service.build_request(build_test_order())
        carrier_result = await service.carrier_client.create_order(test_request)
        return FulfillmentTestResponse(
            credentials_configured=fulfillment_settings.credentials_configured,
            app_id_set=bool(fulfillment_settings.NEXTLEVEL_APP_ID),
            app_secret_set=bool(fulfillment_settings.NEXTLEVEL_APP_SECRET),
            result=FulfillmentResult(success=True, **carrier_result.model_dump()),
        )

    try:
        if action == "sameday-boxes":
            boxes = await carrier_client.fetch_offices("BG", place=place, courier="Sameday", machines_only=True)
            cities = sorted({box.place for box in boxes if box.place})
            return SamedayBoxesResponse(success=True, boxes=boxes, cities=cities)

        if action == "offices":
            if not country:
                return JSONResponse(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    content={"success": False, "error": "Country code is required", "offices": []},
                )
            offices = await carrier_client.fetch_offices(
                country.upper(), place=place, post_code=post_code, courier=courier, machines_only=machines_only
            )
            return OfficesResponse(success=True, offices=offices)

        if action == "countries":
            return await carrier_client.fetch_countries()

    except FulfillmentConfigurationException:
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "Service temporarily unavailable")
    except CarrierApiException as e:
        logger.error(f"Action '{action}' en échec: {e.message}")
        return _error(status.HTTP_502_BAD_GATEWAY, e.message)

    return _error(status.HTTP_400_BAD_REQUEST, f"Unknown action '{action}'")
