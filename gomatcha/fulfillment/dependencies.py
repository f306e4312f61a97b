import logging
from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import sessionmaker

from gomatcha.database import get_session_factory
from gomatcha.fulfillment.carrier import AbstractCarrierClient
from gomatcha.fulfillment.config import FulfillmentSettings, get_fulfillment_settings
from gomatcha.fulfillment.mock_client import MockCarrierClient
from gomatcha.fulfillment.nextlevel_client import NextLevelCarrierClient
from gomatcha.fulfillment.service import FulfillmentService
from gomatcha.fulfillment.tasks import FulfillmentDispatcher, RetryPolicy
from gomatcha.orders.dependencies import OrderRepositoryDep

logger = logging.getLogger(__name__)

FulfillmentSettingsDep = Annotated[FulfillmentSettings, Depends(get_fulfillment_settings)]


def get_carrier_client(settings: FulfillmentSettingsDep) -> AbstractCarrierClient:
    if settings.CARRIER_MODE == "mock":
        logger.debug("Fourniture de MockCarrierClient")
        return MockCarrierClient()
    return NextLevelCarrierClient(settings)


CarrierClientDep = Annotated[AbstractCarrierClient, Depends(get_carrier_client)]


def get_fulfillment_service(
    order_repository: OrderRepositoryDep,
    carrier_client: CarrierClientDep,
    settings: FulfillmentSettingsDep,
) -> FulfillmentService:
    return FulfillmentService(order_repository=order_repository, carrier_client=carrier_client, settings=settings)


FulfillmentServiceDep = Annotated[FulfillmentService, Depends(get_fulfillment_service)]


def get_fulfillment_dispatcher(
    session_factory: Annotated[sessionmaker, Depends(get_session_factory)],
    carrier_client: CarrierClientDep,
    settings: FulfillmentSettingsDep,
) -> FulfillmentDispatcher:
    return FulfillmentDispatcher(
        session_factory=session_factory,
        carrier_client=carrier_client,
        settings=settings,
        retry_policy=RetryPolicy.from_settings(settings),
    )


FulfillmentDispatcherDep = Annotated[FulfillmentDispatcher, Depends(get_fulfillment_dispatcher)]
