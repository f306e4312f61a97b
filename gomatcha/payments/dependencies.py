import logging
from typing import Annotated

from fastapi import Depends

from gomatcha.config import Settings, get_settings
from gomatcha.core.tasks import TaskQueue, get_task_queue
from gomatcha.email.dependencies import EmailServiceDep
from gomatcha.fulfillment.dependencies import FulfillmentDispatcherDep
from gomatcha.orders.dependencies import OrderRepositoryDep, OrderServiceDep
from gomatcha.payments.config import PaymentSettings, get_payment_settings
from gomatcha.payments.gateway import AbstractPaymentGateway
from gomatcha.payments.service import PaymentSessionService
from gomatcha.payments.stripe_gateway import StripePaymentGateway
from gomatcha.payments.webhook import WebhookService

logger = logging.getLogger(__name__)

PaymentSettingsDep = Annotated[PaymentSettings, Depends(get_payment_settings)]
TaskQueueDep = Annotated[TaskQueue, Depends(get_task_queue)]


def get_payment_gateway(settings: PaymentSettingsDep) -> AbstractPaymentGateway:
    return StripePaymentGateway(settings)


PaymentGatewayDep = Annotated[AbstractPaymentGateway, Depends(get_payment_gateway)]


def get_payment_session_service(
    gateway: PaymentGatewayDep,
    order_repository: OrderRepositoryDep,
    settings: PaymentSettingsDep,
    app_settings: Annotated[Settings, Depends(get_settings)],
) -> PaymentSessionService:
    return PaymentSessionService(
        gateway=gateway,
        order_repository=order_repository,
        settings=settings,
        site_url=app_settings.SITE_URL,
    )


PaymentSessionServiceDep = Annotated[PaymentSessionService, Depends(get_payment_session_service)]


def get_webhook_service(
    gateway: PaymentGatewayDep,
    order_service: OrderServiceDep,
    settings: PaymentSettingsDep,
    task_queue: TaskQueueDep,
    email_service: EmailServiceDep,
    fulfillment_dispatcher: FulfillmentDispatcherDep,
) -> WebhookService:
    return WebhookService(
        gateway=gateway,
        order_service=order_service,
        settings=settings,
        task_queue=task_queue,
        email_service=email_service,
        fulfillment_dispatcher=fulfillment_dispatcher,
    )


WebhookServiceDep = Annotated[WebhookService, Depends(get_webhook_service)]
