from typing import Annotated

from fastapi import Depends

from gomatcha.checkout.service import CheckoutService
from gomatcha.config import Settings, get_settings
from gomatcha.email.dependencies import EmailServiceDep
from gomatcha.fulfillment.dependencies import FulfillmentDispatcherDep
from gomatcha.orders.dependencies import OrderRepositoryDep
from gomatcha.payments.dependencies import PaymentSessionServiceDep, PaymentSettingsDep, TaskQueueDep


def get_checkout_service(
    order_repository: OrderRepositoryDep,
    payment_service: PaymentSessionServiceDep,
    payment_settings: PaymentSettingsDep,
    task_queue: TaskQueueDep,
    email_service: EmailServiceDep,
    fulfillment_dispatcher: FulfillmentDispatcherDep,
    app_settings: Annotated[Settings, Depends(get_settings)],
) -> CheckoutService:
    return CheckoutService(
        order_repository=order_repository,
        payment_service=payment_service,
        payment_settings=payment_settings,
        task_queue=task_queue,
        email_service=email_service,
        fulfillment_dispatcher=fulfillment_dispatcher,
        site_url=app_settings.SITE_URL,
    )


CheckoutServiceDep = Annotated[CheckoutService, Depends(get_checkout_service)]
