import logging
from decimal import Decimal
from typing import List

from gomatcha.fulfillment.carrier import AbstractCarrierClient
from gomatcha.fulfillment.config import FulfillmentSettings
from gomatcha.fulfillment.courier import map_courier_service
from gomatcha.fulfillment.exceptions import (
    CarrierApiException,
    FulfillmentConfigurationException,
    OrderNotDispatchableException,
)
from gomatcha.fulfillment.models import FulfillmentProduct, FulfillmentRequest, FulfillmentResult
from gomatcha.orders.config import DISPATCHABLE_STATUSES, PAYMENT_METHOD_COD
from gomatcha.orders.exceptions import OrderNotFoundException
from gomatcha.orders.interfaces.repositories import AbstractOrderRepository
from gomatcha.orders.models import Order

logger = logging.getLogger(__name__)


def _money(value) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.01")))


class FulfillmentService:
    """
    Envoi d'une commande confirmée au transporteur.

    Un échec n'annule jamais la commande : il est enregistré sur la commande
    (`sent_to_fulfillment=False`, `fulfillment_error`) pour reprise opérateur.
    """

    def __init__(
        self,
        order_repository: AbstractOrderRepository,
        carrier_client: AbstractCarrierClient,
        settings: FulfillmentSettings,
    ):
        self.order_repository = order_repository
        self.carrier_client = carrier_client
        self.settings = settings

    def build_request(self, order: Order) -> FulfillmentRequest:
        courier, service = map_courier_service(order.courier_code, order.shipping_method, order.shipping_country)
        products: List[FulfillmentProduct] = []
        for index, item in enumerate(order.items, start=1):
            variant = item.get("variant_title")
            products.append(
                FulfillmentProduct(
                    sku=item.get("sku") or f"SKU-{index}",
                    name=f"{item['product_title']} - {variant}" if variant else item["product_title"],
                    variant=variant,
                    quantity=item["quantity"],
                    weight=self.settings.DEFAULT_ITEM_WEIGHT,
                    price=_money(item["unit_price"]),
                    currency=item.get("currency") or order.currency,
                )
            )
        is_cod = order.payment_method == PAYMENT_METHOD_COD
        return FulfillmentRequest(
            order_id=order.id,
            external_id=str(order.order_number or order.id),
            receiver_name=order.customer_name,
            receiver_phone=f"{order.phone_country_code or ''}{order.customer_phone}",
            receiver_email=order.customer_email,
            receiver_country=order.shipping_country,
            receiver_city=order.shipping_city or order.courier_office_city or "",
            receiver_address=order.shipping_address or order.courier_office_address or "",
            receiver_postcode=order.shipping_postal_code or "",
            courier_name=courier,
            service=service,
            office_id=order.courier_office_id,
            products=products,
            cod_amount=_money(order.total_with_shipping) if is_cod else 0.0,
            currency=order.currency,
            comment=f"{self.settings.ORDER_COMMENT_PREFIX} - {order.order_number or order.id}",
            shipping_price=_money(order.shipping_price),
            total_amount=_money(order.total_with_shipping),
        )

    async def _record_failure(self, order_id: str, error: str) -> None:
        await self.order_repository.record_fulfillment_failure(order_id, error)
        await self.order_repository.commit()

    async def dispatch(self, order_id: str) -> FulfillmentResult:
        """
        Envoie la commande au transporteur et enregistre le résultat.

        Raises:
            OrderNotFoundException: commande absente.
            OrderNotDispatchableException: statut incompatible.
            FulfillmentConfigurationException: identifiants absents (erreur enregistrée sur la commande).
        """
        order = await self.order_repository.get_by_id(order_id)
        if not order:
            raise OrderNotFoundException(order_id=order_id)
        if order.tracking_number or order.sent_to_fulfillment:
            logger.info(f"[FulfillmentService] Commande {order_id} déjà envoyée ({order.tracking_number}).")
            return FulfillmentResult(
                success=True,
                tracking_number=order.tracking_number,
                fulfillment_order_id=order.fulfillment_order_id,
            )
        if order.status not in DISPATCHABLE_STATUSES:
            raise OrderNotDispatchableException(order_id=order_id, status=order.status)

        request = self.build_request(order)
        try:
            carrier_result = await self.carrier_client.create_order(request)
        except FulfillmentConfigurationException as e:
            await self._record_failure(order_id, e.message)
            raise
        except CarrierApiException as e:
            logger.error(f"[FulfillmentService] Échec envoi commande {order_id}: {e.message}")
            await self._record_failure(order_id, e.message)
            return FulfillmentResult(success=False, error=e.message, retryable=e.retryable)

        recorded = await self.order_repository.record_fulfillment_success(
            order_id, carrier_result.tracking_number, carrier_result.fulfillment_order_id
        )
        await self.order_repository.commit()
        if not recorded:
            # Un envoi concurrent a déjà posé un numéro de suivi
            current = await self.order_repository.get_by_id(order_id)
            logger.warning(f"[FulfillmentService] Suivi déjà présent pour {order_id}, résultat du transporteur ignoré.")
            return FulfillmentResult(
                success=True,
                tracking_number=current.tracking_number if current else carrier_result.tracking_number,
                fulfillment_order_id=current.fulfillment_order_id if current else carrier_result.fulfillment_order_id,
            )

        logger.info(f"[FulfillmentService] Commande {order_id} envoyée, suivi {carrier_result.tracking_number}.")
        return FulfillmentResult(
            success=True,
            tracking_number=carrier_result.tracking_number,
            fulfillment_order_id=carrier_result.fulfillment_order_id,
        )
