import logging
from decimal import Decimal

from gomatcha.orders.exceptions import OrderUpdateFailedException
from gomatcha.orders.interfaces.repositories import AbstractOrderRepository
from gomatcha.orders.models import Order
from gomatcha.payments.config import PaymentSettings
from gomatcha.payments.exceptions import EmptyPaymentSessionException, PaymentConfigurationException
from gomatcha.payments.gateway import AbstractPaymentGateway
from gomatcha.payments.models import PaymentLineItem, PaymentSession, PaymentSessionRequest
from gomatcha.pricing.service import to_minor_units

logger = logging.getLogger(__name__)


class PaymentSessionService:
    """Crée la session de paiement hébergée d'une commande carte."""

    def __init__(
        self,
        gateway: AbstractPaymentGateway,
        order_repository: AbstractOrderRepository,
        settings: PaymentSettings,
        site_url: str,
    ):
        self.gateway = gateway
        self.order_repository = order_repository
        self.settings = settings
        self.site_url = site_url.rstrip("/")

    def ensure_configured(self) -> None:
        if not self.gateway.is_configured:
            logger.error("[PaymentSessionService] Fournisseur de paiement non configuré.")
            raise PaymentConfigurationException("Payment provider is not configured.")

    def build_request(self, order: Order) -> PaymentSessionRequest:
        if not order.items:
            raise EmptyPaymentSessionException(f"Order {order.id} has no items to charge.")
        line_items = [
            PaymentLineItem(
                name=item["product_title"],
                description=item.get("variant_title"),
                unit_amount=to_minor_units(Decimal(str(item["unit_price"]))),
                quantity=item["quantity"],
            )
            for item in order.items
        ]
        return PaymentSessionRequest(
            order_id=order.id,
            currency=order.currency,
            line_items=line_items,
            shipping_amount=to_minor_units(order.shipping_price or Decimal("0")),
            shipping_label=order.courier_name or order.shipping_method,
            customer_email=order.customer_email,
            success_url=(
                f"{self.site_url}{self.settings.CHECKOUT_SUCCESS_PATH}"
                f"?session_id={{CHECKOUT_SESSION_ID}}&order_id={order.id}"
            ),
            cancel_url=f"{self.site_url}{self.settings.CHECKOUT_CANCEL_PATH}?order_id={order.id}",
        )

    async def create_session(self, order: Order) -> PaymentSession:
        """
        Crée la session puis enregistre sa référence sur la commande.

        Les deux étapes ne sont pas atomiques : si l'écriture de la référence
        échoue, la session reste valide car le webhook retrouve la commande
        par `metadata.order_id`.
        """
        self.ensure_configured()
        request = self.build_request(order)
        session = await self.gateway.create_checkout_session(request)

        try:
            written = await self.order_repository.set_payment_session(order.id, session.session_id)
            await self.order_repository.commit()
        except OrderUpdateFailedException:
            await self.order_repository.rollback()
            logger.error(
                f"[PaymentSessionService] Session {session.session_id} orpheline : "
                f"référence non enregistrée sur la commande {order.id}."
            )
            return session

        if not written:
            logger.warning(
                f"[PaymentSessionService] La commande {order.id} a déjà une session, "
                f"{session.session_id} non enregistrée."
            )
        return session
