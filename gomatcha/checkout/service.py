import logging
from typing import Any, Dict, Optional

from gomatcha.cart.exceptions import CartDomainException
from gomatcha.cart.models import Cart
from gomatcha.checkout.exceptions import CheckoutValidationException
from gomatcha.checkout.models import CheckoutRequest, CheckoutResponse
from gomatcha.core.tasks import TaskQueue
from gomatcha.email.service import EmailService
from gomatcha.orders import config as order_config
from gomatcha.orders.exceptions import OrderCreationFailedException
from gomatcha.orders.interfaces.repositories import AbstractOrderRepository
from gomatcha.orders.models import Order, OrderRead
from gomatcha.payments.config import PaymentSettings
from gomatcha.payments.service import PaymentSessionService
from gomatcha.pricing import service as pricing
from gomatcha.pricing.config import COUNTRY_NAMES
from gomatcha.pricing.exceptions import UnknownShippingMethodException
from gomatcha.pricing.models import PriceQuote, ShippingMethod

logger = logging.getLogger(__name__)


class CheckoutService:
    """
    Prise de commande.

    Valide la requête, recalcule les totaux côté serveur, persiste la commande
    puis oriente vers le paiement carte ou l'acceptation en paiement à la livraison.
    """

    def __init__(
        self,
        order_repository: AbstractOrderRepository,
        payment_service: PaymentSessionService,
        payment_settings: PaymentSettings,
        task_queue: TaskQueue,
        email_service: EmailService,
        fulfillment_dispatcher,
        site_url: str,
    ):
        self.order_repository = order_repository
        self.payment_service = payment_service
        self.payment_settings = payment_settings
        self.task_queue = task_queue
        self.email_service = email_service
        self.fulfillment_dispatcher = fulfillment_dispatcher
        self.site_url = site_url.rstrip("/")

    # --- Validation ---

    def _validate(self, request: CheckoutRequest) -> ShippingMethod:
        if not request.items:
            raise CheckoutValidationException("Cart is empty.")

        customer = request.customer
        if len(customer.full_name) < 2:
            raise CheckoutValidationException("Customer name is required.")
        if not customer.email:
            raise CheckoutValidationException("Customer email is required.")
        if not customer.phone or not customer.phone.strip():
            raise CheckoutValidationException("Customer phone is required.")

        shipping = request.shipping
        try:
            method = pricing.get_shipping_method(shipping.country, shipping.method)
        except UnknownShippingMethodException as e:
            raise CheckoutValidationException(e.message)

        has_locker = bool(shipping.office_id and shipping.office_id.strip())
        if method.delivery_type == "easybox" and not has_locker:
            raise CheckoutValidationException("An easybox locker must be selected.")
        if method.delivery_type == "office" and not has_locker:
            raise CheckoutValidationException("A courier office must be selected.")
        if not has_locker:
            if not shipping.address or not shipping.address.strip():
                raise CheckoutValidationException("Shipping address is required.")
            if not shipping.city or not shipping.city.strip():
                raise CheckoutValidationException("Shipping city is required.")
        return method

    # --- Construction de la commande ---

    def _build_order_data(
        self,
        request: CheckoutRequest,
        cart: Cart,
        quote: PriceQuote,
        method: ShippingMethod,
    ) -> Dict[str, Any]:
        customer = request.customer
        shipping = request.shipping
        served_as_requested = (shipping.country or "").upper() == quote.country_code
        lines = {line.variant_id: line for line in quote.lines}
        items = [
            {
                "product_title": item.product_title,
                "variant_title": item.variant_title,
                "variant_id": item.variant_id,
                "sku": item.sku,
                "quantity": item.quantity,
                "unit_price": float(lines[item.variant_id].unit_price),
                "currency": quote.currency,
            }
            for item in cart
        ]
        is_cod = request.payment_method == order_config.PAYMENT_METHOD_COD
        has_office = method.delivery_type in ("office", "easybox")
        return {
            "status": order_config.STATUS_COD_PENDING if is_cod else order_config.STATUS_PENDING,
            "payment_method": request.payment_method,
            "currency": quote.currency,
            "items": items,
            "total_amount": quote.subtotal,
            "shipping_price": quote.shipping_price,
            "total_with_shipping": quote.total,
            "customer_name": customer.full_name,
            "customer_email": str(customer.email),
            "customer_phone": customer.phone.strip(),
            "phone_country_code": customer.phone_country_code,
            # Pays effectivement tarifé : un pays non desservi est traité comme la Bulgarie
            "shipping_country": quote.country_code,
            "shipping_country_name": (shipping.country_name if served_as_requested else None)
            or COUNTRY_NAMES.get(quote.country_code),
            "shipping_city": shipping.city,
            "shipping_address": shipping.address,
            "shipping_postal_code": shipping.postal_code,
            "shipping_method": method.id,
            "courier_code": method.courier_code,
            "courier_name": method.courier_name,
            "courier_office_id": shipping.office_id if has_office else None,
            "courier_office_name": shipping.office_name if has_office else None,
            "courier_office_address": shipping.office_address if has_office else None,
            "courier_office_city": shipping.office_city if has_office else None,
            "courier_office_country_code": (shipping.office_country_code or quote.country_code) if has_office else None,
            "notes": request.notes,
        }

    # --- Soumission ---

    async def submit(self, request: CheckoutRequest) -> CheckoutResponse:
        """
        Crée la commande et retourne l'URL de redirection.

        Raises:
            CheckoutValidationException: requête invalide, rien n'est écrit.
            PaymentConfigurationException: carte demandée sans clé Stripe, rien n'est écrit.
            OrderCreationFailedException: échec d'écriture en base.
            PaymentProviderException: Stripe en erreur ; la commande reste `pending`.
        """
        method = self._validate(request)
        is_card = request.payment_method == order_config.PAYMENT_METHOD_CARD
        if is_card:
            self.payment_service.ensure_configured()

        try:
            cart = Cart(request.items)
        except CartDomainException as e:
            raise CheckoutValidationException(e.message)

        quote = pricing.build_quote(
            request.shipping.country,
            [(item.variant_id, item.quantity, item.price.amount) for item in cart],
            method.id,
        )
        order_data = self._build_order_data(request, cart, quote, method)

        try:
            order = await self.order_repository.add(order_data)
            await self.order_repository.commit()
        except OrderCreationFailedException:
            await self.order_repository.rollback()
            raise
        logger.info(
            f"[CheckoutService] Commande {order.id} (#{order.order_number}) créée: "
            f"{order.payment_method}, {order.total_with_shipping} {order.currency}"
        )

        redirect_url: Optional[str]
        if is_card:
            session = await self.payment_service.create_session(order)
            redirect_url = session.url
        else:
            # Paiement à la livraison : envoi transporteur hors requête
            self.task_queue.enqueue(self.fulfillment_dispatcher.run, order.id)
            self.task_queue.enqueue(self.email_service.send_order_emails, OrderRead.model_validate(order))
            redirect_url = f"{self.site_url}{self.payment_settings.COD_SUCCESS_PATH}?order_id={order.id}"

        return CheckoutResponse(
            order_id=order.id,
            order_number=order.order_number,
            status=order.status,
            payment_method=order.payment_method,
            redirect_url=redirect_url,
            currency=order.currency,
            total_amount=order.total_amount,
            shipping_price=order.shipping_price,
            total_with_shipping=order.total_with_shipping,
        )
