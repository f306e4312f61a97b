import logging
from pathlib import Path
from typing import Any, Dict, Optional

import jinja2

from gomatcha.email.exceptions import EmailSendingException
from gomatcha.email.sender import AbstractEmailSender
from gomatcha.orders.config import ORDER_STATUS_DISPLAY, PAYMENT_METHOD_COD
from gomatcha.orders.models import OrderRead
from gomatcha.pricing.config import CURRENCY_SYMBOLS

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"

env = jinja2.Environment(
    loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=jinja2.select_autoescape(["html", "xml"]),
)


class EmailService:
    """Service applicatif pour les emails de commande.

    Un échec d'envoi est journalisé et ne remonte jamais vers la commande.
    """

    def __init__(self, email_sender: Optional[AbstractEmailSender], shop_email: Optional[str] = None):
        self.email_sender = email_sender
        self.shop_email = shop_email

    def _render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        template = env.get_template(template_name)
        return template.render(context)

    def _order_context(self, order: OrderRead) -> Dict[str, Any]:
        symbol = CURRENCY_SYMBOLS.get(order.currency, order.currency)
        return {
            "order": order,
            "order_label": order.order_number or order.id,
            "currency_symbol": symbol,
            "payment_method_text": "Наложен платеж" if order.payment_method == PAYMENT_METHOD_COD else "Плащане с карта",
            "status_text": ORDER_STATUS_DISPLAY.get(order.status, order.status),
            "order_date": order.created_at.strftime("%d.%m.%Y %H:%M"),
        }

    async def _send(self, recipient_email: str, subject: str, template_name: str, context: Dict[str, Any]) -> bool:
        if self.email_sender is None:
            logger.warning(f"[EmailService] SMTP non configuré, email '{subject}' non envoyé.")
            return False
        try:
            html_content = self._render_template(template_name, context)
            success = await self.email_sender.send_email(
                recipient_email=recipient_email,
                subject=subject,
                html_content=html_content,
            )
        except jinja2.TemplateError as e:
            logger.error(f"[EmailService] Erreur rendu template {template_name}: {e}", exc_info=True)
            return False
        except EmailSendingException as e:
            logger.error(f"[EmailService] Erreur lors de l'envoi '{subject}' à {recipient_email}: {e}", exc_info=True)
            return False
        if not success:
            logger.warning(f"[EmailService] L'envoi '{subject}' a échoué (retour sender: False) pour {recipient_email}")
        return success

    async def send_order_confirmation_email(self, order: OrderRead) -> bool:
        context = self._order_context(order)
        subject = f"Потвърждение на поръчка #{context['order_label']} - SEIJAKU"
        logger.info(f"[EmailService] Confirmation commande {order.id} pour {order.customer_email}")
        return await self._send(order.customer_email, subject, "order_confirmation_email.html", context)

    async def send_shop_notification_email(self, order: OrderRead) -> bool:
        if not self.shop_email:
            logger.debug("[EmailService] Pas d'adresse boutique configurée, notification ignorée.")
            return False
        context = self._order_context(order)
        subject = f"Нова поръчка #{context['order_label']} от {order.customer_name}"
        return await self._send(self.shop_email, subject, "shop_order_notification.html", context)

    async def send_order_emails(self, order: OrderRead) -> None:
        """Point d'entrée des tâches de fond : notification boutique puis confirmation client."""
        await self.send_shop_notification_email(order)
        await self.send_order_confirmation_email(order)
