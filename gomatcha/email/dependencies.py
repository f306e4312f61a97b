import logging
from typing import Annotated, Optional

from fastapi import Depends

from gomatcha.email.config import EmailSettings, get_email_settings
from gomatcha.email.exceptions import EmailConfigurationException
from gomatcha.email.sender import AbstractEmailSender
from gomatcha.email.service import EmailService
from gomatcha.email.smtp_sender import SmtpEmailSender

logger = logging.getLogger(__name__)

EmailSettingsDep = Annotated[EmailSettings, Depends(get_email_settings)]


def get_email_sender(settings: EmailSettingsDep) -> Optional[AbstractEmailSender]:
    """
    Fournit le sender SMTP, ou None si la configuration est incomplète.

    L'absence d'email ne doit pas empêcher la prise de commande.
    """
    try:
        return SmtpEmailSender(settings)
    except EmailConfigurationException:
        logger.warning("[Email] SMTP non configuré, les notifications de commande sont désactivées.")
        return None


EmailSenderDep = Annotated[Optional[AbstractEmailSender], Depends(get_email_sender)]


def get_email_service(email_sender: EmailSenderDep, settings: EmailSettingsDep) -> EmailService:
    return EmailService(email_sender=email_sender, shop_email=settings.SHOP_NOTIFICATION_EMAIL)


EmailServiceDep = Annotated[EmailService, Depends(get_email_service)]
