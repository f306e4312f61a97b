import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from fastapi.concurrency import run_in_threadpool

from gomatcha.email.config import EmailSettings
from gomatcha.email.exceptions import EmailConfigurationException, EmailSendingException
from gomatcha.email.sender import AbstractEmailSender

logger = logging.getLogger(__name__)


class SmtpEmailSender(AbstractEmailSender):
    """Implémentation de l'envoi d'email via SMTP standard."""

    def __init__(self, settings: EmailSettings):
        if not all([settings.SMTP_HOST, settings.SMTP_PORT, settings.SENDER_EMAIL, settings.SENDER_PASSWORD]):
            logger.error("[SmtpEmailSender] Configuration SMTP incomplète.")
            raise EmailConfigurationException("Configuration SMTP (host, port, user, password) incomplète.")

        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SENDER_EMAIL
        self.smtp_password = settings.SENDER_PASSWORD
        self.default_sender = settings.SENDER_EMAIL
        self.from_name = settings.DEFAULT_FROM_NAME
        self.use_tls = settings.USE_TLS
        logger.info(f"[SmtpEmailSender] Initialisé pour {self.smtp_host}:{self.smtp_port}")

    def _connect(self) -> smtplib.SMTP:
        # Port 465 : SSL implicite ; sinon STARTTLS si demandé
        if self.smtp_port == 465:
            return smtplib.SMTP_SSL(self.smtp_host, self.smtp_port)
        return smtplib.SMTP(self.smtp_host, self.smtp_port)

    def _deliver(self, sender: str, recipient_email: str, message: str) -> None:
        """Session SMTP bloquante ; la connexion est fermée même en cas d'erreur."""
        with self._connect() as server:
            if self.smtp_port != 465 and self.use_tls:
                server.starttls()
            server.login(self.smtp_user, self.smtp_password)
            server.sendmail(sender, [recipient_email], message)

    async def send_email(
        self,
        recipient_email: str,
        subject: str,
        html_content: str,
        sender_email: Optional[str] = None,
    ) -> bool:
        final_sender = sender_email or self.default_sender

        msg = MIMEMultipart("alternative")
        msg["From"] = f"{self.from_name} <{final_sender}>"
        msg["To"] = recipient_email
        msg["Subject"] = subject
        msg.attach(MIMEText(html_content, "html", "utf-8"))

        try:
            logger.info(f"[SmtpEmailSender] Envoi de l'email à {recipient_email} (Sujet: {subject})")
            await run_in_threadpool(self._deliver, final_sender, recipient_email, msg.as_string())
            return True

        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"[SmtpEmailSender] Échec authentification SMTP: {e}", exc_info=True)
            raise EmailSendingException("Échec authentification SMTP.", original_exception=e)
        except smtplib.SMTPRecipientsRefused as e:
            logger.error(f"[SmtpEmailSender] Destinataire refusé: {recipient_email}. Détails: {e.recipients}")
            return False
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"[SmtpEmailSender] Erreur SMTP lors de l'envoi à {recipient_email}: {e}", exc_info=True)
            raise EmailSendingException(f"Erreur SMTP: {e}", original_exception=e)
