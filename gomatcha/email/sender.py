from abc import ABC, abstractmethod
from typing import Optional


class AbstractEmailSender(ABC):
    """Interface abstraite pour un service d'envoi d'e-mails."""

    @abstractmethod
    async def send_email(
        self,
        recipient_email: str,
        subject: str,
        html_content: str,
        sender_email: Optional[str] = None,
    ) -> bool:
        """Envoie un email.

        Returns:
            True si l'envoi a réussi, False sinon.

        Raises:
            EmailSendingException: Si une erreur majeure empêche l'envoi.
        """
        raise NotImplementedError
