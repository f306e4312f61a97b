from abc import ABC, abstractmethod

from gomatcha.payments.models import PaymentSession, PaymentSessionRequest, WebhookEvent


class AbstractPaymentGateway(ABC):
    """Interface abstraite du fournisseur de paiement hébergé."""

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def create_checkout_session(self, request: PaymentSessionRequest) -> PaymentSession:
        """Crée une session de paiement hébergée.

        Raises:
            PaymentConfigurationException: clé absente.
            PaymentProviderException: erreur du fournisseur.
        """
        raise NotImplementedError

    @abstractmethod
    def parse_event(self, payload: bytes, signature: str, secret: str) -> WebhookEvent:
        """Vérifie la signature et décode l'événement.

        Raises:
            SignatureVerificationException: signature invalide.
            InvalidWebhookPayloadException: corps illisible.
        """
        raise NotImplementedError
