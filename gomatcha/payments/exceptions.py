"""Exceptions spécifiques au domaine Payments."""
from typing import Optional


class PaymentDomainException(Exception):
    """Classe de base pour les exceptions du domaine Payments."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class PaymentConfigurationException(PaymentDomainException):
    """Clé Stripe absente : aucun appel externe n'est tenté."""
    pass


class PaymentProviderException(PaymentDomainException):
    """Le fournisseur de paiement est injoignable ou a refusé la requête."""
    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        super().__init__(message)
        self.original_exception = original_exception


class SignatureVerificationException(PaymentDomainException):
    """Signature de webhook absente ou invalide. Rejet définitif."""
    pass


class InvalidWebhookPayloadException(PaymentDomainException):
    pass


class WebhookProcessingException(PaymentDomainException):
    """Erreur de traitement (base de données) ; Stripe réessaiera la livraison."""
    pass


class EmptyPaymentSessionException(PaymentDomainException):
    """Aucune ligne à facturer : la session n'est pas créée."""
    pass
