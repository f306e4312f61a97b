"""Exceptions spécifiques au domaine Fulfillment."""
from typing import Optional


class FulfillmentDomainException(Exception):
    """Classe de base pour les exceptions du domaine Fulfillment."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class FulfillmentConfigurationException(FulfillmentDomainException):
    """Identifiants transporteur absents. Une relance ne changera rien."""
    pass


class CarrierApiException(FulfillmentDomainException):
    """Erreur de l'API transporteur."""
    def __init__(self, message: str, status_code: Optional[int] = None, retryable: bool = False):
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class OrderNotDispatchableException(FulfillmentDomainException):
    """La commande n'est ni payée ni acceptée en paiement à la livraison."""
    def __init__(self, order_id: str, status: str):
        super().__init__(f"Order {order_id} cannot be sent to fulfillment in status '{status}'.")
        self.order_id = order_id
        self.status = status
