"""Exceptions spécifiques au domaine Pricing."""
from typing import Optional


class PricingDomainException(Exception):
    """Classe de base pour les exceptions du domaine Pricing."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class UnknownShippingMethodException(PricingDomainException):
    """Levée lorsque la méthode de livraison n'existe pas pour le pays."""
    def __init__(self, country_code: Optional[str], method_id: str):
        super().__init__(f"Unknown shipping method '{method_id}' for country '{country_code}'.")
        self.country_code = country_code
        self.method_id = method_id
