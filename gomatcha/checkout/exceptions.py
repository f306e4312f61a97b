"""Exceptions spécifiques au checkout."""


class CheckoutDomainException(Exception):
    """Classe de base pour les exceptions du checkout."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class CheckoutValidationException(CheckoutDomainException):
    """Requête rejetée avant toute écriture ; le message est montré au client."""
    pass
