"""Backend de la boutique GoMatcha / SEIJAKU : checkout, paiement, expédition."""

__version__ = "1.0.0"
