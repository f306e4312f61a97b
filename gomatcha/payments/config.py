from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class PaymentSettings(BaseSettings):
    """Paramètres Stripe et URLs de retour du checkout."""
    STRIPE_SECRET_KEY: Optional[str] = None
    # Sans secret, les webhooks sont traités non vérifiés (mode test, journalisé)
    STRIPE_WEBHOOK_SECRET: Optional[str] = None
    CHECKOUT_SUCCESS_PATH: str = "/checkout/success"
    CHECKOUT_CANCEL_PATH: str = "/checkout/cancel"
    COD_SUCCESS_PATH: str = "/cod-success"
    # Envoi automatique au transporteur après paiement confirmé
    AUTO_FULFILL_ON_PAYMENT: bool = False

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = PaymentSettings()


def get_payment_settings() -> PaymentSettings:
    return settings
