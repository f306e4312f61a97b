from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class EmailSettings(BaseSettings):
    """Configuration du module email.

    Les paramètres sont chargés depuis les variables d'environnement avec le préfixe EMAIL_.
    Sans SMTP configuré, les notifications sont journalisées puis ignorées.
    """
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SENDER_EMAIL: Optional[str] = None
    SENDER_PASSWORD: Optional[str] = None
    USE_TLS: bool = True
    DEFAULT_FROM_NAME: str = "SEIJAKU"
    # Destinataire des notifications « nouvelle commande »
    SHOP_NOTIFICATION_EMAIL: Optional[str] = "info@gomatcha.bg"

    model_config = SettingsConfigDict(env_prefix="EMAIL_", env_file=".env", extra="ignore")


settings = EmailSettings()


def get_email_settings() -> EmailSettings:
    return settings
