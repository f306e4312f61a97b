from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class FulfillmentSettings(BaseSettings):
    """Paramètres du transporteur NextLevel et de la politique de relance."""
    NEXTLEVEL_APP_ID: Optional[str] = None
    NEXTLEVEL_APP_SECRET: Optional[str] = None
    NEXTLEVEL_API_BASE: str = "https://api.nextlevel.delivery/v1/fulfillment"
    # "mock" : numéros de suivi générés localement, aucun appel transporteur
    CARRIER_MODE: Literal["live", "mock"] = "live"
    REQUEST_TIMEOUT: float = 15.0

    # Relances des échecs transitoires (réseau, 5xx, 429)
    RETRY_MAX_ATTEMPTS: int = 3
    RETRY_BACKOFF_INITIAL: float = 1.0
    RETRY_BACKOFF_FACTOR: float = 2.0
    RETRY_BACKOFF_MAX: float = 30.0

    # Poids par défaut d'un article (kg)
    DEFAULT_ITEM_WEIGHT: float = 0.1
    ORDER_COMMENT_PREFIX: str = "Поръчка от gomatcha.bg"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def credentials_configured(self) -> bool:
        return bool(self.NEXTLEVEL_APP_ID and self.NEXTLEVEL_APP_SECRET)


settings = FulfillmentSettings()


def get_fulfillment_settings() -> FulfillmentSettings:
    return settings
