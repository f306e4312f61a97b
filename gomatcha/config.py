import logging
from typing import List, Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Charger les variables d'environnement AVANT de définir la classe Settings
load_dotenv()


class Settings(BaseSettings):
    # --- Application ---
    APP_NAME: str = "GoMatcha API"
    API_V1_PREFIX: str = "/api/v1"
    SITE_URL: str = "https://gomatcha.bg"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = [
        "https://gomatcha.bg",
        "https://www.gomatcha.bg",
        "http://localhost:5173",
        "http://localhost:8080",
    ]

    # --- Base de Données ---
    # DATABASE_URL a priorité sur les composants POSTGRES_*
    DATABASE_URL: Optional[str] = None
    POSTGRES_DB: str = "gomatcha"
    POSTGRES_USER: str = "gomatcha"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: str = "5432"
    DB_ECHO_LOG: bool = False

    # --- Opérateurs ---
    # Clé attendue dans l'en-tête X-API-Key pour les routes d'administration
    ADMIN_API_KEY: Optional[str] = None

    # --- Pagination ---
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@"
            f"{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )


settings = Settings()


def get_settings() -> Settings:
    """Dépendance FastAPI pour les paramètres globaux."""
    return settings


if not settings.ADMIN_API_KEY:
    logger.warning("ADMIN_API_KEY non définie : les routes opérateur répondront 503.")
