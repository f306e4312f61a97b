"""Authentification des opérateurs par clé d'API (en-tête X-API-Key)."""
import logging
import secrets
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader

from gomatcha.config import Settings, get_settings

logger = logging.getLogger(__name__)

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def require_admin_api_key(
    settings: Annotated[Settings, Depends(get_settings)],
    api_key: Annotated[Optional[str], Depends(api_key_header)],
) -> None:
    if not settings.ADMIN_API_KEY:
        logger.error("[Security] ADMIN_API_KEY non configurée, accès opérateur refusé.")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service temporarily unavailable",
        )
    if not api_key or not secrets.compare_digest(api_key, settings.ADMIN_API_KEY):
        logger.warning("[Security] Clé d'API opérateur absente ou invalide.")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication failed",
        )


AdminDep = Depends(require_admin_api_key)
