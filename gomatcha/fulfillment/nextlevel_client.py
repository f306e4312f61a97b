import logging
from typing import Any, Dict, List, Optional

import httpx

from gomatcha.fulfillment.carrier import AbstractCarrierClient
from gomatcha.fulfillment.config import FulfillmentSettings
from gomatcha.fulfillment.exceptions import CarrierApiException, FulfillmentConfigurationException
from gomatcha.fulfillment.models import CarrierOrderResult, FulfillmentRequest, Office
from gomatcha.fulfillment.signing import build_signed_headers, serialize_payload

logger = logging.getLogger(__name__)


def _first_present(data: Dict[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return str(value)
    return None


def map_office(raw: Dict[str, Any], country_code: str) -> Office:
    if raw.get("street") and raw.get("street_num"):
        address = f"{raw['street']} {raw['street_num']}"
    else:
        address = raw.get("address") or ""
    return Office(
        id=str(raw.get("id") or ""),
        name=raw.get("name") or "",
        place=raw.get("place") or raw.get("city") or "",
        post_code=str(raw.get("post_code") or raw.get("postcode") or ""),
        address=address,
        country=raw.get("country") or country_code,
        is_machine=bool(raw.get("is_machine")),
    )


class NextLevelCarrierClient(AbstractCarrierClient):
    """Client HTTP de l'API fulfillment NextLevel, requêtes signées HMAC."""

    def __init__(self, settings: FulfillmentSettings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.base_url = settings.NEXTLEVEL_API_BASE.rstrip("/")
        self.transport = transport

    @property
    def is_configured(self) -> bool:
        return self.settings.credentials_configured

    def _require_credentials(self) -> None:
        if not self.is_configured:
            logger.error("[NextLevel] NEXTLEVEL_APP_ID / NEXTLEVEL_APP_SECRET non configurés.")
            raise FulfillmentConfigurationException("Fulfillment API credentials not configured")

    async def _request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        self._require_credentials()
        body = serialize_payload(payload)
        headers = build_signed_headers(self.settings.NEXTLEVEL_APP_ID, self.settings.NEXTLEVEL_APP_SECRET, body)
        headers.update({"Content-Type": "application/json", "Accept": "application/json"})

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.settings.REQUEST_TIMEOUT,
                transport=self.transport,
            ) as client:
                response = await client.request(
                    method, path, content=body.encode("utf-8") if body else None, params=params, headers=headers
                )
        except httpx.TimeoutException as e:
            logger.warning(f"[NextLevel] Timeout {method} {path}: {e}")
            raise CarrierApiException("NextLevel API timeout", retryable=True) from e
        except httpx.TransportError as e:
            logger.warning(f"[NextLevel] Erreur réseau {method} {path}: {e}")
            raise CarrierApiException(f"NextLevel API unreachable: {e}", retryable=True) from e

        if response.status_code >= 400:
            logger.error(f"[NextLevel] {method} {path} -> {response.status_code}: {response.text[:500]}")
            raise CarrierApiException(
                f"NextLevel API error: {response.status_code}",
                status_code=response.status_code,
                retryable=response.status_code >= 500 or response.status_code == 429,
            )
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"[NextLevel] Réponse illisible {method} {path}: {response.text[:500]}")
            raise CarrierApiException("Invalid API response from NextLevel") from e

    async def create_order(self, request: FulfillmentRequest) -> CarrierOrderResult:
        logger.info(f"[NextLevel] Envoi de la commande {request.order_id} ({request.courier_name}/{request.service})")
        data = await self._request("POST", "/orders", payload=request.to_payload())
        if not isinstance(data, dict):
            raise CarrierApiException("Invalid API response from NextLevel")
        return CarrierOrderResult(
            tracking_number=_first_present(data, "tracking_number", "trackingNumber", "awb"),
            fulfillment_order_id=_first_present(data, "id", "order_id", "fulfillment_order_id"),
        )

    async def fetch_offices(
        self,
        country: str,
        place: Optional[str] = None,
        post_code: Optional[str] = None,
        courier: Optional[str] = None,
        machines_only: bool = False,
    ) -> List[Office]:
        params = {"country": country}
        if place:
            params["place"] = place
        if post_code:
            params["post_code"] = post_code
        if courier:
            params["courier"] = courier

        data = await self._request("GET", "/offices/", params=params)
        if isinstance(data, list):
            raw_offices = data
        elif isinstance(data, dict) and isinstance(data.get("data"), list):
            raw_offices = data["data"]
        else:
            raw_offices = []
        if machines_only:
            raw_offices = [office for office in raw_offices if office.get("is_machine") is True]
        return [map_office(office, country) for office in raw_offices]

    async def fetch_countries(self) -> Any:
        return await self._request("GET", "/countries")
