import logging
import secrets
from typing import Any, List, Optional

from gomatcha.fulfillment.carrier import AbstractCarrierClient
from gomatcha.fulfillment.models import CarrierOrderResult, FulfillmentRequest, Office
from gomatcha.pricing.config import COUNTRY_NAMES

logger = logging.getLogger(__name__)


def generate_tracking_number() -> str:
    return "NL" + "".join(secrets.choice("0123456789") for _ in range(10))


class MockCarrierClient(AbstractCarrierClient):
    """Transporteur simulé : aucun appel réseau, numéro de suivi généré."""

    @property
    def is_configured(self) -> bool:
        return True

    async def create_order(self, request: FulfillmentRequest) -> CarrierOrderResult:
        tracking_number = generate_tracking_number()
        logger.info(f"[MockCarrier] Commande {request.order_id} -> suivi {tracking_number}")
        return CarrierOrderResult(
            tracking_number=tracking_number,
            fulfillment_order_id=f"MOCK-{request.order_id}",
        )

    async def fetch_offices(
        self,
        country: str,
        place: Optional[str] = None,
        post_code: Optional[str] = None,
        courier: Optional[str] = None,
        machines_only: bool = False,
    ) -> List[Office]:
        return []

    async def fetch_countries(self) -> Any:
        return [{"code": code, "name": name} for code, name in COUNTRY_NAMES.items()]
