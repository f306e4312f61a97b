from abc import ABC, abstractmethod
from typing import Any, List, Optional

from gomatcha.fulfillment.models import CarrierOrderResult, FulfillmentRequest, Office


class AbstractCarrierClient(ABC):
    """Interface abstraite de l'API transporteur."""

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def create_order(self, request: FulfillmentRequest) -> CarrierOrderResult:
        """Soumet un envoi.

        Raises:
            FulfillmentConfigurationException: identifiants absents.
            CarrierApiException: erreur réseau ou réponse refusée.
        """
        raise NotImplementedError

    @abstractmethod
    async def fetch_offices(
        self,
        country: str,
        place: Optional[str] = None,
        post_code: Optional[str] = None,
        courier: Optional[str] = None,
        machines_only: bool = False,
    ) -> List[Office]:
        raise NotImplementedError

    @abstractmethod
    async def fetch_countries(self) -> Any:
        raise NotImplementedError
