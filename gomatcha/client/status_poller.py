"""
Suivi de l'expédition depuis la page de confirmation.

Relit `GET /orders/{id}/fulfillment` à intervalle fixe jusqu'à l'apparition
d'un numéro de suivi, ou jusqu'à épuisement des tentatives. Lecture seule,
annulable à tout moment (`cancel()` ou annulation de la tâche asyncio).
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from gomatcha.orders.models import OrderFulfillmentStatus

logger = logging.getLogger(__name__)


@dataclass
class PollOutcome:
    status: Optional[OrderFulfillmentStatus]
    attempts: int
    timed_out: bool = False
    cancelled: bool = False

    @property
    def tracking_number(self) -> Optional[str]:
        return self.status.tracking_number if self.status else None


class OrderStatusPoller:

    def __init__(
        self,
        base_url: str,
        interval: float = 2.0,
        max_attempts: int = 15,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        if interval < 0 or max_attempts < 1:
            raise ValueError("interval must be >= 0 and max_attempts >= 1")
        self.base_url = base_url.rstrip("/")
        self.interval = interval
        self.max_attempts = max_attempts
        self._http_client = http_client
        self._cancelled = asyncio.Event()

    @property
    def timeout(self) -> float:
        """Durée maximale approximative du suivi, en secondes."""
        return self.interval * (self.max_attempts - 1)

    def cancel(self) -> None:
        """Arrête le suivi en cours ou le prochain, même s'il n'a pas encore démarré."""
        self._cancelled.set()

    def reset(self) -> None:
        """Réarme le poller après une annulation, pour un nouveau suivi."""
        self._cancelled.clear()

    async def fetch_status(self, client: httpx.AsyncClient, order_id: str) -> Optional[OrderFulfillmentStatus]:
        try:
            response = await client.get(f"{self.base_url}/orders/{order_id}/fulfillment")
            response.raise_for_status()
        except httpx.HTTPError as e:
            # Lecture de confort : une erreur ponctuelle n'interrompt pas le suivi
            logger.warning(f"[StatusPoller] Lecture du statut de {order_id} en échec: {e}")
            return None
        return OrderFulfillmentStatus.model_validate(response.json())

    async def _wait(self) -> bool:
        """Attend l'intervalle ; True si le suivi a été annulé entre-temps."""
        try:
            await asyncio.wait_for(self._cancelled.wait(), timeout=self.interval)
            return True
        except asyncio.TimeoutError:
            return False

    async def poll(self, order_id: str) -> PollOutcome:
        client = self._http_client or httpx.AsyncClient(timeout=10.0)
        last_status: Optional[OrderFulfillmentStatus] = None
        try:
            for attempt in range(1, self.max_attempts + 1):
                if self._cancelled.is_set():
                    return PollOutcome(status=last_status, attempts=attempt - 1, cancelled=True)

                current = await self.fetch_status(client, order_id)
                if current is not None:
                    last_status = current
                    if current.tracking_number:
                        return PollOutcome(status=current, attempts=attempt)

                if attempt < self.max_attempts and await self._wait():
                    return PollOutcome(status=last_status, attempts=attempt, cancelled=True)

            logger.info(f"[StatusPoller] Pas de numéro de suivi pour {order_id} après {self.max_attempts} lectures.")
            return PollOutcome(status=last_status, attempts=self.max_attempts, timed_out=True)
        finally:
            if self._http_client is None:
                await client.aclose()
