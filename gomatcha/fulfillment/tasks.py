"""
Envoi transporteur en tâche de fond, avec relances bornées.

La tâche s'exécute après la réponse HTTP : elle ouvre sa propre session DB
à partir de la factory, une par tentative.
"""
import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from gomatcha.fulfillment.carrier import AbstractCarrierClient
from gomatcha.fulfillment.config import FulfillmentSettings
from gomatcha.fulfillment.exceptions import FulfillmentDomainException
from gomatcha.fulfillment.models import FulfillmentResult
from gomatcha.fulfillment.service import FulfillmentService
from gomatcha.orders.exceptions import OrderDomainException
from gomatcha.orders.repositories import SQLAlchemyOrderRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    backoff_initial: float = 1.0
    backoff_factor: float = 2.0
    backoff_max: float = 30.0
    jitter: bool = True

    @classmethod
    def from_settings(cls, settings: FulfillmentSettings) -> "RetryPolicy":
        return cls(
            max_attempts=max(1, settings.RETRY_MAX_ATTEMPTS),
            backoff_initial=settings.RETRY_BACKOFF_INITIAL,
            backoff_factor=settings.RETRY_BACKOFF_FACTOR,
            backoff_max=settings.RETRY_BACKOFF_MAX,
        )

    def delay_for(self, attempt: int) -> float:
        """Délai avant la tentative `attempt + 1` (attempt commence à 1)."""
        delay = min(self.backoff_initial * (self.backoff_factor ** (attempt - 1)), self.backoff_max)
        if self.jitter:
            delay = random.uniform(delay / 2, delay)
        return delay


class FulfillmentDispatcher:
    """Exécute `FulfillmentService.dispatch` hors requête, avec relances."""

    def __init__(
        self,
        session_factory: sessionmaker,
        carrier_client: AbstractCarrierClient,
        settings: FulfillmentSettings,
        retry_policy: RetryPolicy,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.session_factory = session_factory
        self.carrier_client = carrier_client
        self.settings = settings
        self.retry_policy = retry_policy
        self.sleep = sleep

    async def _attempt(self, order_id: str) -> FulfillmentResult:
        async with self.session_factory() as session:
            service = FulfillmentService(
                order_repository=SQLAlchemyOrderRepository(session),
                carrier_client=self.carrier_client,
                settings=self.settings,
            )
            return await service.dispatch(order_id)

    async def _record_error(self, order_id: str, error: str) -> None:
        """Trace l'erreur sur la commande dans une session neuve, pour l'opérateur."""
        try:
            async with self.session_factory() as session:
                repository = SQLAlchemyOrderRepository(session)
                await repository.record_fulfillment_failure(order_id, error)
                await repository.commit()
        except (SQLAlchemyError, OrderDomainException) as e:
            logger.error(f"[FulfillmentDispatcher] Impossible d'enregistrer l'erreur sur {order_id}: {e}")

    async def run(self, order_id: str) -> FulfillmentResult:
        result = FulfillmentResult(success=False, error="Not attempted")
        for attempt in range(1, self.retry_policy.max_attempts + 1):
            try:
                result = await self._attempt(order_id)
            except (FulfillmentDomainException, OrderDomainException) as e:
                # Configuration absente, commande introuvable ou non expédiable : pas de relance
                logger.error(f"[FulfillmentDispatcher] Commande {order_id} non envoyée: {e}")
                return FulfillmentResult(success=False, error=str(e))
            except SQLAlchemyError as e:
                logger.error(f"[FulfillmentDispatcher] Erreur DB pendant l'envoi de {order_id}: {e}", exc_info=True)
                error = f"Database error during fulfillment: {e}"
                await self._record_error(order_id, error)
                return FulfillmentResult(success=False, error=error)

            if result.success or not result.retryable:
                return result
            if attempt < self.retry_policy.max_attempts:
                delay = self.retry_policy.delay_for(attempt)
                logger.warning(
                    f"[FulfillmentDispatcher] Tentative {attempt}/{self.retry_policy.max_attempts} "
                    f"échouée pour {order_id} ({result.error}), nouvelle tentative dans {delay:.1f}s."
                )
                await self.sleep(delay)

        logger.error(f"[FulfillmentDispatcher] Abandon de l'envoi de {order_id}: {result.error}")
        return result
