from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Tuple

from gomatcha.orders.models import Order


class AbstractOrderRepository(ABC):
    """
    Interface abstraite pour le repository des commandes.

    Les mises à jour sont partielles et conditionnelles (une seule ligne,
    clause WHERE sur l'état courant) : elles retournent False quand la
    condition n'est plus remplie, sans lever d'erreur.
    """

    @abstractmethod
    async def add(self, order_data: Dict[str, Any]) -> Order:
        raise NotImplementedError

    @abstractmethod
    async def get_by_id(self, order_id: str) -> Optional[Order]:
        raise NotImplementedError

    @abstractmethod
    async def get_by_session_id(self, session_id: str) -> Optional[Order]:
        raise NotImplementedError

    @abstractmethod
    async def list_orders(self, limit: int, offset: int, status: Optional[str] = None) -> Tuple[List[Order], int]:
        raise NotImplementedError

    @abstractmethod
    async def set_payment_session(self, order_id: str, session_id: str) -> bool:
        """Écrit la référence de session si aucune n'est encore enregistrée."""
        raise NotImplementedError

    @abstractmethod
    async def transition_status(
        self,
        order_id: str,
        from_statuses: Iterable[str],
        target: str,
        extra_values: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Passe la commande à `target` si son statut courant est dans `from_statuses`."""
        raise NotImplementedError

    @abstractmethod
    async def record_fulfillment_success(
        self,
        order_id: str,
        tracking_number: Optional[str],
        fulfillment_order_id: Optional[str],
    ) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def record_fulfillment_failure(self, order_id: str, error: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def commit(self) -> None:
        raise NotImplementedError

    @abstractmethod
    async def rollback(self) -> None:
        raise NotImplementedError
