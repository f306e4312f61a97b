import logging
from typing import List, Optional, Tuple

from gomatcha.orders import config
from gomatcha.orders.exceptions import (
    InvalidOrderStatusException,
    InvalidStatusTransitionException,
    OrderNotFoundException,
)
from gomatcha.orders.interfaces.repositories import AbstractOrderRepository
from gomatcha.orders.models import Order, OrderFulfillmentStatus, OrderRead, utc_now

logger = logging.getLogger(__name__)


class OrderService:
    """Lecture des commandes et transitions de statut."""

    def __init__(self, order_repository: AbstractOrderRepository):
        self.order_repository = order_repository

    async def get_order(self, order_id: str) -> OrderRead:
        order = await self.order_repository.get_by_id(order_id)
        if not order:
            raise OrderNotFoundException(order_id=order_id)
        return OrderRead.model_validate(order)

    async def get_fulfillment_status(self, order_id: str) -> OrderFulfillmentStatus:
        order = await self.order_repository.get_by_id(order_id)
        if not order:
            raise OrderNotFoundException(order_id=order_id)
        return OrderFulfillmentStatus(
            order_id=order.id,
            status=order.status,
            tracking_number=order.tracking_number,
            sent_to_fulfillment=order.sent_to_fulfillment,
            fulfillment_error=order.fulfillment_error,
        )

    async def list_orders(self, limit: int, offset: int, status: Optional[str] = None) -> Tuple[List[OrderRead], int]:
        if status and status not in config.ALLOWED_ORDER_STATUS:
            raise InvalidOrderStatusException(status=status, allowed=config.ALLOWED_ORDER_STATUS)
        orders, total = await self.order_repository.list_orders(limit=limit, offset=offset, status=status)
        return [OrderRead.model_validate(order) for order in orders], total

    async def update_status(self, order_id: str, new_status: str) -> OrderRead:
        """
        Change le statut d'une commande (action opérateur).

        Raises:
            InvalidOrderStatusException: statut inconnu.
            InvalidStatusTransitionException: transition non permise.
            OrderNotFoundException: commande absente.
        """
        if new_status not in config.ALLOWED_ORDER_STATUS:
            raise InvalidOrderStatusException(status=new_status, allowed=config.ALLOWED_ORDER_STATUS)

        order = await self.order_repository.get_by_id(order_id)
        if not order:
            raise OrderNotFoundException(order_id=order_id)
        if order.status == new_status:
            logger.info(f"[OrderService] Commande {order_id} déjà au statut '{new_status}'.")
            return OrderRead.model_validate(order)
        if not config.can_transition(order.status, new_status):
            raise InvalidStatusTransitionException(order_id, order.status, new_status)

        # La clause WHERE sur le statut lu protège contre une écriture concurrente
        updated = await self.order_repository.transition_status(order_id, [order.status], new_status)
        if not updated:
            await self.order_repository.rollback()
            current = await self.order_repository.get_by_id(order_id)
            raise InvalidStatusTransitionException(order_id, current.status if current else order.status, new_status)
        await self.order_repository.commit()
        logger.info(f"[OrderService] Commande {order_id}: '{order.status}' -> '{new_status}'.")
        return await self.get_order(order_id)

    async def mark_paid(
        self,
        order_id: str,
        payment_intent_id: Optional[str] = None,
    ) -> Tuple[Optional[Order], bool]:
        """
        Passe une commande à `paid` depuis `pending`.

        Idempotent : une commande déjà payée est retournée telle quelle.

        Returns:
            (commande ou None si absente, True si cette invocation a fait la transition)
        """
        values = {"paid_at": utc_now()}
        if payment_intent_id:
            values["stripe_payment_intent_id"] = payment_intent_id
        transitioned = await self.order_repository.transition_status(
            order_id, [config.STATUS_PENDING], config.STATUS_PAID, values
        )
        await self.order_repository.commit()
        order = await self.order_repository.get_by_id(order_id)
        if order is None:
            return None, False
        if transitioned:
            logger.info(f"[OrderService] Commande {order_id} marquée payée.")
        elif order.status != config.STATUS_PAID:
            logger.warning(
                f"[OrderService] Paiement reçu pour la commande {order_id} au statut '{order.status}', inchangée."
            )
        return order, transitioned

    async def cancel_unpaid(self, order_id: str) -> bool:
        """Annule une commande carte dont la session de paiement a expiré."""
        cancelled = await self.order_repository.transition_status(
            order_id, [config.STATUS_PENDING], config.STATUS_CANCELLED
        )
        await self.order_repository.commit()
        if cancelled:
            logger.info(f"[OrderService] Commande {order_id} annulée (session expirée).")
        return cancelled

    async def find_by_payment_session(self, session_id: str) -> Optional[Order]:
        return await self.order_repository.get_by_session_id(session_id)
