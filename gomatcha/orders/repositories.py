import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from fastcrud import FastCRUD
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from gomatcha.orders.exceptions import OrderCreationFailedException, OrderUpdateFailedException
from gomatcha.orders.interfaces.repositories import AbstractOrderRepository
from gomatcha.orders.models import Order, utc_now

logger = logging.getLogger(__name__)

FIRST_ORDER_NUMBER = 1001
ORDER_NUMBER_ATTEMPTS = 5


class SQLAlchemyOrderRepository(AbstractOrderRepository):
    """Implémentation SQLAlchemy du repository des commandes."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        # FastCRUD pour les comptages ; les écritures passent par des UPDATE ciblés
        self.crud_order = FastCRUD(Order)

    async def _next_order_number(self) -> int:
        result = await self.db.execute(select(func.max(Order.order_number)))
        current = result.scalar_one_or_none()
        return (current or FIRST_ORDER_NUMBER - 1) + 1

    async def add(self, order_data: Dict[str, Any]) -> Order:
        """
        Crée une commande avec le prochain numéro séquentiel.

        Deux créations simultanées peuvent lire le même maximum ; la contrainte
        d'unicité rejette la seconde, qui est rejouée avec un nouveau numéro.
        La création doit être la première écriture de la transaction : un conflit
        annule la transaction en cours.
        """
        logger.debug(f"[OrderRepository] Création d'une commande pour {order_data.get('customer_email')}")
        for attempt in range(1, ORDER_NUMBER_ATTEMPTS + 1):
            try:
                order = Order(**order_data)
                order.order_number = await self._next_order_number()
                self.db.add(order)
                await self.db.flush()
                await self.db.refresh(order)
                return order
            except IntegrityError as e:
                await self.db.rollback()
                if attempt == ORDER_NUMBER_ATTEMPTS:
                    logger.error(f"[OrderRepository] Numéro de commande toujours en conflit après {attempt} essais: {e}")
                    raise OrderCreationFailedException("Unable to create order.") from e
                logger.warning(f"[OrderRepository] Numéro de commande déjà pris (essai {attempt}), nouvel essai.")
            except SQLAlchemyError as e:
                logger.error(f"[OrderRepository] Erreur DB lors de la création de commande: {e}", exc_info=True)
                raise OrderCreationFailedException("Unable to create order.") from e

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        stmt = select(Order).where(Order.id == order_id).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        order = result.scalars().first()
        if not order:
            logger.warning(f"[OrderRepository] Commande non trouvée: {order_id}")
        return order

    async def get_by_session_id(self, session_id: str) -> Optional[Order]:
        stmt = (
            select(Order)
            .where(Order.stripe_session_id == session_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_orders(self, limit: int, offset: int, status: Optional[str] = None) -> Tuple[List[Order], int]:
        filters: Dict[str, Any] = {"status": status} if status else {}
        stmt = select(Order).order_by(Order.created_at.desc()).offset(offset).limit(limit)
        if status:
            stmt = stmt.where(Order.status == status)
        result = await self.db.execute(stmt)
        orders = list(result.scalars().all())
        total = await self.crud_order.count(db=self.db, **filters)
        return orders, total

    async def _conditional_update(self, order_id: str, conditions: list, values: Dict[str, Any]) -> bool:
        values = {**values, "updated_at": utc_now()}
        stmt = (
            update(Order)
            .where(Order.id == order_id, *conditions)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"[OrderRepository] Erreur DB mise à jour commande {order_id}: {e}", exc_info=True)
            raise OrderUpdateFailedException(f"Unable to update order {order_id}.") from e
        return result.rowcount == 1

    async def set_payment_session(self, order_id: str, session_id: str) -> bool:
        return await self._conditional_update(
            order_id,
            [Order.stripe_session_id.is_(None)],
            {"stripe_session_id": session_id},
        )

    async def transition_status(
        self,
        order_id: str,
        from_statuses: Iterable[str],
        target: str,
        extra_values: Optional[Dict[str, Any]] = None,
    ) -> bool:
        return await self._conditional_update(
            order_id,
            [Order.status.in_(list(from_statuses))],
            {"status": target, **(extra_values or {})},
        )

    async def record_fulfillment_success(
        self,
        order_id: str,
        tracking_number: Optional[str],
        fulfillment_order_id: Optional[str],
    ) -> bool:
        return await self._conditional_update(
            order_id,
            [Order.tracking_number.is_(None)],
            {
                "sent_to_fulfillment": True,
                "tracking_number": tracking_number,
                "fulfillment_order_id": fulfillment_order_id,
                "fulfillment_error": None,
            },
        )

    async def record_fulfillment_failure(self, order_id: str, error: str) -> bool:
        # Une commande déjà suivie n'est pas rétrogradée par un échec ultérieur
        return await self._conditional_update(
            order_id,
            [Order.tracking_number.is_(None)],
            {"sent_to_fulfillment": False, "fulfillment_error": error[:2000]},
        )

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()
