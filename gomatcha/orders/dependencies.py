import logging
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gomatcha.database import get_db_session
from gomatcha.orders.interfaces.repositories import AbstractOrderRepository
from gomatcha.orders.repositories import SQLAlchemyOrderRepository
from gomatcha.orders.service import OrderService

logger = logging.getLogger(__name__)

SessionDep = Annotated[AsyncSession, Depends(get_db_session)]


def get_order_repository(session: SessionDep) -> AbstractOrderRepository:
    """Fournit une instance du repository de commandes."""
    return SQLAlchemyOrderRepository(db_session=session)


OrderRepositoryDep = Annotated[AbstractOrderRepository, Depends(get_order_repository)]


def get_order_service(order_repository: OrderRepositoryDep) -> OrderService:
    logger.debug("Fourniture de OrderService")
    return OrderService(order_repository=order_repository)


OrderServiceDep = Annotated[OrderService, Depends(get_order_service)]
