import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Response, status

from gomatcha.config import settings
from gomatcha.core.security import AdminDep
from gomatcha.orders.dependencies import OrderServiceDep
from gomatcha.orders.exceptions import (
    InvalidOrderStatusException,
    InvalidStatusTransitionException,
    OrderNotFoundException,
    OrderUpdateFailedException,
)
from gomatcha.orders.models import (
    OrderFulfillmentStatus,
    OrderRead,
    OrderStatusUpdate,
    PaginatedOrderResponse,
)

logger = logging.getLogger(__name__)

order_router = APIRouter(
    prefix="/orders",
    tags=["Orders"],
)


@order_router.get("/{order_id}/fulfillment", response_model=OrderFulfillmentStatus)
async def get_fulfillment_status_endpoint(service: OrderServiceDep, order_id: str):
    """État d'expédition lu par la page de confirmation (identifiant non devinable)."""
    try:
        return await service.get_fulfillment_status(order_id)
    except OrderNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)


# --- Routes opérateur ---

@order_router.get("/", response_model=PaginatedOrderResponse, dependencies=[AdminDep])
async def list_orders_endpoint(
    service: OrderServiceDep,
    response: Response,
    limit: int = Query(default=settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    order_status: Optional[str] = Query(default=None, alias="status"),
):
    try:
        orders, total_count = await service.list_orders(limit=limit, offset=offset, status=order_status)
    except InvalidOrderStatusException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    end_range = offset + len(orders) - 1 if orders else offset
    response.headers["Content-Range"] = f"orders {offset}-{end_range}/{total_count}"
    return PaginatedOrderResponse(items=orders, total=total_count)


@order_router.get("/{order_id}", response_model=OrderRead, dependencies=[AdminDep])
async def get_order_endpoint(service: OrderServiceDep, order_id: str):
    try:
        return await service.get_order(order_id)
    except OrderNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)


@order_router.patch("/{order_id}/status", response_model=OrderRead, dependencies=[AdminDep])
async def update_order_status_endpoint(
    service: OrderServiceDep,
    order_id: str,
    status_update: OrderStatusUpdate,
):
    """Met à jour le statut d'une commande selon les transitions autorisées."""
    try:
        return await service.update_status(order_id, status_update.status)
    except OrderNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except InvalidOrderStatusException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except InvalidStatusTransitionException as e:
        logger.warning(f"Transition refusée: {e}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except OrderUpdateFailedException as e:
        logger.exception(f"Erreur mise à jour statut commande {order_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error.")
