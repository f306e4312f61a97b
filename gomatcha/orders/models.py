import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel

from gomatcha.core.schemas import CamelModel


def _new_order_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# --- Modèle de table ---

class OrderBase(SQLModel):
    """Champs persistés d'une commande."""
    status: str = Field(default="pending", max_length=32, index=True)
    payment_method: str = Field(max_length=16)
    currency: str = Field(max_length=3)

    # Totaux : total_with_shipping == total_amount + shipping_price
    total_amount: Decimal = Field(max_digits=12, decimal_places=2)
    shipping_price: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)
    total_with_shipping: Decimal = Field(max_digits=12, decimal_places=2)

    # Client
    customer_name: str = Field(max_length=255)
    customer_email: str = Field(max_length=255, index=True)
    customer_phone: str = Field(max_length=64)
    phone_country_code: Optional[str] = Field(default=None, max_length=8)

    # Destination
    shipping_country: str = Field(max_length=2)
    shipping_country_name: Optional[str] = Field(default=None, max_length=128)
    shipping_city: Optional[str] = Field(default=None, max_length=128)
    shipping_address: Optional[str] = Field(default=None, max_length=512)
    shipping_postal_code: Optional[str] = Field(default=None, max_length=32)
    shipping_method: str = Field(max_length=64)
    courier_code: Optional[str] = Field(default=None, max_length=32)
    courier_name: Optional[str] = Field(default=None, max_length=64)

    # Bureau / casier (livraison en office ou easybox uniquement)
    courier_office_id: Optional[str] = Field(default=None, max_length=64)
    courier_office_name: Optional[str] = Field(default=None, max_length=255)
    courier_office_address: Optional[str] = Field(default=None, max_length=512)
    courier_office_city: Optional[str] = Field(default=None, max_length=128)
    courier_office_country_code: Optional[str] = Field(default=None, max_length=2)

    notes: Optional[str] = Field(default=None, max_length=1000)


class Order(OrderBase, table=True):
    """Modèle de table pour les commandes."""
    id: str = Field(default_factory=_new_order_id, primary_key=True, max_length=36)
    order_number: Optional[int] = Field(default=None, unique=True, index=True)
    items: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    # Paiement ; stripe_session_id n'est écrit qu'une fois
    stripe_session_id: Optional[str] = Field(default=None, max_length=255, index=True)
    stripe_payment_intent_id: Optional[str] = Field(default=None, max_length=255)
    paid_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))

    # Expédition ; tracking_number n'est écrit qu'une fois
    tracking_number: Optional[str] = Field(default=None, max_length=128)
    fulfillment_order_id: Optional[str] = Field(default=None, max_length=128)
    sent_to_fulfillment: bool = Field(default=False)
    fulfillment_error: Optional[str] = Field(default=None, max_length=2000)

    # Horodatages UTC avec fuseau
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True), nullable=False))

    __tablename__ = "orders"


# --- Schémas API ---

class OrderItemSnapshot(CamelModel):
    """Ligne de commande figée au moment du checkout."""
    product_title: str
    variant_title: Optional[str] = None
    variant_id: Optional[str] = None
    sku: Optional[str] = None
    quantity: int
    unit_price: Decimal
    currency: str


class OrderRead(CamelModel):
    id: str
    order_number: Optional[int] = None
    status: str
    payment_method: str
    currency: str
    items: List[OrderItemSnapshot]
    total_amount: Decimal
    shipping_price: Decimal
    total_with_shipping: Decimal
    customer_name: str
    customer_email: str
    customer_phone: str
    phone_country_code: Optional[str] = None
    shipping_country: str
    shipping_country_name: Optional[str] = None
    shipping_city: Optional[str] = None
    shipping_address: Optional[str] = None
    shipping_postal_code: Optional[str] = None
    shipping_method: str
    courier_code: Optional[str] = None
    courier_name: Optional[str] = None
    courier_office_id: Optional[str] = None
    courier_office_name: Optional[str] = None
    courier_office_address: Optional[str] = None
    courier_office_city: Optional[str] = None
    courier_office_country_code: Optional[str] = None
    notes: Optional[str] = None
    stripe_session_id: Optional[str] = None
    paid_at: Optional[datetime] = None
    tracking_number: Optional[str] = None
    fulfillment_order_id: Optional[str] = None
    sent_to_fulfillment: bool = False
    fulfillment_error: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class OrderFulfillmentStatus(CamelModel):
    """Sous-ensemble lu par la page de confirmation."""
    order_id: str
    status: str
    tracking_number: Optional[str] = None
    sent_to_fulfillment: bool = False
    fulfillment_error: Optional[str] = None


class OrderStatusUpdate(CamelModel):
    status: str


class PaginatedOrderResponse(CamelModel):
    items: List[OrderRead]
    total: int
