from typing import List, Optional

from pydantic import BaseModel

from gomatcha.core.schemas import CamelModel


class PaymentLineItem(BaseModel):
    name: str
    description: Optional[str] = None
    # Montant unitaire en plus petite unité
    unit_amount: int
    quantity: int


class PaymentSessionRequest(BaseModel):
    order_id: str
    currency: str
    line_items: List[PaymentLineItem]
    # Livraison facturée à part, hors lignes produits
    shipping_amount: int = 0
    shipping_label: Optional[str] = None
    customer_email: Optional[str] = None
    success_url: str
    cancel_url: str


class PaymentSession(BaseModel):
    session_id: str
    url: str


class WebhookEvent(BaseModel):
    """Événement fournisseur réduit aux champs utilisés."""
    id: Optional[str] = None
    type: str
    session_id: Optional[str] = None
    order_id: Optional[str] = None
    payment_intent_id: Optional[str] = None


class WebhookResult(CamelModel):
    received: bool = True
    event_type: Optional[str] = None
    order_id: Optional[str] = None
    status_changed: bool = False


def webhook_event_from_payload(data: dict) -> WebhookEvent:
    """Extrait les champs utiles d'un événement Stripe (dict JSON)."""
    obj = (data.get("data") or {}).get("object") or {}
    metadata = obj.get("metadata") or {}
    payment_intent = obj.get("payment_intent")
    if isinstance(payment_intent, dict):
        payment_intent = payment_intent.get("id")
    return WebhookEvent(
        id=data.get("id"),
        type=data.get("type") or "",
        session_id=obj.get("id"),
        order_id=metadata.get("order_id") or None,
        payment_intent_id=payment_intent,
    )
