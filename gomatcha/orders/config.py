"""
Configuration spécifique au module Orders.
Statuts et transitions autorisées du cycle de vie d'une commande.
"""
from typing import Dict, FrozenSet, List

STATUS_PENDING = "pending"
STATUS_COD_PENDING = "cod_pending"
STATUS_PAID = "paid"
STATUS_SHIPPED = "shipped"
STATUS_DELIVERED = "delivered"
STATUS_CANCELLED = "cancelled"

ALLOWED_ORDER_STATUS: List[str] = [
    STATUS_PENDING,      # Carte : en attente du paiement
    STATUS_COD_PENDING,  # Paiement à la livraison accepté
    STATUS_PAID,         # Paiement confirmé par le webhook
    STATUS_SHIPPED,
    STATUS_DELIVERED,
    STATUS_CANCELLED,
]

# Transitions monotones ; l'annulation est la seule sortie « arrière »
ORDER_STATUS_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    STATUS_PENDING: frozenset({STATUS_PAID, STATUS_CANCELLED}),
    STATUS_COD_PENDING: frozenset({STATUS_SHIPPED, STATUS_CANCELLED}),
    STATUS_PAID: frozenset({STATUS_SHIPPED, STATUS_CANCELLED}),
    STATUS_SHIPPED: frozenset({STATUS_DELIVERED}),
    STATUS_DELIVERED: frozenset(),
    STATUS_CANCELLED: frozenset(),
}

# Statuts à partir desquels une commande peut partir chez le transporteur
DISPATCHABLE_STATUSES: FrozenSet[str] = frozenset({STATUS_PAID, STATUS_COD_PENDING})

ORDER_STATUS_DISPLAY: Dict[str, str] = {
    STATUS_PENDING: "Очаква плащане",
    STATUS_COD_PENDING: "Наложен платеж",
    STATUS_PAID: "Платена",
    STATUS_SHIPPED: "Изпратена",
    STATUS_DELIVERED: "Доставена",
    STATUS_CANCELLED: "Отказана",
}

PAYMENT_METHOD_CARD = "card"
PAYMENT_METHOD_COD = "cod"


def can_transition(current: str, target: str) -> bool:
    """Vrai si la transition est permise ; un statut identique est un no-op accepté."""
    if current == target:
        return True
    return target in ORDER_STATUS_TRANSITIONS.get(current, frozenset())
