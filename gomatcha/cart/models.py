"""
Agrégat panier.

Collection ordonnée de lignes, une par variante : ajouter une variante déjà
présente cumule la quantité au lieu de créer un doublon.
"""
from decimal import Decimal
from typing import Iterable, List, Optional

from pydantic import Field

from gomatcha.cart.exceptions import (
    CartItemNotFoundException,
    CurrencyMismatchException,
    InvalidQuantityException,
)
from gomatcha.core.schemas import CamelModel


class Money(CamelModel):
    amount: Decimal = Field(..., ge=0)
    currency_code: str = "BGN"


class SelectedOption(CamelModel):
    name: str
    value: str


class CartLineItem(CamelModel):
    """Ligne de panier ; la clé d'unicité est `variant_id`."""
    product_id: Optional[str] = None
    product_title: str
    variant_id: str
    variant_title: Optional[str] = None
    sku: Optional[str] = None
    quantity: int = Field(..., ge=1)
    price: Money
    selected_options: List[SelectedOption] = Field(default_factory=list)

    @property
    def line_total(self) -> Decimal:
        return self.price.amount * self.quantity


class Cart:
    """Panier côté client, sans persistance."""

    def __init__(self, items: Optional[Iterable[CartLineItem]] = None):
        self._items: List[CartLineItem] = []
        for item in items or []:
            self.add(item)

    @property
    def items(self) -> List[CartLineItem]:
        return list(self._items)

    @property
    def currency_code(self) -> Optional[str]:
        return self._items[0].price.currency_code if self._items else None

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self._items)

    @property
    def subtotal(self) -> Decimal:
        return sum((item.line_total for item in self._items), Decimal("0"))

    def is_empty(self) -> bool:
        return not self._items

    def _find(self, variant_id: str) -> Optional[CartLineItem]:
        for item in self._items:
            if item.variant_id == variant_id:
                return item
        return None

    def add(self, item: CartLineItem) -> CartLineItem:
        """Ajoute une ligne ; cumule la quantité si la variante est déjà présente."""
        if item.quantity < 1:
            raise InvalidQuantityException(item.quantity)
        if self.currency_code and item.price.currency_code != self.currency_code:
            raise CurrencyMismatchException(self.currency_code, item.price.currency_code)
        existing = self._find(item.variant_id)
        if existing is not None:
            existing.quantity += item.quantity
            return existing
        added = item.model_copy(deep=True)
        self._items.append(added)
        return added

    def update_quantity(self, variant_id: str, quantity: int) -> Optional[CartLineItem]:
        """Fixe la quantité ; 0 ou moins retire la ligne."""
        existing = self._find(variant_id)
        if existing is None:
            raise CartItemNotFoundException(variant_id)
        if quantity <= 0:
            self.remove(variant_id)
            return None
        existing.quantity = quantity
        return existing

    def remove(self, variant_id: str) -> None:
        # Retirer une variante absente est sans effet
        self._items = [item for item in self._items if item.variant_id != variant_id]

    def clear(self) -> None:
        self._items = []

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self.items)
