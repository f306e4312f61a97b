from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import Field

from gomatcha.core.schemas import CamelModel

DeliveryType = Literal["office", "address", "easybox"]


class ShippingMethod(CamelModel):
    """Méthode de livraison proposée pour un pays."""
    id: str
    name: str
    price: Decimal
    currency: str
    courier_code: str
    courier_name: str
    delivery_type: DeliveryType
    estimated_days: str = "1-3"
    # Compte pour le seuil de livraison gratuite
    free_eligible: bool = False


class CountryPricing(CamelModel):
    country_code: str
    currency: str
    currency_symbol: str
    unit_price: Decimal
    display_price: str
    free_shipping_threshold: Optional[Decimal] = None


class QuoteItem(CamelModel):
    variant_id: str
    quantity: int = Field(..., gt=0)
    base_price: Decimal = Field(..., ge=0)


class QuoteRequest(CamelModel):
    country_code: str
    shipping_method: Optional[str] = None
    items: List[QuoteItem]


class QuoteLine(CamelModel):
    variant_id: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class PriceQuote(CamelModel):
    """Totaux calculés côté serveur ; ce sont eux qui sont persistés."""
    country_code: str
    currency: str
    lines: List[QuoteLine]
    subtotal: Decimal
    shipping_method: Optional[ShippingMethod] = None
    shipping_price: Decimal = Decimal("0.00")
    free_shipping_applied: bool = False
    amount_until_free_shipping: Optional[Decimal] = None
    total: Decimal
