"""
Constantes de tarification et de livraison par pays.

Les prix de base du catalogue sont en BGN (Bulgarie, marché principal).
"""
from decimal import Decimal
from typing import Dict

BASE_COUNTRY_CODE: str = "BG"
BASE_CURRENCY: str = "BGN"

# Taux fixes utilisés pour l'affichage et la conversion RO
BGN_TO_EUR_RATE: Decimal = Decimal("1.95583")
EUR_TO_RON_RATE: Decimal = Decimal("4.97")

# Prix fixes par unité hors marché principal
EUR_PRICE_GR: Decimal = Decimal("14.99")
EUR_PRICE_RO: Decimal = Decimal("14.99")
RON_PRICE_RO: Decimal = (EUR_PRICE_RO * EUR_TO_RON_RATE).quantize(Decimal("0.01"))

# Livraison gratuite au-delà de ce sous-total (BGN), marché principal uniquement
FREE_SHIPPING_THRESHOLD_BG: Decimal = Decimal("79")

CURRENCY_SYMBOLS: Dict[str, str] = {
    "BGN": "лв.",
    "EUR": "€",
    "RON": "lei",
}

COUNTRY_NAMES: Dict[str, str] = {
    "BG": "България",
    "GR": "Ελλάδα",
    "RO": "România",
}
