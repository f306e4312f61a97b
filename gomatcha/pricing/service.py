"""
Résolution des prix et des méthodes de livraison par pays.

Fonctions pures, sans appel externe. Chaque pays supporté est décrit par une
entrée de `COUNTRY_STRATEGIES` ; tout code pays inconnu retombe sur la
stratégie du marché principal (BG), sans erreur.
"""
import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from gomatcha.pricing import config
from gomatcha.pricing.exceptions import UnknownShippingMethodException
from gomatcha.pricing.models import CountryPricing, PriceQuote, QuoteLine, ShippingMethod

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")


def quantize_amount(amount: Decimal) -> Decimal:
    """Arrondi monétaire à 2 décimales (demi supérieur)."""
    return Decimal(amount).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def to_minor_units(amount: Decimal) -> int:
    """Montant en plus petite unité (centimes, stotinki, bani)."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class CountryStrategy:
    """Politique de prix et de livraison d'un pays."""
    country_code: str
    currency: str
    # Prix unitaire transactionnel à partir du prix catalogue (BGN)
    unit_price: Callable[[Decimal], Decimal]
    shipping_methods: Tuple[ShippingMethod, ...]
    free_shipping_threshold: Optional[Decimal] = None


BG_SHIPPING_METHODS: Tuple[ShippingMethod, ...] = (
    ShippingMethod(
        id="econt_office", name="Еконт - до офис", price=Decimal("7.99"), currency="BGN",
        courier_code="ECONT", courier_name="Econt", delivery_type="office",
        estimated_days="1-2", free_eligible=True,
    ),
    ShippingMethod(
        id="econt_address", name="Еконт - до адрес", price=Decimal("6.99"), currency="BGN",
        courier_code="ECONT", courier_name="Econt", delivery_type="address",
        estimated_days="1-2", free_eligible=True,
    ),
    ShippingMethod(
        id="sameday_easybox", name="Sameday easybox", price=Decimal("4.99"), currency="BGN",
        courier_code="SAMEDAY", courier_name="Sameday", delivery_type="easybox",
        estimated_days="1-2", free_eligible=True,
    ),
)

GR_SHIPPING_METHODS: Tuple[ShippingMethod, ...] = (
    ShippingMethod(
        id="speedex", name="Speedex", price=Decimal("4.00"), currency="EUR",
        courier_code="SPEEDX", courier_name="Speedex", delivery_type="address",
        estimated_days="2-4",
    ),
)

RO_SHIPPING_METHODS: Tuple[ShippingMethod, ...] = (
    ShippingMethod(
        id="fan_courier", name="FAN Courier", price=Decimal("19.88"), currency="RON",
        courier_code="FAN", courier_name="FAN", delivery_type="address",
        estimated_days="2-4",
    ),
)

COUNTRY_STRATEGIES: Dict[str, CountryStrategy] = {
    # Marché principal : le prix catalogue est le prix transactionnel
    "BG": CountryStrategy(
        country_code="BG",
        currency=config.BASE_CURRENCY,
        unit_price=lambda base_amount: quantize_amount(base_amount),
        shipping_methods=BG_SHIPPING_METHODS,
        free_shipping_threshold=config.FREE_SHIPPING_THRESHOLD_BG,
    ),
    # GR et RO : prix fixe par unité, indépendant du prix catalogue
    "GR": CountryStrategy(
        country_code="GR",
        currency="EUR",
        unit_price=lambda base_amount: config.EUR_PRICE_GR,
        shipping_methods=GR_SHIPPING_METHODS,
    ),
    "RO": CountryStrategy(
        country_code="RO",
        currency="RON",
        unit_price=lambda base_amount: config.RON_PRICE_RO,
        shipping_methods=RO_SHIPPING_METHODS,
    ),
}

DEFAULT_STRATEGY: CountryStrategy = COUNTRY_STRATEGIES[config.BASE_COUNTRY_CODE]


def get_strategy(country_code: Optional[str]) -> CountryStrategy:
    """Stratégie du pays, ou celle du marché principal pour un code inconnu."""
    code = (country_code or "").strip().upper()
    strategy = COUNTRY_STRATEGIES.get(code)
    if strategy is None:
        logger.debug(f"[Pricing] Pays '{country_code}' non supporté, repli sur {config.BASE_COUNTRY_CODE}.")
        return DEFAULT_STRATEGY
    return strategy


def resolve_currency(country_code: Optional[str]) -> str:
    return get_strategy(country_code).currency


def resolve_price(country_code: Optional[str], base_amount: Decimal) -> Tuple[Decimal, str]:
    """Retourne (prix unitaire, devise) pour un prix catalogue en BGN."""
    strategy = get_strategy(country_code)
    return strategy.unit_price(Decimal(base_amount)), strategy.currency


def resolve_shipping_methods(country_code: Optional[str]) -> List[ShippingMethod]:
    return list(get_strategy(country_code).shipping_methods)


def get_shipping_method(country_code: Optional[str], method_id: str) -> ShippingMethod:
    for method in get_strategy(country_code).shipping_methods:
        if method.id == method_id:
            return method
    raise UnknownShippingMethodException(country_code=country_code, method_id=method_id)


def bgn_to_eur(amount: Decimal) -> Decimal:
    """Équivalent EUR d'un montant BGN, pour affichage uniquement."""
    return quantize_amount(Decimal(amount) / config.BGN_TO_EUR_RATE)


def is_free_shipping(country_code: Optional[str], base_subtotal: Decimal) -> bool:
    threshold = get_strategy(country_code).free_shipping_threshold
    return threshold is not None and Decimal(base_subtotal) >= threshold


def compute_shipping_price(
    country_code: Optional[str],
    method: ShippingMethod,
    base_subtotal: Decimal,
) -> Decimal:
    """Prix de livraison, nul pour les méthodes éligibles au-delà du seuil."""
    if method.free_eligible and is_free_shipping(country_code, base_subtotal):
        return Decimal("0.00")
    return quantize_amount(method.price)


def amount_until_free_shipping(country_code: Optional[str], base_subtotal: Decimal) -> Optional[Decimal]:
    """Montant restant avant la livraison gratuite, None si le pays n'en propose pas."""
    threshold = get_strategy(country_code).free_shipping_threshold
    if threshold is None:
        return None
    return quantize_amount(max(threshold - Decimal(base_subtotal), Decimal("0")))


def build_quote(
    country_code: Optional[str],
    items: Iterable[Tuple[str, int, Decimal]],
    shipping_method_id: Optional[str] = None,
) -> PriceQuote:
    """
    Calcule les totaux d'une commande.

    Args:
        country_code: Pays de livraison.
        items: Tuples (variant_id, quantité, prix catalogue BGN).
        shipping_method_id: Méthode choisie, ou None pour un devis sans livraison.

    Raises:
        UnknownShippingMethodException: Si la méthode n'existe pas pour ce pays.
    """
    strategy = get_strategy(country_code)
    lines: List[QuoteLine] = []
    subtotal = Decimal("0")
    base_subtotal = Decimal("0")
    for variant_id, quantity, base_price in items:
        unit_price = strategy.unit_price(Decimal(base_price))
        line_total = quantize_amount(unit_price * quantity)
        lines.append(QuoteLine(variant_id=variant_id, quantity=quantity, unit_price=unit_price, line_total=line_total))
        subtotal += line_total
        base_subtotal += Decimal(base_price) * quantity

    subtotal = quantize_amount(subtotal)
    method: Optional[ShippingMethod] = None
    shipping_price = Decimal("0.00")
    if shipping_method_id:
        method = get_shipping_method(strategy.country_code, shipping_method_id)
        shipping_price = compute_shipping_price(strategy.country_code, method, base_subtotal)

    return PriceQuote(
        country_code=strategy.country_code,
        currency=strategy.currency,
        lines=lines,
        subtotal=subtotal,
        shipping_method=method,
        shipping_price=shipping_price,
        free_shipping_applied=method is not None and method.free_eligible and shipping_price == 0,
        amount_until_free_shipping=amount_until_free_shipping(strategy.country_code, base_subtotal),
        total=quantize_amount(subtotal + shipping_price),
    )


# --- Affichage ---

def format_price_with_currency(country_code: Optional[str], base_amount: Decimal) -> str:
    """Prix affiché au client, avec équivalent EUR quand la devise n'est pas l'euro."""
    strategy = get_strategy(country_code)
    unit_price, currency = resolve_price(strategy.country_code, base_amount)
    symbol = config.CURRENCY_SYMBOLS[currency]
    if currency == "BGN":
        return f"{unit_price:.2f} {symbol} (≈ {bgn_to_eur(unit_price):.2f} €)"
    if currency == "RON":
        return f"{unit_price:.2f} {symbol} (≈ {config.EUR_PRICE_RO:.2f} €)"
    return f"{unit_price:.2f} {symbol}"


def format_shipping_price(method: ShippingMethod) -> str:
    return f"{method.price:.2f} {config.CURRENCY_SYMBOLS.get(method.currency, method.currency)}"


def get_country_pricing(country_code: Optional[str], base_amount: Decimal) -> CountryPricing:
    strategy = get_strategy(country_code)
    unit_price, currency = resolve_price(strategy.country_code, base_amount)
    return CountryPricing(
        country_code=strategy.country_code,
        currency=currency,
        currency_symbol=config.CURRENCY_SYMBOLS[currency],
        unit_price=unit_price,
        display_price=format_price_with_currency(strategy.country_code, base_amount),
        free_shipping_threshold=strategy.free_shipping_threshold,
    )
