import logging
from decimal import Decimal
from typing import List

from fastapi import APIRouter, HTTPException, Query, status

from gomatcha.pricing import service
from gomatcha.pricing.exceptions import UnknownShippingMethodException
from gomatcha.pricing.models import CountryPricing, PriceQuote, QuoteRequest, ShippingMethod

logger = logging.getLogger(__name__)

pricing_router = APIRouter(
    prefix="/pricing",
    tags=["Pricing"],
)


@pricing_router.post("/quote", response_model=PriceQuote)
async def quote_endpoint(quote_request: QuoteRequest):
    """Totaux (sous-total, livraison, total) tels qu'ils seront persistés au checkout."""
    try:
        return service.build_quote(
            quote_request.country_code,
            [(item.variant_id, item.quantity, item.base_price) for item in quote_request.items],
            quote_request.shipping_method,
        )
    except UnknownShippingMethodException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)


@pricing_router.get("/{country_code}", response_model=CountryPricing)
async def country_pricing_endpoint(
    country_code: str,
    base_amount: Decimal = Query(..., ge=0, alias="baseAmount"),
):
    return service.get_country_pricing(country_code, base_amount)


@pricing_router.get("/{country_code}/shipping-methods", response_model=List[ShippingMethod])
async def shipping_methods_endpoint(country_code: str):
    return service.resolve_shipping_methods(country_code)
