from decimal import Decimal

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_quote_endpoint(test_client: AsyncClient):
    response = await test_client.post("/api/v1/pricing/quote", json={
        "countryCode": "BG",
        "shippingMethod": "econt_address",
        "items": [{"variantId": "var_30g", "quantity": 1, "basePrice": "28.00"}],
    })
    assert response.status_code == 200
    data = response.json()
    assert data["currency"] == "BGN"
    assert Decimal(data["subtotal"]) == Decimal("28.00")
    assert Decimal(data["shippingPrice"]) == Decimal("6.99")
    assert Decimal(data["total"]) == Decimal("34.99")
    assert data["freeShippingApplied"] is False


@pytest.mark.asyncio
async def test_quote_endpoint_unknown_method(test_client: AsyncClient):
    response = await test_client.post("/api/v1/pricing/quote", json={
        "countryCode": "RO",
        "shippingMethod": "econt_office",
        "items": [{"variantId": "var_30g", "quantity": 1, "basePrice": "28.00"}],
    })
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_country_pricing_endpoint(test_client: AsyncClient):
    response = await test_client.get("/api/v1/pricing/GR", params={"baseAmount": "28.00"})
    assert response.status_code == 200
    data = response.json()
    assert data["currency"] == "EUR"
    assert Decimal(data["unitPrice"]) == Decimal("14.99")


@pytest.mark.asyncio
async def test_shipping_methods_unknown_country_uses_bg(test_client: AsyncClient):
    response = await test_client.get("/api/v1/pricing/XX/shipping-methods")
    assert response.status_code == 200
    assert {m["id"] for m in response.json()} == {"econt_office", "econt_address", "sameday_easybox"}
