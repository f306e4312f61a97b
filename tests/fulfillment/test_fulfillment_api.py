import pytest
from httpx import AsyncClient

from gomatcha.fulfillment.exceptions import CarrierApiException, FulfillmentConfigurationException
from gomatcha.fulfillment.models import Office

FULFILLMENT_URL = "/api/v1/fulfillment"


@pytest.mark.asyncio
async def test_trigger_requires_admin_key(test_client: AsyncClient, create_order):
    order = await create_order(status="paid")
    response = await test_client.post(FULFILLMENT_URL, json={"orderId": order.id})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_trigger_dispatches_order(test_client: AsyncClient, create_order, admin_headers):
    order = await create_order(status="paid")
    response = await test_client.post(FULFILLMENT_URL, json={"orderId": order.id}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "trackingNumber": "TRK0001",
        "fulfillmentOrderId": "NL-1",
        "error": None,
    }


@pytest.mark.asyncio
async def test_trigger_without_order_id(test_client: AsyncClient, admin_headers):
    response = await test_client.post(FULFILLMENT_URL, json={}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Order ID is required"}


@pytest.mark.asyncio
async def test_trigger_unknown_order(test_client: AsyncClient, admin_headers):
    response = await test_client.post(FULFILLMENT_URL, json={"orderId": "missing"}, headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["error"] == "Order not found"


@pytest.mark.asyncio
async def test_trigger_pending_card_order_conflicts(test_client: AsyncClient, create_order, admin_headers):
    order = await create_order(status="pending")
    response = await test_client.post(FULFILLMENT_URL, json={"orderId": order.id}, headers=admin_headers)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_trigger_carrier_failure_is_reported_not_raised(
    test_client: AsyncClient, create_order, admin_headers, carrier_client
):
    carrier_client.outcomes.append(CarrierApiException("NextLevel API error: 500", status_code=500, retryable=True))
    order = await create_order(status="paid")
    response = await test_client.post(FULFILLMENT_URL, json={"orderId": order.id}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["success"] is False
    assert response.json()["error"] == "NextLevel API error: 500"

    status_response = await test_client.get(f"/api/v1/orders/{order.id}/fulfillment")
    assert status_response.json()["status"] == "paid"
    assert status_response.json()["fulfillmentError"] == "NextLevel API error: 500"


@pytest.mark.asyncio
async def test_trigger_without_credentials(test_client: AsyncClient, create_order, admin_headers, carrier_client):
    carrier_client.outcomes.append(FulfillmentConfigurationException("Fulfillment API credentials not configured"))
    order = await create_order(status="paid")
    response = await test_client.post(FULFILLMENT_URL, json={"orderId": order.id}, headers=admin_headers)
    assert response.status_code == 503


@pytest.mark.asyncio
async def test_test_action_uses_simulated_carrier(test_client: AsyncClient, admin_headers, carrier_client):
    response = await test_client.get(FULFILLMENT_URL, params={"action": "test"}, headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["test"] is True
    assert data["credentialsConfigured"] is True
    assert data["result"]["trackingNumber"].startswith("NL")
    assert carrier_client.requests == []


@pytest.mark.asyncio
async def test_test_action_requires_admin_key(test_client: AsyncClient):
    response = await test_client.get(FULFILLMENT_URL, params={"action": "test"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_sameday_boxes(test_client: AsyncClient, carrier_client):
    carrier_client.offices = [
        Office(id="1", name="easybox Лозенец", place="София", is_machine=True),
        Office(id="2", name="easybox Център", place="Варна", is_machine=True),
        Office(id="3", name="Офис", place="София", is_machine=False),
    ]
    response = await test_client.get(FULFILLMENT_URL, params={"action": "sameday-boxes"})
    assert response.status_code == 200
    data = response.json()
    assert [box["id"] for box in data["boxes"]] == ["1", "2"]
    assert data["cities"] == ["Варна", "София"]
    assert carrier_client.office_queries[0]["courier"] == "Sameday"


@pytest.mark.asyncio
async def test_offices_requires_country(test_client: AsyncClient):
    response = await test_client.get(FULFILLMENT_URL, params={"action": "offices"})
    assert response.status_code == 400
    assert response.json()["error"] == "Country code is required"


@pytest.mark.asyncio
async def test_offices(test_client: AsyncClient, carrier_client):
    carrier_client.offices = [Office(id="10", name="Еконт Център", place="София")]
    response = await test_client.get(FULFILLMENT_URL, params={"action": "offices", "country": "bg", "courier": "Econt"})
    assert response.status_code == 200
    assert response.json()["offices"][0]["id"] == "10"
    assert carrier_client.office_queries[0]["country"] == "BG"


@pytest.mark.asyncio
async def test_countries(test_client: AsyncClient):
    response = await test_client.get(FULFILLMENT_URL, params={"action": "countries"})
    assert response.status_code == 200
    assert response.json() == [{"code": "BG", "name": "Bulgaria"}]


@pytest.mark.asyncio
async def test_unknown_action(test_client: AsyncClient):
    response = await test_client.get(FULFILLMENT_URL, params={"action": "explode"})
    assert response.status_code == 400
