import asyncio

import httpx
import pytest

from gomatcha.client.status_poller import OrderStatusPoller

BASE_URL = "https://gomatcha.test/api/v1"


def status_body(tracking_number=None, sent=False):
    return {
        "orderId": "order-1",
        "status": "paid",
        "trackingNumber": tracking_number,
        "sentToFulfillment": sent,
        "fulfillmentError": None,
    }


def mock_client(responses):
    """Client httpx dont chaque requête reçoit la réponse suivante ; la dernière se répète."""
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        status_code, body = responses[min(len(calls), len(responses)) - 1]
        return httpx.Response(status_code, json=body)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler)), calls


@pytest.mark.asyncio
async def test_stops_when_tracking_number_appears():
    client, calls = mock_client([
        (200, status_body()),
        (200, status_body()),
        (200, status_body("NL0000000042", sent=True)),
    ])
    poller = OrderStatusPoller(BASE_URL, interval=0, max_attempts=10, http_client=client)

    outcome = await poller.poll("order-1")

    assert outcome.tracking_number == "NL0000000042"
    assert outcome.attempts == 3
    assert outcome.timed_out is False
    assert str(calls[0].url) == f"{BASE_URL}/orders/order-1/fulfillment"
    await client.aclose()


@pytest.mark.asyncio
async def test_times_out_after_max_attempts():
    client, calls = mock_client([(200, status_body())])
    poller = OrderStatusPoller(BASE_URL, interval=0, max_attempts=4, http_client=client)

    outcome = await poller.poll("order-1")

    assert outcome.timed_out is True
    assert outcome.tracking_number is None
    assert outcome.status.status == "paid"
    assert len(calls) == 4
    await client.aclose()


@pytest.mark.asyncio
async def test_transient_errors_do_not_stop_polling():
    client, calls = mock_client([
        (500, None),
        (200, status_body("NL1234567890", sent=True)),
    ])
    poller = OrderStatusPoller(BASE_URL, interval=0, max_attempts=5, http_client=client)

    outcome = await poller.poll("order-1")

    assert outcome.tracking_number == "NL1234567890"
    assert len(calls) == 2
    await client.aclose()


@pytest.mark.asyncio
async def test_cancel_stops_polling():
    client, calls = mock_client([(200, status_body())])
    poller = OrderStatusPoller(BASE_URL, interval=10, max_attempts=15, http_client=client)

    task = asyncio.create_task(poller.poll("order-1"))
    await asyncio.sleep(0.05)
    poller.cancel()
    outcome = await asyncio.wait_for(task, timeout=1)

    assert outcome.cancelled is True
    assert outcome.timed_out is False
    assert len(calls) == 1
    await client.aclose()


@pytest.mark.asyncio
async def test_task_cancellation_propagates():
    client, _ = mock_client([(200, status_body())])
    poller = OrderStatusPoller(BASE_URL, interval=10, max_attempts=15, http_client=client)

    task = asyncio.create_task(poller.poll("order-1"))
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    await client.aclose()


def test_invalid_configuration():
    with pytest.raises(ValueError):
        OrderStatusPoller(BASE_URL, max_attempts=0)


def test_default_timeout_is_about_thirty_seconds():
    assert OrderStatusPoller(BASE_URL).timeout == 28.0


@pytest.mark.asyncio
async def test_cancel_before_poll_starts_is_honoured():
    client, calls = mock_client([(200, status_body())])
    poller = OrderStatusPoller(BASE_URL, interval=0, max_attempts=3, http_client=client)

    poller.cancel()
    outcome = await poller.poll("order-1")

    assert outcome.cancelled is True
    assert outcome.timed_out is False
    assert outcome.attempts == 0
    assert calls == []
    await client.aclose()


@pytest.mark.asyncio
async def test_reset_rearms_a_cancelled_poller():
    client, calls = mock_client([(200, status_body("NL0000000007", sent=True))])
    poller = OrderStatusPoller(BASE_URL, interval=0, max_attempts=3, http_client=client)

    poller.cancel()
    assert (await poller.poll("order-1")).cancelled is True

    poller.reset()
    outcome = await poller.poll("order-1")

    assert outcome.cancelled is False
    assert outcome.tracking_number == "NL0000000007"
    assert len(calls) == 1
    await client.aclose()
