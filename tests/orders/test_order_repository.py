from datetime import datetime, timedelta, timezone

import pytest

from gomatcha.orders.exceptions import OrderCreationFailedException
from gomatcha.orders.repositories import FIRST_ORDER_NUMBER, SQLAlchemyOrderRepository


@pytest.mark.asyncio
async def test_add_assigns_sequential_order_numbers(create_order):
    first = await create_order()
    second = await create_order()
    assert first.order_number == FIRST_ORDER_NUMBER
    assert second.order_number == FIRST_ORDER_NUMBER + 1
    assert first.id != second.id


@pytest.mark.asyncio
async def test_transition_status_is_conditional(create_order, order_repository: SQLAlchemyOrderRepository):
    order = await create_order(status="pending")

    assert await order_repository.transition_status(order.id, ["pending"], "paid") is True
    await order_repository.commit()
    # Second passage : la commande n'est plus `pending`
    assert await order_repository.transition_status(order.id, ["pending"], "paid") is False
    await order_repository.commit()

    reloaded = await order_repository.get_by_id(order.id)
    assert reloaded.status == "paid"


@pytest.mark.asyncio
async def test_set_payment_session_only_once(create_order, order_repository: SQLAlchemyOrderRepository):
    order = await create_order()
    assert await order_repository.set_payment_session(order.id, "cs_first") is True
    assert await order_repository.set_payment_session(order.id, "cs_second") is False
    await order_repository.commit()

    found = await order_repository.get_by_session_id("cs_first")
    assert found is not None and found.id == order.id
    assert await order_repository.get_by_session_id("cs_second") is None


@pytest.mark.asyncio
async def test_failure_does_not_overwrite_tracking(create_order, order_repository: SQLAlchemyOrderRepository):
    order = await create_order(status="paid")
    assert await order_repository.record_fulfillment_success(order.id, "TRK1", "NL-1") is True
    assert await order_repository.record_fulfillment_failure(order.id, "late failure") is False
    await order_repository.commit()

    reloaded = await order_repository.get_by_id(order.id)
    assert reloaded.tracking_number == "TRK1"
    assert reloaded.sent_to_fulfillment is True
    assert reloaded.fulfillment_error is None


@pytest.mark.asyncio
async def test_failure_error_is_truncated(create_order, order_repository: SQLAlchemyOrderRepository):
    order = await create_order(status="paid")
    await order_repository.record_fulfillment_failure(order.id, "x" * 5000)
    await order_repository.commit()
    reloaded = await order_repository.get_by_id(order.id)
    assert len(reloaded.fulfillment_error) == 2000
    assert reloaded.sent_to_fulfillment is False


@pytest.mark.asyncio
async def test_list_orders_filters_and_counts(create_order, order_repository: SQLAlchemyOrderRepository):
    await create_order(status="pending")
    await create_order(status="cod_pending", payment_method="cod")
    await create_order(status="cod_pending", payment_method="cod")

    orders, total = await order_repository.list_orders(limit=10, offset=0, status="cod_pending")
    assert total == 2
    assert {o.status for o in orders} == {"cod_pending"}

    orders, total = await order_repository.list_orders(limit=1, offset=0)
    assert total == 3
    assert len(orders) == 1


@pytest.mark.asyncio
async def test_add_retries_when_order_number_is_taken_concurrently(
    create_order, order_data, order_repository: SQLAlchemyOrderRepository, monkeypatch
):
    """Un numéro lu avant l'insertion concurrente d'une autre commande est remplacé."""
    taken_number = (await create_order()).order_number
    real_next_number = order_repository._next_order_number
    stale_numbers = [taken_number]

    async def next_number_read_before_concurrent_insert() -> int:
        if stale_numbers:
            return stale_numbers.pop()
        return await real_next_number()

    monkeypatch.setattr(order_repository, "_next_order_number", next_number_read_before_concurrent_insert)

    order = await order_repository.add(order_data(customer_email="maria@example.com"))
    await order_repository.commit()

    assert order.order_number == taken_number + 1
    orders, total = await order_repository.list_orders(limit=10, offset=0)
    assert total == 2
    assert sorted(o.order_number for o in orders) == [FIRST_ORDER_NUMBER, FIRST_ORDER_NUMBER + 1]


@pytest.mark.asyncio
async def test_add_gives_up_after_repeated_order_number_conflicts(
    create_order, order_data, order_repository: SQLAlchemyOrderRepository, monkeypatch
):
    taken_number = (await create_order()).order_number

    async def always_taken_number() -> int:
        return taken_number

    monkeypatch.setattr(order_repository, "_next_order_number", always_taken_number)

    with pytest.raises(OrderCreationFailedException):
        await order_repository.add(order_data())
    _, total = await order_repository.list_orders(limit=10, offset=0)
    assert total == 1


@pytest.mark.asyncio
async def test_stored_timestamps_are_utc_and_survive_a_reload(
    create_order, order_repository: SQLAlchemyOrderRepository
):
    before = datetime.now(timezone.utc)
    order = await create_order(status="pending")
    assert await order_repository.transition_status(
        order.id, ["pending"], "paid", {"paid_at": datetime.now(timezone.utc)}
    ) is True
    await order_repository.commit()
    after = datetime.now(timezone.utc)

    reloaded = await order_repository.get_by_id(order.id)
    for value in (reloaded.created_at, reloaded.updated_at, reloaded.paid_at):
        assert value is not None
        # SQLite ne conserve pas le fuseau ; les valeurs sont écrites en UTC
        as_utc = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        assert before - timedelta(seconds=1) <= as_utc <= after + timedelta(seconds=1)
    assert reloaded.updated_at >= reloaded.created_at
