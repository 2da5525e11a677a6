from datetime import datetime

import pytest
from sqlalchemy import func, select

from coffeeshop.core.exceptions import AuthorizationError, InvalidTransitionError, NotFoundError
from coffeeshop.models import Order, OrderItem, OrderStatus, PaymentMethod, Product
from coffeeshop.services import OrderService


def order_items(catalog):
    return [
        {"product_id": catalog["Latte"], "quantity": 2, "size": "M", "price": 55000},
        {"product_id": catalog["Espresso"], "quantity": 1, "size": "S", "price": 40000},
        {"product_id": catalog["Peach Tea"], "quantity": 1, "size": "L", "price": 55000},
    ]


async def test_order_with_n_items_writes_n_item_rows(db, catalog, make_user):
    user = await make_user()
    order_id = await OrderService(db).create_order(user, order_items(catalog), total_amount=225000)

    orders = await db.execute(select(func.count(Order.id)))
    items = await db.execute(select(func.count(OrderItem.id)).where(OrderItem.order_id == order_id))
    assert orders.scalar() == 1
    assert items.scalar() == 3


async def test_defaults_for_new_order(db, catalog, make_user):
    user = await make_user()
    service = OrderService(db)
    order_id = await service.create_order(user, order_items(catalog)[:1], total_amount=110000)

    order = await service.get_order(order_id)
    assert order.status is OrderStatus.PROCESSING
    assert order.payment_method is PaymentMethod.CASH
    assert order.delivery_method == "deliver"
    assert order.customer_name == "An Nguyen"
    assert order.customer_phone == "0901234567"
    assert order.user_confirmed_transfer is False


async def test_unknown_status_and_payment_method_fall_back(db, catalog, make_user):
    user = await make_user()
    service = OrderService(db)
    order_id = await service.create_order(
        user, order_items(catalog), total_amount=1, status="shipped", payment_method="card"
    )

    order = await service.get_order(order_id)
    assert order.status_id == 1
    assert order.payment_method_id == 3


async def test_total_amount_is_stored_as_given(db, catalog, make_user):
    user = await make_user()
    service = OrderService(db)
    order_id = await service.create_order(user, order_items(catalog), total_amount=1234)

    assert (await service.get_order(order_id)).total_amount == 1234


async def test_item_price_is_a_snapshot(db, catalog, make_user):
    user = await make_user()
    service = OrderService(db)
    # No price given: the catalog price for size M is captured
    order_id = await service.create_order(
        user, [{"product_id": catalog["Latte"], "quantity": 1, "size": "M"}], total_amount=75000
    )

    product = await db.get(Product, catalog["Latte"])
    product.price = 99000
    await db.commit()

    order = await service.get_order(order_id)
    assert order.items[0].price == 55000


async def test_unknown_product_rolls_back_the_whole_order(db, catalog, make_user):
    user = await make_user()
    items = order_items(catalog) + [{"product_id": 999, "quantity": 1, "price": 10}]

    with pytest.raises(NotFoundError):
        await OrderService(db).create_order(user, items, total_amount=1)

    assert (await db.execute(select(func.count(Order.id)))).scalar() == 0
    assert (await db.execute(select(func.count(OrderItem.id)))).scalar() == 0


async def test_history_is_per_user(db, catalog, make_user):
    an = await make_user()
    binh = await make_user("binh.tran@mail.com", "Binh")
    service = OrderService(db)
    await service.create_order(an, order_items(catalog), total_amount=1)
    await service.create_order(binh, order_items(catalog)[:1], total_amount=2)

    history = await service.get_order_history(an.id)
    assert len(history) == 1
    assert history[0]["status"] == "processing"
    assert history[0]["payment_method"] == "cash"
    assert len(history[0]["items"]) == 3
    assert {item["product_name"] for item in history[0]["items"]} == {"Latte", "Espresso", "Peach Tea"}


async def test_status_transitions(db, catalog, make_user):
    user = await make_user()
    service = OrderService(db)
    order_id = await service.create_order(user, order_items(catalog), total_amount=1)

    await service.update_order_status(order_id, "pending", user.id)
    with pytest.raises(InvalidTransitionError):
        await service.update_order_status(order_id, "cancelled", user.id)

    await service.update_order_status(order_id, "delivered", user.id)
    with pytest.raises(InvalidTransitionError):
        await service.update_order_status(order_id, "processing", user.id)

    assert (await service.get_order(order_id)).status is OrderStatus.DELIVERED


async def test_processing_order_can_be_cancelled(db, catalog, make_user):
    user = await make_user()
    service = OrderService(db)
    order_id = await service.create_order(user, order_items(catalog), total_amount=1)

    order = await service.update_order_status(order_id, "cancelled", user.id)
    assert order.status is OrderStatus.CANCELLED


async def test_only_owner_can_change_status(db, catalog, make_user):
    an = await make_user()
    binh = await make_user("binh.tran@mail.com", "Binh")
    service = OrderService(db)
    order_id = await service.create_order(an, order_items(catalog), total_amount=1)

    with pytest.raises(AuthorizationError):
        await service.update_order_status(order_id, "cancelled", binh.id)


async def test_confirm_transfer_marks_order_pending(db, catalog, make_user):
    user = await make_user()
    service = OrderService(db)
    order_id = await service.create_order(
        user, order_items(catalog), total_amount=1, payment_method="momo"
    )

    await service.confirm_user_transfer(order_id, user.id)

    order = await service.get_order(order_id)
    assert order.user_confirmed_transfer is True
    assert isinstance(order.user_confirmed_transfer_at, datetime)
    assert order.status is OrderStatus.PENDING


async def test_confirm_transfer_by_other_user_changes_nothing(db, catalog, make_user):
    an = await make_user()
    binh = await make_user("binh.tran@mail.com", "Binh")
    service = OrderService(db)
    order_id = await service.create_order(an, order_items(catalog), total_amount=1)

    with pytest.raises(AuthorizationError) as exc_info:
        await service.confirm_user_transfer(order_id, binh.id)
    assert exc_info.value.status_code == 403

    order = await service.get_order(order_id)
    assert order.user_confirmed_transfer is False
    assert order.user_confirmed_transfer_at is None
    assert order.status is OrderStatus.PROCESSING


async def test_missing_order(db, make_user):
    user = await make_user()
    with pytest.raises(NotFoundError):
        await OrderService(db).confirm_user_transfer("does-not-exist", user.id)
