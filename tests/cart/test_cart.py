from decimal import Decimal

import pytest

from gomatcha.cart.exceptions import (
    CartItemNotFoundException,
    CurrencyMismatchException,
    InvalidQuantityException,
)
from gomatcha.cart.models import Cart, CartLineItem, Money


def make_item(variant_id: str = "var_30g", quantity: int = 1, amount: str = "28.00", currency: str = "BGN"):
    return CartLineItem(
        product_title="SEIJAKU Матча",
        variant_id=variant_id,
        variant_title="30g",
        quantity=quantity,
        price=Money(amount=Decimal(amount), currency_code=currency),
    )


def test_add_merges_same_variant():
    cart = Cart()
    cart.add(make_item(quantity=1))
    cart.add(make_item(quantity=2))
    assert len(cart) == 1
    assert cart.items[0].quantity == 3
    assert cart.item_count == 3
    assert cart.subtotal == Decimal("84.00")


def test_add_keeps_distinct_variants_in_order():
    cart = Cart([make_item("var_30g"), make_item("var_100g", amount="79.00")])
    assert [item.variant_id for item in cart] == ["var_30g", "var_100g"]
    assert cart.subtotal == Decimal("107.00")


def test_add_does_not_alias_caller_item():
    item = make_item(quantity=1)
    cart = Cart([item])
    cart.add(make_item(quantity=1))
    assert item.quantity == 1


def test_add_rejects_other_currency():
    cart = Cart([make_item()])
    with pytest.raises(CurrencyMismatchException):
        cart.add(make_item("var_100g", currency="EUR"))


def test_update_quantity():
    cart = Cart([make_item()])
    cart.update_quantity("var_30g", 4)
    assert cart.item_count == 4


def test_update_quantity_zero_removes_line():
    cart = Cart([make_item()])
    cart.update_quantity("var_30g", 0)
    assert cart.is_empty()


def test_update_quantity_unknown_variant():
    cart = Cart([make_item()])
    with pytest.raises(CartItemNotFoundException):
        cart.update_quantity("var_unknown", 2)


def test_remove_and_clear():
    cart = Cart([make_item("var_30g"), make_item("var_100g")])
    cart.remove("var_30g")
    cart.remove("var_absent")
    assert [item.variant_id for item in cart] == ["var_100g"]
    cart.clear()
    assert cart.is_empty()
    assert cart.subtotal == Decimal("0")
    assert cart.currency_code is None


def test_line_quantity_must_be_positive():
    with pytest.raises(ValueError):
        make_item(quantity=0)


def test_add_rejects_non_positive_quantity():
    item = make_item()
    item.quantity = 0
    with pytest.raises(InvalidQuantityException):
        Cart().add(item)
