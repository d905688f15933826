from datetime import timedelta

import pytest

from shopping_assistant.cart import CartManager, cart_view, item_count, total_price
from shopping_assistant.errors import CartItemNotFoundError, ProductNotFoundError
from shopping_assistant.models import Session
from shopping_assistant.utils import utc_now


@pytest.fixture
def manager(catalog):
    return CartManager(catalog)


def test_add_new_product_increases_count_and_total(manager, catalog):
    session = Session(user_id="u1")
    manager.add(session, "3", 1)
    count_before, total_before = item_count(session.cart), total_price(session.cart)

    manager.add(session, "4", 3)

    assert item_count(session.cart) == count_before + 3
    assert total_price(session.cart) == total_before + catalog.find_by_id("4").price * 3


def test_add_twice_equals_add_once_with_sum(manager):
    twice = Session(user_id="u1")
    manager.add(twice, "2", 2)
    manager.add(twice, "2", 3)

    once = Session(user_id="u1")
    manager.add(once, "2", 5)

    assert [(i.product.id, i.quantity) for i in twice.cart] == [("2", 5)]
    assert [(i.product.id, i.quantity) for i in once.cart] == [("2", 5)]


def test_add_defaults_to_one(manager):
    session = Session(user_id="u1")
    manager.add(session, "1")
    assert session.cart[0].quantity == 1


def test_add_unknown_product_leaves_session_untouched(manager):
    session = Session(user_id="u1")
    updated_at = session.updated_at
    with pytest.raises(ProductNotFoundError):
        manager.add(session, "nope", 1)
    assert session.cart == []
    assert session.updated_at == updated_at


def test_add_touches_session(manager):
    session = Session(user_id="u1")
    before = session.updated_at
    manager.add(session, "1")
    assert session.updated_at >= before
    assert session.updated_at >= session.created_at


def test_update_replaces_quantity(manager):
    session = Session(user_id="u1")
    manager.add(session, "1", 2)
    manager.update(session, "1", 7)
    assert session.cart[0].quantity == 7


def test_update_to_zero_removes_item(manager):
    session = Session(user_id="u1")
    manager.add(session, "1", 2)
    manager.add(session, "2", 1)
    manager.update(session, "1", 0)
    assert [i.product.id for i in session.cart] == ["2"]


def test_update_missing_item_raises(manager):
    session = Session(user_id="u1")
    with pytest.raises(CartItemNotFoundError):
        manager.update(session, "1", 2)


def test_remove_existing_item(manager):
    session = Session(user_id="u1")
    manager.add(session, "1")
    manager.add(session, "5")
    manager.remove(session, "1")
    assert [i.product.id for i in session.cart] == ["5"]


def test_remove_absent_is_noop(manager):
    session = Session(user_id="u1")
    manager.add(session, "1", 2)
    cart_before = list(session.cart)
    updated_at = session.updated_at

    manager.remove(session, "6")

    assert session.cart == cart_before
    assert session.updated_at == updated_at


def test_item_count_sums_quantities(manager):
    session = Session(user_id="u1")
    manager.add(session, "3", 2)
    manager.add(session, "6", 4)
    assert item_count(session.cart) == 6
    assert len(session.cart) == 2


def test_cart_view_totals(manager):
    session = Session(user_id="u1")
    manager.add(session, "3", 2)
    view = cart_view(session.cart)
    assert view.item_count == 2
    assert view.total_price == 90
    assert view.items[0].product.id == "3"


def test_empty_cart_totals():
    assert item_count([]) == 0
    assert total_price([]) == 0


def test_remove_reports_whether_cart_changed(manager):
    session = Session(user_id="u1")
    manager.add(session, "1")
    assert manager.remove(session, "1") is True
    assert manager.remove(session, "1") is False
    assert session.cart == []


def test_remove_with_future_updated_at(manager):
    session = Session(user_id="u1")
    manager.add(session, "1")
    session.updated_at = utc_now() + timedelta(minutes=5)
    ahead = session.updated_at

    assert manager.remove(session, "1") is True
    assert session.cart == []
    assert session.updated_at == ahead
