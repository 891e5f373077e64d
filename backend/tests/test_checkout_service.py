"""Checkout: cart -> order snapshot, then cart cleared."""

import threading

import pytest
from sqlalchemy.exc import OperationalError

from models.order import Order
from services import cart as cart_service
from services import orders as order_service
from utils.errors import Internal, InvalidState, NotFound


@pytest.fixture()
def me(customer, identity_for):
    return identity_for(customer)


@pytest.fixture()
def basket(db, me, make_product):
    """Cart holding 3 x 2.00 and 1 x 5.00."""
    p1 = make_product(name="Eggs", price=2.00, category="Dairy")
    p2 = make_product(name="Coffee", price=5.00, category="Pantry")
    cart_service.add_item(db, me, p1.id, 3)
    cart_service.add_item(db, me, p2.id, 1)
    return p1, p2


class TestPlaceOrder:
    def test_total_is_sum_of_price_times_quantity(self, db, me, basket):
        order = order_service.place_order(db, me, "1 Main St", "card")

        assert order.id is not None
        assert order.total_price == 11.00
        assert order.status == "Pending"
        assert order.address == "1 Main St"
        assert order.payment_method == "card"

    def test_items_are_copied_from_cart(self, db, me, basket):
        p1, p2 = basket
        order = order_service.place_order(db, me, "1 Main St", "card")

        lines = sorted((it.product_id, it.quantity, it.unit_price) for it in order.items)
        assert lines == sorted([(p1.id, 3, 2.00), (p2.id, 1, 5.00)])

    def test_cart_is_empty_afterwards(self, db, me, basket):
        order_service.place_order(db, me, "1 Main St", "card")

        assert cart_service.get_cart(db, me.user_id) == []
        # The cart record itself is kept
        assert cart_service.find_cart(db, me.user_id) is not None

    def test_total_rounded_to_cents(self, db, me, make_product):
        p = make_product(name="Lemon", price=0.1)
        cart_service.add_item(db, me, p.id, 3)

        order = order_service.place_order(db, me, None, None)

        assert order.total_price == 0.3

    def test_no_cart_is_invalid_state(self, db, me):
        with pytest.raises(InvalidState):
            order_service.place_order(db, me, "1 Main St", "card")
        assert db.query(Order).count() == 0

    def test_emptied_cart_is_invalid_state(self, db, me, basket):
        order_service.place_order(db, me, "1 Main St", "card")

        with pytest.raises(InvalidState):
            order_service.place_order(db, me, "1 Main St", "card")
        assert db.query(Order).count() == 1

    def test_missing_product_is_not_found_and_keeps_cart(self, db, me, basket):
        p1, p2 = basket
        db.delete(p2)
        db.commit()

        with pytest.raises(NotFound):
            order_service.place_order(db, me, "1 Main St", "card")

        assert db.query(Order).count() == 0
        view = cart_service.get_cart(db, me.user_id)
        assert {line.product_id: line.quantity for line in view} == {p1.id: 3, p2.id: 1}

    def test_total_is_a_snapshot(self, db, me, basket):
        p1, _ = basket
        order = order_service.place_order(db, me, "1 Main St", "card")
        order_id = order.id

        p1.price = 100.0
        db.commit()
        db.expire_all()

        stored = db.get(Order, order_id)
        assert stored.total_price == 11.00
        assert sorted(it.unit_price for it in stored.items) == [2.00, 5.00]

    def test_ordering_more_than_stock_is_allowed(self, db, me, make_product):
        # Stock is informational only: overselling is possible
        p = make_product(name="Saffron", price=9.0, quantity=1)
        cart_service.add_item(db, me, p.id, 5)

        order = order_service.place_order(db, me, None, None)

        assert order.total_price == 45.0
        db.refresh(p)
        assert p.quantity == 1

    def test_cart_failure_after_order_keeps_order_and_cart(self, db, me, basket, monkeypatch):
        def broken_release(*args, **kwargs):
            raise OperationalError("UPDATE cart_items", {}, Exception("database is locked"))

        monkeypatch.setattr(order_service, "_release_from_cart", broken_release)

        with pytest.raises(Internal):
            order_service.place_order(db, me, "1 Main St", "card")

        assert db.query(Order).count() == 1
        assert len(cart_service.get_cart(db, me.user_id)) == 2

    def test_lines_added_after_snapshot_stay_in_cart(self, db, me, make_product):
        p = make_product(name="Tea", price=4.0)
        cart_service.add_item(db, me, p.id, 2)
        ordered = {p.id: 2}

        # Another writer bumped the line between the two checkout commits
        cart_service.add_item(db, me, p.id, 3)
        order_service._release_from_cart(db, me.user_id, ordered)
        db.commit()

        view = cart_service.get_cart(db, me.user_id)
        assert [(line.product_id, line.quantity) for line in view] == [(p.id, 3)]


class TestOrderQueries:
    def test_list_orders_newest_first(self, db, me, make_product):
        p = make_product(name="Rice", price=2.6)
        cart_service.add_item(db, me, p.id, 1)
        first = order_service.place_order(db, me, "A", "cash")
        cart_service.add_item(db, me, p.id, 2)
        second = order_service.place_order(db, me, "B", "card")

        orders = order_service.list_orders(db, me)

        assert [o.id for o in orders] == [second.id, first.id]

    def test_get_order_of_other_user_is_not_found(self, db, me, basket, make_user, identity_for):
        order = order_service.place_order(db, me, "1 Main St", "card")
        stranger = identity_for(make_user())

        with pytest.raises(NotFound):
            order_service.get_order(db, stranger, order.id)

    def test_set_status_leaves_total(self, db, me, basket):
        order = order_service.place_order(db, me, "1 Main St", "card")

        updated = order_service.set_order_status(db, order.id, "Shipped")

        assert updated.status == "Shipped"
        assert updated.total_price == 11.00

    def test_set_status_unknown_order(self, db):
        with pytest.raises(NotFound):
            order_service.set_order_status(db, 12345, "Shipped")

    def test_set_status_blank_is_invalid(self, db, me, basket):
        order = order_service.place_order(db, me, "1 Main St", "card")
        with pytest.raises(InvalidState):
            order_service.set_order_status(db, order.id, "  ")


class TestCheckoutRacingAdds:
    def test_no_unit_is_lost_or_ordered_twice(self, session_factory, me, make_product):
        p = make_product(name="Oats", price=1.0)
        product_id = p.id
        seed = session_factory()
        try:
            cart_service.add_item(seed, me, product_id, 1)
        finally:
            seed.close()
        errors = []

        def adder():
            session = session_factory()
            try:
                for _ in range(20):
                    cart_service.add_item(session, me, product_id, 1)
            except Exception as exc:  # collected and asserted below
                errors.append(exc)
            finally:
                session.close()

        def buyer():
            session = session_factory()
            try:
                for _ in range(5):
                    try:
                        order_service.place_order(session, me, "1 Main St", "card")
                    except InvalidState:
                        # The adder had not refilled the cart yet
                        pass
            except Exception as exc:  # collected and asserted below
                errors.append(exc)
            finally:
                session.close()

        threads = [threading.Thread(target=adder), threading.Thread(target=buyer)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        check = session_factory()
        try:
            ordered = sum(
                item.quantity for order in order_service.list_orders(check, me) for item in order.items
            )
            in_cart = sum(line.quantity for line in cart_service.get_cart(check, me.user_id))
            assert ordered + in_cart == 21
            assert all(order.total_price == sum(it.quantity for it in order.items)
                       for order in order_service.list_orders(check, me))
        finally:
            check.close()
