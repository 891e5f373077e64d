# backend/services/orders.py
"""
Checkout and order queries.

``place_order`` turns the caller's cart into an order in two commits:

1. the order (line copies, total, address, payment method, status
   ``Pending``) is inserted and committed;
2. the quantities captured in step 1 are removed from the cart.

If step 2 fails the order still exists and the cart keeps its lines, so no
purchase intent is lost. Lines added by another process between the two
steps stay in the cart for a later checkout.

Order totals are computed once here and never recomputed afterwards.
"""
import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from database import fits_integer, unit_of_work
from models.order import Order, OrderItem, ORDER_STATUS_PENDING
from schemas.principal import AuthenticatedIdentity
from services.cart import find_cart, resolve_products
from utils.errors import InvalidState, NotFound
from utils.locks import user_lock

logger = logging.getLogger(__name__)


def _release_from_cart(db: Session, user_id: str, ordered: Dict[int, int]) -> None:
    cart = find_cart(db, user_id, for_update=True)
    if cart is None:
        return
    for line in list(cart.items):
        remaining = line.quantity - ordered.get(line.product_id, 0)
        if remaining <= 0:
            cart.items.remove(line)
        else:
            line.quantity = remaining


def place_order(
    db: Session,
    identity: AuthenticatedIdentity,
    address: Optional[str],
    payment_method: Optional[str],
) -> Order:
    with user_lock(identity.user_id):
        with unit_of_work(db, "Error placing order"):
            cart = find_cart(db, identity.user_id, for_update=True)
            if cart is None or not cart.items:
                raise InvalidState("Cart is empty")

            catalog = resolve_products(db, (it.product_id for it in cart.items))
            for it in cart.items:
                if it.product_id not in catalog:
                    raise NotFound(f"Product {it.product_id} not found")

            total = sum(catalog[it.product_id].price * it.quantity for it in cart.items)
            order = Order(
                user_id=identity.user_id,
                total_price=round(total, 2),
                address=address,
                payment_method=payment_method,
                status=ORDER_STATUS_PENDING,
                items=[
                    OrderItem(
                        product_id=it.product_id,
                        quantity=it.quantity,
                        unit_price=catalog[it.product_id].price,
                    )
                    for it in cart.items
                ],
            )
            ordered = {it.product_id: it.quantity for it in cart.items}
            db.add(order)

        # The order is durable from here on
        logger.info("Order %s created for user %s, total %.2f", order.id, identity.user_id, order.total_price)

        with unit_of_work(db, f"Order {order.id} was placed but the cart could not be cleared"):
            _release_from_cart(db, identity.user_id, ordered)

        db.refresh(order)
    return order


def _orders_query(db: Session):
    return db.query(Order).options(selectinload(Order.items))


def list_orders(db: Session, identity: AuthenticatedIdentity) -> List[Order]:
    return (
        _orders_query(db)
        .filter(Order.user_id == identity.user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )


def get_order(db: Session, identity: AuthenticatedIdentity, order_id: int) -> Order:
    if not fits_integer(order_id):
        raise NotFound("Order not found")
    order = _orders_query(db).filter(Order.id == order_id).first()
    # Other users' orders are reported as missing
    if order is None or order.user_id != identity.user_id:
        raise NotFound("Order not found")
    return order


def set_order_status(db: Session, order_id: int, status: str) -> Order:
    """Store a new status. Items and total are left untouched; no transition rules apply."""
    status = (status or "").strip()
    if not status:
        raise InvalidState("Status cannot be empty")
    if not fits_integer(order_id):
        raise NotFound("Order not found")
    with unit_of_work(db, "Error updating order status"):
        order = db.query(Order).filter(Order.id == order_id).first()
        if order is None:
            raise NotFound("Order not found")
        order.status = status
    db.refresh(order)
    return order
