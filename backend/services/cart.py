# backend/services/cart.py
"""
Cart operations for authenticated users.

A user owns at most one cart. It is created lazily by ``ensure_cart`` on the
first write and afterwards only emptied, never deleted. Lines are unique per
product: adding a product that is already in the cart increases the existing
line's quantity.

Every write runs under ``user_lock`` and takes a row lock on the cart, so
concurrent requests of the same user cannot interleave their
read-modify-write sequences.
"""
import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from database import MAX_INTEGER, fits_integer, unit_of_work
from models.cart import Cart, CartItem
from models.product import Product
from schemas.cart import CartViewItem
from schemas.principal import AuthenticatedIdentity
from utils.errors import InvalidState, NotFound
from utils.locks import user_lock

logger = logging.getLogger(__name__)


def _check_quantity(quantity) -> int:
    # bool is an int subclass; True must not count as 1
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidState("Quantity must be a positive integer")
    if quantity > MAX_INTEGER:
        raise InvalidState("Quantity is too large")
    return quantity


def find_cart(db: Session, user_id: str, for_update: bool = False) -> Optional[Cart]:
    query = db.query(Cart).filter(Cart.user_id == user_id)
    if for_update:
        query = query.with_for_update()
    return query.first()


def ensure_cart(db: Session, user_id: str) -> Cart:
    """Return the user's cart, creating an empty one if none exists yet.

    The returned cart is row-locked for the current transaction. The caller
    owns the transaction and must commit.
    """
    cart = find_cart(db, user_id, for_update=True)
    if cart is None:
        cart = Cart(user_id=user_id)
        db.add(cart)
        db.flush()
        logger.debug("Created cart %s for user %s", cart.id, user_id)
    return cart


def resolve_products(db: Session, product_ids: Iterable[int]) -> Dict[int, Product]:
    ids = set(product_ids)
    if not ids:
        return {}
    products = db.query(Product).filter(Product.id.in_(ids)).all()
    return {p.id: p for p in products}


def _find_line(cart: Cart, product_id: int) -> Optional[CartItem]:
    for item in cart.items:
        if item.product_id == product_id:
            return item
    return None


def get_cart(db: Session, user_id: str) -> List[CartViewItem]:
    # Read-only: a user without a cart just has an empty one
    cart = find_cart(db, user_id)
    if cart is None:
        return []

    catalog = resolve_products(db, (it.product_id for it in cart.items))
    view: List[CartViewItem] = []
    for it in cart.items:
        product = catalog.get(it.product_id)
        if product is None:
            logger.warning("Cart of user %s references missing product %s", user_id, it.product_id)
            view.append(CartViewItem(product_id=it.product_id, quantity=it.quantity))
            continue
        view.append(CartViewItem(
            product_id=product.id,
            name=product.name,
            price=product.price,
            quantity=it.quantity,
            image=product.image,
        ))
    return view


def add_item(db: Session, identity: AuthenticatedIdentity, product_id: int, quantity: int) -> Cart:
    _check_quantity(quantity)
    with user_lock(identity.user_id):
        with unit_of_work(db, "Error adding to cart"):
            if not fits_integer(product_id) or db.get(Product, product_id) is None:
                raise NotFound(f"Product {product_id} not found")

            cart = ensure_cart(db, identity.user_id)
            line = _find_line(cart, product_id)
            if line is not None:
                if line.quantity + quantity > MAX_INTEGER:
                    raise InvalidState("Quantity is too large")
                line.quantity += quantity
            else:
                cart.items.append(CartItem(product_id=product_id, quantity=quantity))
        db.refresh(cart)
    return cart


def update_item(db: Session, identity: AuthenticatedIdentity, product_id: int, quantity: int) -> Cart:
    _check_quantity(quantity)
    with user_lock(identity.user_id):
        with unit_of_work(db, "Error updating cart"):
            cart = find_cart(db, identity.user_id, for_update=True)
            line = _find_line(cart, product_id) if cart is not None else None
            if line is None:
                raise NotFound(f"Product {product_id} is not in the cart")
            line.quantity = quantity
        db.refresh(cart)
    return cart


def remove_item(db: Session, identity: AuthenticatedIdentity, product_id: int) -> Cart:
    with user_lock(identity.user_id):
        with unit_of_work(db, "Error removing from cart"):
            cart = find_cart(db, identity.user_id, for_update=True)
            line = _find_line(cart, product_id) if cart is not None else None
            if line is None:
                raise NotFound(f"Product {product_id} is not in the cart")
            cart.items.remove(line)
        db.refresh(cart)
    return cart
