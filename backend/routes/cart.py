# backend/routes/cart.py
from typing import List
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_identity
from utils.audit import write_log, client_ip
from schemas.cart import CartAddItem, CartUpdateItem, CartOut, CartViewItem
from schemas.principal import AuthenticatedIdentity
from services import cart as cart_service

router = APIRouter(prefix="/api/cart", tags=["Cart"])


@router.get("", response_model=List[CartViewItem])
def get_cart(
    db: Session = Depends(get_db),
    identity: AuthenticatedIdentity = Depends(get_current_identity),
):
    return cart_service.get_cart(db, identity.user_id)


@router.post("", response_model=CartOut)
def add_to_cart(
    payload: CartAddItem,
    request: Request,
    db: Session = Depends(get_db),
    identity: AuthenticatedIdentity = Depends(get_current_identity),
):
    cart = cart_service.add_item(db, identity, payload.product_id, payload.quantity)
    out = CartOut.model_validate(cart)

    write_log(
        db,
        user_id=identity.user_id,
        action="CART_ADD",
        resource="cart",
        status="SUCCESS",
        ip=client_ip(request),
        meta={"product_id": payload.product_id, "quantity": payload.quantity, "cart_items": len(out.items)},
    )
    return out


@router.put("/{product_id}", response_model=CartOut)
def update_cart_item(
    product_id: int,
    payload: CartUpdateItem,
    request: Request,
    db: Session = Depends(get_db),
    identity: AuthenticatedIdentity = Depends(get_current_identity),
):
    cart = cart_service.update_item(db, identity, product_id, payload.quantity)
    out = CartOut.model_validate(cart)

    write_log(
        db,
        user_id=identity.user_id,
        action="CART_UPDATE",
        resource="cart",
        status="SUCCESS",
        ip=client_ip(request),
        meta={"product_id": product_id, "quantity": payload.quantity},
    )
    return out


@router.delete("/{product_id}", response_model=CartOut)
def delete_cart_item(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    identity: AuthenticatedIdentity = Depends(get_current_identity),
):
    cart = cart_service.remove_item(db, identity, product_id)
    out = CartOut.model_validate(cart)

    write_log(
        db,
        user_id=identity.user_id,
        action="CART_REMOVE",
        resource="cart",
        status="SUCCESS",
        ip=client_ip(request),
        meta={"product_id": product_id, "cart_items": len(out.items)},
    )
    return out
