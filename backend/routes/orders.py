# backend/routes/orders.py
from typing import List
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_identity, role_required
from utils.audit import write_log, client_ip
from schemas.order import OrderCreatePayload, OrderPlacedResponse, OrderResponse, OrderStatusPatch
from schemas.principal import AuthenticatedIdentity
from services import orders as order_service

router = APIRouter(prefix="/api", tags=["Orders"])


# Turn the caller's cart into an order
@router.post("/order", response_model=OrderPlacedResponse, status_code=status.HTTP_201_CREATED)
def place_order(
    payload: OrderCreatePayload,
    request: Request,
    db: Session = Depends(get_db),
    identity: AuthenticatedIdentity = Depends(get_current_identity),
):
    order = order_service.place_order(db, identity, payload.address, payload.payment_method)
    out = OrderResponse.model_validate(order)

    write_log(
        db, user_id=identity.user_id, action="ORDER_CREATE", resource="orders", status="SUCCESS",
        ip=client_ip(request),
        meta={"order_id": out.id, "total_price": out.total_price, "items": len(out.items)},
    )
    return OrderPlacedResponse(message="Order placed successfully", order=out)


# List the caller's orders, newest first
@router.get("/orders", response_model=List[OrderResponse])
def list_my_orders(
    db: Session = Depends(get_db),
    identity: AuthenticatedIdentity = Depends(get_current_identity),
):
    return [OrderResponse.model_validate(o) for o in order_service.list_orders(db, identity)]


@router.get("/orders/{order_id}", response_model=OrderResponse)
def get_order_detail(
    order_id: int,
    db: Session = Depends(get_db),
    identity: AuthenticatedIdentity = Depends(get_current_identity),
):
    return OrderResponse.model_validate(order_service.get_order(db, identity, order_id))


# Fulfilment status update (admin only)
@router.patch("/orders/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: int,
    payload: OrderStatusPatch,
    request: Request,
    db: Session = Depends(get_db),
    admin: AuthenticatedIdentity = Depends(role_required("admin")),
):
    order = order_service.set_order_status(db, order_id, payload.status)
    out = OrderResponse.model_validate(order)

    write_log(db, user_id=admin.user_id, action="ORDER_STATUS_CHANGE", resource="orders", status="SUCCESS",
              ip=client_ip(request), meta={"order_id": out.id, "new": out.status})
    return out
