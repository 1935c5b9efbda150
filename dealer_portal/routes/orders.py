# dealer_portal/routes/orders.py
from __future__ import annotations
from typing import List, Optional

from fastapi import APIRouter, Depends

from ..schemas.orders import OrderOut, StatusUpdateIn, SubmitOrderIn, SubmitOrderOut
from ..services.identity import Identity, get_identity
from ..services.orders import (
    get_order,
    list_orders,
    require_account,
    submit_order,
    update_order_status,
)


router = APIRouter(prefix="/orders", tags=["orders"])


def configured_caller(identity: Optional[Identity] = Depends(get_identity)) -> Identity:
    """Runs before the body is validated, so caller failures win over malformed carts."""
    require_account(identity)
    return identity


@router.post("/submit", response_model=SubmitOrderOut)
def submit_order_endpoint(
    body: SubmitOrderIn,
    identity: Identity = Depends(configured_caller),
):
    return submit_order(identity, body)


@router.get("", response_model=List[OrderOut])
def list_orders_endpoint(identity: Optional[Identity] = Depends(get_identity)):
    """
    Recent orders: the caller's own account, or every account for staff.
    """
    return list_orders(identity)


@router.get("/{order_id}", response_model=OrderOut)
def get_order_endpoint(order_id: str, identity: Optional[Identity] = Depends(get_identity)):
    return get_order(identity, order_id)


@router.patch("/{order_id}/status", response_model=OrderOut)
def update_status_endpoint(
    order_id: str,
    body: StatusUpdateIn,
    identity: Optional[Identity] = Depends(get_identity),
):
    return update_order_status(identity, order_id, body.status)
