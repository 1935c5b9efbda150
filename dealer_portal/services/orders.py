# dealer_portal/services/orders.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from firebase_admin import firestore

from ..schemas.orders import (
    CartLineIn,
    OrderStatus,
    ShippingAddress,
    SubmitOrderIn,
    SubmitOrderOut,
    TERMINAL_STATUSES,
)
from ..settings import settings
from .errors import ErrorKind, ServiceError
from .firebase import ensure_firestore
from .identity import Identity

logger = logging.getLogger(__name__)

LINES_SUBCOLLECTION = "lines"

# Forward order of the lifecycle; CANCELLED sits outside it.
STATUS_SEQUENCE: Tuple[OrderStatus, ...] = (
    OrderStatus.DRAFT,
    OrderStatus.SUBMITTED,
    OrderStatus.APPROVED,
    OrderStatus.IN_PRODUCTION,
    OrderStatus.SHIPPED,
    OrderStatus.COMPLETED,
)


def _iso(v: Any) -> Any:
    return v.isoformat() if hasattr(v, "isoformat") else v


def _order_doc_to_dict(order_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(data)
    out["id"] = order_id
    out["createdAt"] = _iso(data.get("createdAt"))
    out["updatedAt"] = _iso(data.get("updatedAt"))
    return out


# --- SUBMIT -------------------------------------------------------------------
def require_account(identity: Optional[Identity]) -> Tuple[str, str]:
    if identity is None:
        raise ServiceError(ErrorKind.UNAUTHENTICATED, "User must be authenticated")
    if not identity.accountId:
        raise ServiceError(ErrorKind.FAILED_PRECONDITION, "User account is not configured")
    return identity.accountId, identity.currency or settings.default_currency


def _has_text(v: Optional[str]) -> bool:
    return bool(v and v.strip())


def _validate_submission(body: SubmitOrderIn) -> ShippingAddress:
    if not body.cartItems:
        raise ServiceError(ErrorKind.INVALID_ARGUMENT, "Cart must contain at least one item")

    addr = body.shippingAddress
    if addr is None or not (_has_text(addr.line1) and _has_text(addr.city) and _has_text(addr.country)):
        raise ServiceError(ErrorKind.INVALID_ARGUMENT, "Shipping address is required")

    if settings.require_terms_acceptance and body.termsAccepted is not True:
        raise ServiceError(
            ErrorKind.INVALID_ARGUMENT,
            "Purchase order Terms & Conditions must be accepted",
        )
    return addr


def _line_record(line: CartLineIn) -> Dict[str, Any]:
    return {
        "productId": line.productId,
        "sku": line.sku,
        "name": line.name,
        "qty": line.qty,
        "unitPrice": line.unitPrice,
        "lineTotal": line.unitPrice * line.qty,
        "selectedOptions": line.selectedOptions or None,
    }


def submit_order(identity: Optional[Identity], body: SubmitOrderIn) -> SubmitOrderOut:
    """
    Turn a cart into a SUBMITTED order.

    Unit prices are taken from the cart lines as-is. The header and every line
    record go into one Firestore batch, so either the whole order exists
    afterwards or nothing does.
    """
    try:
        account_id, currency = require_account(identity)
        address = _validate_submission(body)
    except ServiceError as e:
        logger.warning("order rejected (%s): %s", e.kind.value, e.message)
        raise

    lines = [_line_record(line) for line in body.cartItems]
    subtotal = sum(line["lineTotal"] for line in lines)

    try:
        db = ensure_firestore()
        order_ref = db.collection(settings.orders_collection).document()
        header = {
            "accountId": account_id,
            "createdByUid": identity.uid,
            "status": OrderStatus.SUBMITTED.value,
            "currency": currency,
            "totals": {"subtotal": subtotal, "currency": currency},
            "shippingAddress": address.model_dump(),
            "poNumber": body.poNumber or None,
            "notes": body.notes or None,
            "termsAccepted": body.termsAccepted,
            "createdAt": firestore.SERVER_TIMESTAMP,
            "updatedAt": firestore.SERVER_TIMESTAMP,
        }

        batch = db.batch()
        batch.set(order_ref, header)
        for line in lines:
            batch.set(order_ref.collection(LINES_SUBCOLLECTION).document(), line)
        batch.commit()
    except Exception as e:
        logger.exception("order commit failed for account %s", account_id)
        raise ServiceError(
            ErrorKind.INTERNAL, "An error occurred while processing your order"
        ) from e

    logger.info(
        "order %s submitted: account=%s lines=%d subtotal=%.2f %s",
        order_ref.id, account_id, len(lines), subtotal, currency,
    )
    return SubmitOrderOut(orderId=order_ref.id, status=OrderStatus.SUBMITTED)


# --- READ ---------------------------------------------------------------------
def _load_order(db, order_id: str) -> Optional[Dict[str, Any]]:
    snap = db.collection(settings.orders_collection).document(order_id).get()
    if not snap.exists:
        return None
    return _order_doc_to_dict(snap.id, snap.to_dict() or {})


def _visible_to(identity: Identity, order: Dict[str, Any]) -> bool:
    return identity.is_staff or (
        identity.accountId is not None and order.get("accountId") == identity.accountId
    )


def get_order(identity: Optional[Identity], order_id: str) -> Dict[str, Any]:
    """Order header plus its lines. Orders of other accounts read as missing."""
    if identity is None:
        raise ServiceError(ErrorKind.UNAUTHENTICATED, "User must be authenticated")
    db = ensure_firestore()
    order = _load_order(db, order_id)
    if order is None or not _visible_to(identity, order):
        raise ServiceError(ErrorKind.NOT_FOUND, "order not found")

    lines_col = (
        db.collection(settings.orders_collection)
        .document(order_id)
        .collection(LINES_SUBCOLLECTION)
    )
    lines: List[Dict[str, Any]] = []
    for snap in lines_col.stream():
        row = snap.to_dict() or {}
        row["id"] = snap.id
        lines.append(row)
    order["lines"] = lines
    return order


def list_orders(identity: Optional[Identity], limit: int = 100) -> List[Dict[str, Any]]:
    """
    Newest orders first. Staff see every account, dealers only their own.
    """
    if identity is None:
        raise ServiceError(ErrorKind.UNAUTHENTICATED, "User must be authenticated")
    db = ensure_firestore()
    q = db.collection(settings.orders_collection)
    if not identity.is_staff:
        if not identity.accountId:
            raise ServiceError(ErrorKind.FAILED_PRECONDITION, "User account is not configured")
        q = q.where("accountId", "==", identity.accountId)
    q = q.order_by("createdAt", direction=firestore.Query.DESCENDING).limit(limit)
    return [_order_doc_to_dict(s.id, s.to_dict() or {}) for s in q.stream()]


# --- STATUS -------------------------------------------------------------------
def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    """Forward progression only; CANCELLED from anything not yet finished."""
    if current in TERMINAL_STATUSES or current == new:
        return False
    if new == OrderStatus.CANCELLED:
        return True
    return STATUS_SEQUENCE.index(new) > STATUS_SEQUENCE.index(current)


def update_order_status(
    identity: Optional[Identity], order_id: str, new_status: OrderStatus
) -> Dict[str, Any]:
    if identity is None:
        raise ServiceError(ErrorKind.UNAUTHENTICATED, "User must be authenticated")
    if not identity.is_staff:
        raise ServiceError(ErrorKind.PERMISSION_DENIED, "Only staff can change order status")

    db = ensure_firestore()
    ref = db.collection(settings.orders_collection).document(order_id)
    snap = ref.get()
    if not snap.exists:
        raise ServiceError(ErrorKind.NOT_FOUND, "order not found")

    stored = (snap.to_dict() or {}).get("status", OrderStatus.DRAFT.value)
    try:
        current: Optional[OrderStatus] = OrderStatus(stored)
    except ValueError:
        current = None

    if settings.enforce_status_transitions:
        if current is None:
            raise ServiceError(
                ErrorKind.FAILED_PRECONDITION, f"Order has unknown status {stored!r}"
            )
        if not can_transition(current, new_status):
            raise ServiceError(
                ErrorKind.FAILED_PRECONDITION,
                f"Cannot move order from {current.value} to {new_status.value}",
            )

    ref.update({"status": new_status.value, "updatedAt": firestore.SERVER_TIMESTAMP})
    logger.info(
        "order %s status %s -> %s by %s", order_id, stored, new_status.value, identity.uid
    )
    return _load_order(db, order_id)
