# dealer_portal/schemas/orders.py
from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field


class OrderStatus(str, Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    IN_PRODUCTION = "IN_PRODUCTION"
    SHIPPED = "SHIPPED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})


# ---- Input -------------------------------------------------------------------
# Required-ness is checked by services.orders so failures come back in a fixed
# order with a typed kind, instead of as a request validation error.
class CartLineIn(BaseModel):
    productId: str = Field(..., validation_alias=AliasChoices("productId", "guitarId"))
    sku: str = ""
    name: str = ""
    qty: int = Field(..., ge=1)
    unitPrice: float = Field(..., ge=0)
    selectedOptions: Optional[Dict[str, str]] = None


class ShippingAddress(BaseModel):
    company: Optional[str] = None
    line1: Optional[str] = None
    line2: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None
    postalCode: Optional[str] = None
    country: Optional[str] = None


class SubmitOrderIn(BaseModel):
    cartItems: List[CartLineIn] = Field(
        default_factory=list, validation_alias=AliasChoices("cartItems", "cartLines")
    )
    shippingAddress: Optional[ShippingAddress] = None
    poNumber: Optional[str] = None
    notes: Optional[str] = None
    termsAccepted: Optional[bool] = None


class StatusUpdateIn(BaseModel):
    status: OrderStatus


# ---- Output ------------------------------------------------------------------
class SubmitOrderOut(BaseModel):
    orderId: str
    status: OrderStatus


class OrderLineOut(BaseModel):
    id: Optional[str] = None
    productId: str
    sku: str
    name: str
    qty: int
    unitPrice: float
    lineTotal: float
    selectedOptions: Optional[Dict[str, str]] = None


class TotalsOut(BaseModel):
    subtotal: float
    currency: str


class OrderOut(BaseModel):
    id: str
    accountId: str
    createdByUid: str
    status: OrderStatus
    currency: str
    totals: TotalsOut
    shippingAddress: ShippingAddress
    poNumber: Optional[str] = None
    notes: Optional[str] = None
    termsAccepted: Optional[bool] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None
    lines: List[OrderLineOut] = Field(default_factory=list)
