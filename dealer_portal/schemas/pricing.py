# dealer_portal/schemas/pricing.py
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


def _as_utc(v: datetime) -> datetime:
    # naive instants are stored as UTC
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v


class PromoPrice(BaseModel):
    price: float
    validFrom: datetime
    validTo: datetime

    @field_validator("validFrom", "validTo")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return _as_utc(v)


class QuantityBreak(BaseModel):
    minQuantity: int
    maxQuantity: Optional[int] = None  # None means unlimited
    price: float

    def contains(self, quantity: int) -> bool:
        if quantity < self.minQuantity:
            return False
        return self.maxQuantity is None or quantity <= self.maxQuantity


class PriceBook(BaseModel):
    """Pricing rules for one product, as stored in `prices/{productId}`."""
    productId: Optional[str] = None
    currency: str = "USD"
    basePrice: float
    promo: Optional[PromoPrice] = None
    quantityBreaks: List[QuantityBreak] = Field(default_factory=list)
    tierPrices: Dict[str, Optional[float]] = Field(default_factory=dict)
    accountOverrides: Dict[str, Optional[float]] = Field(default_factory=dict)


class Tier(BaseModel):
    id: str
    name: str = ""
    description: Optional[str] = None
    minQuantity: Optional[int] = None
    maxQuantity: Optional[int] = None
    order: Optional[int] = None  # lower = higher priority

    @property
    def is_volume(self) -> bool:
        return self.minQuantity is not None or self.maxQuantity is not None

    def contains(self, quantity: int) -> bool:
        if self.minQuantity is not None and quantity < self.minQuantity:
            return False
        return self.maxQuantity is None or quantity <= self.maxQuantity


class PriceSource(str, Enum):
    PROMO = "PROMO"
    ACCOUNT_OVERRIDE = "ACCOUNT_OVERRIDE"
    QUANTITY_BREAK = "QUANTITY_BREAK"
    VOLUME_TIER = "VOLUME_TIER"
    TIER_FALLBACK = "TIER_FALLBACK"
    BASE = "BASE"
    NONE = "NONE"


class EffectivePrice(BaseModel):
    price: Optional[float] = None
    source: PriceSource
    matchedTierId: Optional[str] = None


# ---- Product options ---------------------------------------------------------
class OptionValue(BaseModel):
    valueId: str
    label: str = ""
    priceAdjustment: Optional[float] = None
    skuSuffix: Optional[str] = None


class ProductOption(BaseModel):
    optionId: str
    label: str = ""
    type: str = "select"  # select | number
    required: bool = False
    values: List[OptionValue] = Field(default_factory=list)


# ---- HTTP --------------------------------------------------------------------
class EffectivePriceIn(BaseModel):
    productId: str
    quantity: int = 1
    selectedOptions: Optional[Dict[str, str]] = None


class EffectivePriceOut(BaseModel):
    productId: str
    quantity: int
    price: Optional[float] = None
    source: PriceSource
    matchedTierId: Optional[str] = None
    unitPrice: Optional[float] = None
    sku: Optional[str] = None
    currency: Optional[str] = None
