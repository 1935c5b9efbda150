# dealer_portal/services/pricing.py
"""
Effective price resolution.

Resolution order (first match wins):
    1. no price book            -> NONE (price is None)
    2. promo window contains now -> PROMO
    3. account override         -> ACCOUNT_OVERRIDE
    4. quantity break           -> QUANTITY_BREAK (highest minQuantity among matches)
    5. volume tier              -> VOLUME_TIER
    6. account's assigned tier  -> TIER_FALLBACK
    7. otherwise                -> BASE

Everything here is pure: snapshots in, a price out. Callers fetch the
PriceBook / Tier data themselves (see services/catalog.py).
"""
from __future__ import annotations

from datetime import datetime, timezone
from functools import cmp_to_key
from typing import Dict, Iterable, List, Optional, Sequence

from ..schemas.pricing import (
    EffectivePrice,
    PriceBook,
    PriceSource,
    ProductOption,
    QuantityBreak,
    Tier,
)


def resolve_effective_price(
    price_book: Optional[PriceBook],
    account_id: str,
    account_tier_id: str,
    quantity: int,
    now: datetime,
    tiers: Sequence[Tier] = (),
) -> EffectivePrice:
    if price_book is None:
        return EffectivePrice(price=None, source=PriceSource.NONE)

    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    promo = price_book.promo
    if promo is not None and promo.validFrom <= now <= promo.validTo:
        return EffectivePrice(price=promo.price, source=PriceSource.PROMO)

    override = price_book.accountOverrides.get(account_id)
    if override is not None:
        return EffectivePrice(price=override, source=PriceSource.ACCOUNT_OVERRIDE)

    if quantity > 0:
        brk = _match_quantity_break(price_book.quantityBreaks, quantity)
        if brk is not None:
            return EffectivePrice(price=brk.price, source=PriceSource.QUANTITY_BREAK)

        tier = _match_volume_tier(tiers, price_book.tierPrices, quantity)
        if tier is not None:
            return EffectivePrice(
                price=price_book.tierPrices[tier.id],
                source=PriceSource.VOLUME_TIER,
                matchedTierId=tier.id,
            )

    fallback = price_book.tierPrices.get(account_tier_id)
    if fallback is not None:
        return EffectivePrice(price=fallback, source=PriceSource.TIER_FALLBACK)

    return EffectivePrice(price=price_book.basePrice, source=PriceSource.BASE)


def _match_quantity_break(
    breaks: Iterable[QuantityBreak], quantity: int
) -> Optional[QuantityBreak]:
    # max() keeps the first of equal minQuantity, i.e. input order among ties
    matches = [b for b in breaks if b.contains(quantity)]
    if not matches:
        return None
    return max(matches, key=lambda b: b.minQuantity)


def _compare_tiers(a: Tier, b: Tier) -> int:
    if a.order is not None and b.order is not None:
        return a.order - b.order
    return (b.minQuantity or 0) - (a.minQuantity or 0)


def _match_volume_tier(
    tiers: Iterable[Tier], tier_prices: Dict[str, Optional[float]], quantity: int
) -> Optional[Tier]:
    candidates = [
        t for t in tiers
        if t.is_volume and t.contains(quantity) and tier_prices.get(t.id) is not None
    ]
    if not candidates:
        return None
    return sorted(candidates, key=cmp_to_key(_compare_tiers))[0]


# ---- Options -----------------------------------------------------------------
def _selected_values(options: Iterable[ProductOption], selected: Optional[Dict[str, str]]):
    if not selected:
        return
    for option in options:
        value_id = selected.get(option.optionId)
        if not value_id:
            continue
        for value in option.values:
            if value.valueId == value_id:
                yield value
                break


def apply_option_adjustments(
    price: Optional[float],
    options: Iterable[ProductOption],
    selected: Optional[Dict[str, str]],
) -> Optional[float]:
    """Add the priceAdjustment of every selected option value to a resolved price."""
    if price is None:
        return None
    total = price
    for value in _selected_values(options, selected):
        if value.priceAdjustment:
            total += value.priceAdjustment
    return total


def build_sku(base_sku: str, options: Iterable[ProductOption], selected: Optional[Dict[str, str]]) -> str:
    suffixes: List[str] = [v.skuSuffix for v in _selected_values(options, selected) if v.skuSuffix]
    return base_sku + "".join(suffixes)
