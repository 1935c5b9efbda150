# dealer_portal/routes/pricing.py
from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends

from ..schemas.pricing import EffectivePriceIn, EffectivePriceOut
from ..services.catalog import get_price_book, get_product, list_tiers, product_options
from ..services.errors import ErrorKind, ServiceError
from ..services.identity import Identity, get_identity
from ..services.pricing import apply_option_adjustments, build_sku, resolve_effective_price

router = APIRouter(prefix="/pricing", tags=["pricing"])


@router.post("/effective", response_model=EffectivePriceOut)
def effective_price_endpoint(
    body: EffectivePriceIn,
    identity: Optional[Identity] = Depends(get_identity),
):
    """
    Price one product for the calling dealer at the requested quantity.
    `unitPrice` is what a cart line should carry (options included).
    """
    if identity is None:
        raise ServiceError(ErrorKind.UNAUTHENTICATED, "User must be authenticated")
    if not identity.accountId:
        raise ServiceError(ErrorKind.FAILED_PRECONDITION, "User account is not configured")

    book = get_price_book(body.productId)
    product = get_product(body.productId)
    options = product_options(product)

    effective = resolve_effective_price(
        book,
        account_id=identity.accountId,
        account_tier_id=identity.tierId or "",
        quantity=body.quantity,
        now=datetime.now(timezone.utc),
        tiers=list_tiers(),
    )
    return EffectivePriceOut(
        productId=body.productId,
        quantity=body.quantity,
        price=effective.price,
        source=effective.source,
        matchedTierId=effective.matchedTierId,
        unitPrice=apply_option_adjustments(effective.price, options, body.selectedOptions),
        sku=build_sku(product.get("sku", ""), options, body.selectedOptions) if product else None,
        currency=book.currency if book else None,
    )
