# dealer_portal/services/catalog.py
from __future__ import annotations
from typing import Any, Dict, List, Optional

from ..schemas.pricing import PriceBook, ProductOption, Tier
from ..settings import settings
from .firebase import ensure_firestore


# --- READ HELPERS -------------------------------------------------------------
def get_price_book(product_id: str) -> Optional[PriceBook]:
    """
    PriceBook snapshot for one product, or None if the product has no prices doc.
    """
    if not product_id:
        return None
    db = ensure_firestore()
    snap = db.collection(settings.prices_collection).document(product_id).get()
    if not snap.exists:
        return None
    data = snap.to_dict() or {}
    data.setdefault("productId", snap.id)
    return PriceBook.model_validate(data)


def list_tiers() -> List[Tier]:
    db = ensure_firestore()
    out: List[Tier] = []
    for d in db.collection(settings.tiers_collection).stream():
        data = d.to_dict() or {}
        data["id"] = d.id
        out.append(Tier.model_validate(data))
    return out


def get_product(product_id: str) -> Optional[Dict[str, Any]]:
    if not product_id:
        return None
    db = ensure_firestore()
    snap = db.collection(settings.products_collection).document(product_id).get()
    if not snap.exists:
        return None
    data = snap.to_dict() or {}
    data["id"] = snap.id
    return data


def product_options(product: Optional[Dict[str, Any]]) -> List[ProductOption]:
    if not product:
        return []
    return [ProductOption.model_validate(o) for o in product.get("options") or []]
