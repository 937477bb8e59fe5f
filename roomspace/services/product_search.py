from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from roomspace.config import Settings, settings as default_settings
from roomspace.domain.enums import ProductSort
from roomspace.domain.models import FurnitureItem, Product, ProductImages, ProductPrice

log = logging.getLogger(__name__)

RECOMMENDATIONS_PER_ITEM = 5
RECOMMENDATION_PRICE_HEADROOM = 1.5


@dataclass(frozen=True)
class _Tier:
    suffix: str
    base_price: int
    price_span: int
    base_reviews: int
    review_span: int
    features: tuple
    availability: str


# Synthetic catalogue tiers (no live marketplace integration yet)
_TIERS = (
    _Tier("Modern Style", 100, 500, 10, 1000,
          ("High-quality materials", "Easy assembly", "Modern design"), "In Stock"),
    _Tier("Premium Collection", 200, 800, 50, 1500,
          ("Premium materials", "Professional assembly available", "Designer approved"), "In Stock"),
    _Tier("Budget Friendly", 50, 300, 20, 800,
          ("Affordable option", "Good value for money", "Basic assembly required"), "Limited Stock"),
)


def _stable_int(*parts: str) -> int:
    h = hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()
    return int(h[:12], 16)


def _val(x: Any) -> Any:
    return getattr(x, "value", x)


def sort_products(products: Iterable[Product], sort_by: ProductSort | str = ProductSort.relevance) -> List[Product]:
    """Stable local sort; relevance keeps upstream order."""
    items = list(products)
    key = str(_val(sort_by) or ProductSort.relevance.value)
    if key == ProductSort.price_low.value:
        return sorted(items, key=lambda p: p.price.amount)
    if key == ProductSort.price_high.value:
        return sorted(items, key=lambda p: -p.price.amount)
    if key == ProductSort.rating.value:
        return sorted(items, key=lambda p: -p.rating)
    return items


def filter_by_price(
    products: Iterable[Product], *, min_price: Optional[float] = None, max_price: Optional[float] = None
) -> List[Product]:
    out: List[Product] = []
    for p in products:
        if min_price is not None and p.price.amount < min_price:
            continue
        if max_price is not None and p.price.amount > max_price:
            continue
        out.append(p)
    return out


class ProductSearch:
    """
    Keyword search over the product catalogue.

    Without a live marketplace integration the catalogue is a deterministic
    synthetic result set derived from the keywords, so repeated searches
    return identical products.
    """

    def __init__(self, *, settings: Optional[Settings] = None):
        self._settings = settings or default_settings

    @property
    def partner_tag(self) -> str:
        return self._settings.AMAZON_PARTNER_TAG

    def catalogue(self, keywords: str, category: Optional[str] = None) -> List[Product]:
        kw = keywords.strip()
        out: List[Product] = []
        for i, tier in enumerate(_TIERS, start=1):
            seed = _stable_int(kw.lower(), (category or "").lower(), tier.suffix)
            asin = f"B08{_stable_int(kw.lower(), tier.suffix) % 10**7:07d}"
            out.append(
                Product(
                    asin=asin,
                    title=f"{kw} - {tier.suffix}",
                    category=category,
                    price=ProductPrice(amount=float(tier.base_price + seed % tier.price_span)),
                    images=ProductImages(
                        primary=f"https://via.placeholder.com/300x300?text=Product+{i}",
                        thumbnails=[f"https://via.placeholder.com/150x150?text=Thumb+{i}"],
                    ),
                    rating=round(3.0 + (seed // 7 % 21) / 10, 1),  # 3.0 .. 5.0
                    review_count=tier.base_reviews + seed // 11 % tier.review_span,
                    features=list(tier.features),
                    affiliate_url=f"https://amazon.com/dp/{asin}?tag={self.partner_tag}",
                    availability=tier.availability,
                )
            )
        return out

    async def search_products(
        self,
        keywords: str,
        category: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        sort_by: ProductSort | str = ProductSort.relevance,
    ) -> List[Product]:
        log.info("product search", extra={"keywords": keywords, "category": category, "sort_by": str(_val(sort_by))})
        products = self.catalogue(keywords, category)
        products = filter_by_price(products, min_price=min_price, max_price=max_price)
        return sort_products(products, sort_by)

    async def recommend_for_items(self, items: Iterable[FurnitureItem | Mapping[str, Any]]) -> List[Dict[str, Any]]:
        """Top products per furniture item, capped at 1.5x its estimated price."""
        recommendations: List[Dict[str, Any]] = []
        for raw in items:
            try:
                item = raw if isinstance(raw, FurnitureItem) else FurnitureItem.model_validate(raw)
            except PydanticValidationError:
                name = raw.get("name") if isinstance(raw, Mapping) else None
                log.warning("skipping malformed furniture item", extra={"item": name})
                recommendations.append({"item": name, "products": [], "error": "Search failed"})
                continue
            terms = item.search_terms or [item.name]
            max_price = item.estimated_price * RECOMMENDATION_PRICE_HEADROOM if item.estimated_price else None
            products = await self.search_products(" ".join(terms), category="Home & Kitchen", max_price=max_price)
            recommendations.append(
                {
                    "item": item.name,
                    "category": item.category,
                    "estimatedPrice": item.estimated_price,
                    "products": [to_wire(p) for p in products[:RECOMMENDATIONS_PER_ITEM]],
                }
            )
        return recommendations


def to_wire(product: Product) -> Dict[str, Any]:
    return product.model_dump(mode="json", by_alias=True, exclude_none=True)
