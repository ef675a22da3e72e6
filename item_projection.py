"""Flatten PA-API SearchItems records into a stable item shape.

Upstream records are deeply nested and any level may be missing, so every
field goes through dig(). A broken record produces an item full of None
defaults instead of failing the whole result.
"""
from dataclasses import dataclass, field
from numbers import Number
from typing import Any, Dict, List, Optional

DEFAULT_CURRENCY = 'JPY'

_MISSING = object()


def dig(obj: Any, path: str, default: Any = None) -> Any:
    """Follow a dotted path through dicts and lists.

    Integer segments index into lists (``'Offers.Listings.0.Price'``).
    Returns ``default`` as soon as a step is missing or has the wrong type.
    """
    cur = obj
    for part in path.split('.'):
        if isinstance(cur, dict):
            cur = cur.get(part, _MISSING)
        elif isinstance(cur, (list, tuple)) and part.isdigit():
            idx = int(part)
            cur = cur[idx] if idx < len(cur) else _MISSING
        else:
            return default
        if cur is _MISSING or cur is None:
            return default
    return cur


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, Number):
        return None
    return value


def _as_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


@dataclass
class Price:
    amount: Optional[float] = None
    currency: str = DEFAULT_CURRENCY
    display_text: Optional[str] = None

    def to_dict(self):
        return {'amount': self.amount, 'currencyCode': self.currency, 'displayText': self.display_text}


@dataclass
class ProjectedItem:
    id: Optional[str] = None
    title: Optional[str] = None
    brand: Optional[str] = None
    price: Price = field(default_factory=Price)
    thumbnail_url: Optional[str] = None
    availability_text: Optional[str] = None
    review_count: int = 0
    rating_value: Optional[float] = None
    detail_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'brand': self.brand,
            'price': self.price.to_dict(),
            'thumbnailUrl': self.thumbnail_url,
            'availabilityText': self.availability_text,
            'reviewCount': self.review_count,
            'ratingValue': self.rating_value,
            'detailUrl': self.detail_url,
        }


def project_item(raw: Any) -> ProjectedItem:
    review_count = dig(raw, 'CustomerReviews.Count')
    if isinstance(review_count, bool) or not isinstance(review_count, int):
        review_count = 0

    # StarRating is {"Value": 4.5} in current responses; accept a bare number too
    rating = dig(raw, 'CustomerReviews.StarRating.Value')
    if rating is None:
        rating = dig(raw, 'CustomerReviews.StarRating')

    return ProjectedItem(
        id=_as_text(dig(raw, 'ASIN')),
        title=_as_text(dig(raw, 'ItemInfo.Title.DisplayValue')),
        brand=_as_text(dig(raw, 'ItemInfo.ByLineInfo.Brand.DisplayValue')),
        price=Price(
            amount=_as_number(dig(raw, 'Offers.Listings.0.Price.Amount')),
            currency=_as_text(dig(raw, 'Offers.Listings.0.Price.Currency')) or DEFAULT_CURRENCY,
            display_text=_as_text(dig(raw, 'Offers.Listings.0.Price.DisplayAmount')),
        ),
        thumbnail_url=_as_text(dig(raw, 'Images.Primary.Medium.URL')),
        availability_text=_as_text(dig(raw, 'Offers.Listings.0.Availability.Message')),
        review_count=review_count,
        rating_value=_as_number(rating),
        detail_url=_as_text(dig(raw, 'DetailPageURL')),
    )


def project_search_result(raw: Any) -> Dict[str, Any]:
    """Return ``{'totalResults': int, 'items': [item dicts]}``.

    A response without ``SearchResult.Items`` is an empty result, not an error.
    """
    records = dig(raw, 'SearchResult.Items', [])
    if not isinstance(records, list):
        records = []
    items: List[Dict[str, Any]] = [project_item(r).to_dict() for r in records]

    total = dig(raw, 'SearchResult.TotalResultCount')
    if isinstance(total, bool) or not isinstance(total, int):
        total = len(items)
    return {'totalResults': total, 'items': items}
