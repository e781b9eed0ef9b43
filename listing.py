"""
Shop listing: filter, sort and paginate the catalog.

The pipeline is a chain of predicates over the product list followed by one
stable sort and a page slice. All functions are pure.
"""
import math
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from schemas import Product

PRICE_CEILING = 200000


class SortOption(str, Enum):
    NEWEST = "newest"
    PRICE_LOW = "price_low"
    PRICE_HIGH = "price_high"
    RATING = "rating"
    POPULARITY = "popularity"
    DISCOUNT = "discount"


class ListingQuery(BaseModel):
    q: str = ""
    category: str = ""
    subcategory: str = ""
    min_price: float = 0
    max_price: float = PRICE_CEILING
    brands: List[str] = []
    ratings: List[float] = []
    availability: Literal["all", "in_stock", "out_of_stock"] = "all"
    discount: int = Field(0, ge=0, le=100)
    sort: SortOption = SortOption.POPULARITY
    page: int = Field(1, ge=1)


class ListingPage(BaseModel):
    items: List[Product]
    total: int
    page: int
    pages: int
    page_size: int
    source: str = "static"

    @property
    def is_empty(self) -> bool:
        return self.total == 0


def discount_percent(price: float, mrp: Optional[float]) -> int:
    """Displayed discount, e.g. price 800 / mrp 1000 -> 20."""
    if not mrp:
        return 0
    return int(math.floor(100 * (mrp - price) / mrp + 0.5))


def _discount_ratio(p: Product) -> float:
    return (p.mrp - p.price) / p.mrp if p.mrp else 0.0


def _matches_search(p: Product, query: str) -> bool:
    return (
        query in p.name.lower()
        or query in (p.description or "").lower()
        or query in (p.brand or "").lower()
        or query in p.category.lower()
    )


def filter_products(products: List[Product], query: ListingQuery) -> List[Product]:
    result = list(products)

    if query.q:
        needle = query.q.strip().lower()
        result = [p for p in result if _matches_search(p, needle)]
    if query.category:
        result = [p for p in result if p.category == query.category]
    if query.subcategory:
        result = [p for p in result if p.subcategory == query.subcategory]

    result = [p for p in result if query.min_price <= p.price <= query.max_price]

    if query.brands:
        allowed = set(query.brands)
        result = [p for p in result if p.brand and p.brand in allowed]
    if query.ratings:
        result = [p for p in result if any(p.rating >= r for r in query.ratings)]
    if query.availability == "in_stock":
        result = [p for p in result if p.stock > 0]
    elif query.availability == "out_of_stock":
        result = [p for p in result if p.stock <= 0]
    if query.discount > 0:
        result = [p for p in result if discount_percent(p.price, p.mrp) >= query.discount]

    return result


def sort_products(products: List[Product], sort: SortOption) -> List[Product]:
    # sorted() is stable, ties keep catalog order
    if sort == SortOption.PRICE_LOW:
        return sorted(products, key=lambda p: p.price)
    if sort == SortOption.PRICE_HIGH:
        return sorted(products, key=lambda p: p.price, reverse=True)
    if sort == SortOption.RATING:
        return sorted(products, key=lambda p: -p.rating)
    if sort == SortOption.DISCOUNT:
        return sorted(products, key=lambda p: -_discount_ratio(p))
    if sort == SortOption.NEWEST:
        return sorted(products, key=lambda p: -p.id)
    return sorted(products, key=lambda p: -(p.reviews or 0))


def paginate(products: List[Product], page: int, page_size: int) -> List[Product]:
    if page < 1:
        return []
    start = (page - 1) * page_size
    return products[start:start + page_size]


def run_listing(products: List[Product], query: ListingQuery, page_size: int = 12, source: str = "static") -> ListingPage:
    matched = sort_products(filter_products(products, query), query.sort)
    return ListingPage(
        items=paginate(matched, query.page, page_size),
        total=len(matched),
        page=query.page,
        pages=math.ceil(len(matched) / page_size),
        page_size=page_size,
        source=source,
    )


def has_active_filters(query: ListingQuery) -> bool:
    return (
        query.min_price > 0
        or query.max_price < PRICE_CEILING
        or bool(query.brands)
        or bool(query.ratings)
        or query.availability != "all"
        or query.discount > 0
    )


def available_brands(products: List[Product], category: str = "") -> List[str]:
    return sorted({p.brand for p in products if p.brand and (not category or p.category == category)})

# Home page shelves

def featured(products: List[Product]) -> List[Product]:
    return [p for p in products if p.is_featured]


def best_sellers(products: List[Product]) -> List[Product]:
    return [p for p in products if p.is_best_seller]


def new_arrivals(products: List[Product]) -> List[Product]:
    return [p for p in products if p.is_new_arrival]
