"""
Pydantic models for the search engine.

Python attribute names are snake_case; the Search Service speaks camelCase,
so every wire model carries camelCase aliases (``currentPage``, ``minPrice``)
and accepts either form on input.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from config.constants import DEFAULT_PAGINATION_CONFIG, DEFAULT_PRICE_RANGE, DEFAULT_SPEC_CATEGORY


# category -> spec name -> selected values
FilterSelection = Dict[str, Dict[str, List[str]]]

# Flat filter keys that count as active filters
FILTER_KEYS = ("category", "brand", "min_price", "max_price", "rating", "in_stock")


class WireModel(BaseModel):
    """Base for models that cross the Search Service boundary."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Enums
# ============================================================================

class SortBy(str, Enum):
    """Result ordering requested from the Search Service."""
    RELEVANCE = "relevance"
    PRICE = "price"
    RATING = "rating"
    NEWEST = "newest"
    NAME = "name"
    POPULARITY = "popularity"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SuggestionType(str, Enum):
    """Where an autocomplete suggestion came from."""
    PRODUCT = "product"
    BRAND = "brand"
    CATEGORY = "category"


# ============================================================================
# Catalog Models
# ============================================================================

class Specification(WireModel):
    """A normalized product specification (facet-eligible)."""
    model_config = ConfigDict(frozen=True)

    name: str
    value: str
    category: str = DEFAULT_SPEC_CATEGORY
    unit: Optional[str] = None


class Product(WireModel):
    """
    Read-only product projection as consumed by the engine.

    ``specifications`` is kept raw: catalog entries may be objects, legacy
    strings or nulls. Use ``search.specifications.normalize_specifications``
    to get the canonical form.
    """
    model_config = ConfigDict(extra="allow", frozen=True)

    id: Union[int, str] = Field(validation_alias=AliasChoices("id", "_id"))
    specifications: List[Any] = Field(default_factory=list)

    @field_validator("specifications", mode="before")
    @classmethod
    def default_specifications(cls, v):
        if v is None:
            return []
        if not isinstance(v, (list, tuple)):
            return [v]
        return list(v)


class FacetCategory(BaseModel):
    """Filter-panel options for one specification category."""
    category_name: str
    specs: Dict[str, List[str]] = Field(default_factory=dict)


# ============================================================================
# Query Models
# ============================================================================

def _blank_to_none(data: Any) -> Any:
    """Drop no-op flat filter values before validation."""
    if not isinstance(data, dict):
        return data
    cleaned = {}
    for key, value in data.items():
        if isinstance(value, str):
            value = value.strip()
            if not value:
                continue
        if value is None:
            continue
        cleaned[key] = value
    return cleaned


class FlatFilters(WireModel):
    """
    Single-valued search constraints.

    Unset values are None and never serialized. A zero price floor, a zero
    rating floor and ``in_stock=False`` are no-ops and normalize to None.
    """
    category: Optional[str] = None
    brand: Optional[str] = None
    min_price: Optional[float] = Field(None, ge=0)
    max_price: Optional[float] = Field(None, ge=0)
    rating: Optional[float] = Field(None, ge=0, le=5)
    in_stock: Optional[bool] = None
    sort_by: SortBy = SortBy.RELEVANCE

    @model_validator(mode="before")
    @classmethod
    def drop_blank_values(cls, data):
        return _blank_to_none(data)

    @model_validator(mode="after")
    def drop_noop_values(self):
        for key in ("min_price", "rating"):
            if getattr(self, key) == 0:
                setattr(self, key, None)
        if self.in_stock is False:
            self.in_stock = None
        return self

    @model_validator(mode="after")
    def validate_price_range(self):
        """Ensure min_price <= max_price when both are set."""
        if self.min_price is not None and self.max_price is not None:
            if self.min_price > self.max_price:
                raise ValueError(f"min_price ({self.min_price}) must be <= max_price ({self.max_price})")
        return self

    def active_keys(self) -> List[str]:
        """Set filter keys, excluding sort_by (an ordering, not a filter)."""
        return [key for key in FILTER_KEYS if getattr(self, key) is not None]

    def to_dict(self) -> Dict[str, Any]:
        """Canonical python-name dict without unset keys."""
        return self.model_dump(mode="json", exclude_none=True)


FLAT_FILTER_KEYS = tuple(FlatFilters.model_fields.keys())


class SearchQuery(FlatFilters):
    """
    The canonical request object sent to the Search Service.

    Union of the free-text query, the flat filters, the specification
    selection and paging.
    """
    q: str = ""
    sort_order: SortOrder = SortOrder.DESC
    page: int = Field(1, ge=1)
    limit: int = Field(
        DEFAULT_PAGINATION_CONFIG.DEFAULT_LIMIT, ge=1, le=DEFAULT_PAGINATION_CONFIG.MAX_LIMIT
    )
    specifications: FilterSelection = Field(default_factory=dict)

    @field_validator("q", mode="before")
    @classmethod
    def strip_query(cls, v):
        if v is None:
            return ""
        return str(v).strip()

    @field_validator("specifications", mode="after")
    @classmethod
    def prune_empty_selections(cls, v: FilterSelection) -> FilterSelection:
        pruned: FilterSelection = {}
        for category, specs in v.items():
            kept = {name: list(values) for name, values in specs.items() if values}
            if kept:
                pruned[category] = kept
        return pruned

    @property
    def flat_filters(self) -> FlatFilters:
        return FlatFilters.model_validate(self.model_dump(include=set(FLAT_FILTER_KEYS)))

    def has_criteria(self) -> bool:
        """True if the query carries free text or any filter."""
        return bool(self.q) or bool(self.active_keys()) or bool(self.specifications)


# ============================================================================
# Result Models
# ============================================================================

class Pagination(WireModel):
    """Pagination metadata of a search result."""
    current_page: int = 1
    total_pages: int = 0
    total_products: int = 0
    limit: int = 20
    has_next: bool = False
    has_prev: bool = False


class SearchResult(WireModel):
    """
    Response from the Search Service.

    ``suggestions`` is only populated when ``products`` is empty; ``error``
    is set when the request failed and the result was synthesized locally.
    """
    products: List[Product] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)
    facets: Optional[Dict[str, Any]] = None
    suggestions: List[str] = Field(default_factory=list)
    search_query: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @field_validator("suggestions", mode="before")
    @classmethod
    def flatten_suggestions(cls, v):
        if not v:
            return []
        flattened = []
        for item in v:
            if isinstance(item, dict):
                item = item.get("text") or item.get("name")
            if item:
                flattened.append(str(item))
        return flattened

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def is_empty(self) -> bool:
        return not self.products

    @property
    def total_products(self) -> int:
        return self.pagination.total_products

    @property
    def did_you_mean(self) -> List[str]:
        """Alternative queries offered for an empty result."""
        return self.suggestions if self.is_empty else []

    @classmethod
    def empty(
        cls,
        page: int = 1,
        limit: int = 20,
        error: Optional[str] = None,
    ) -> "SearchResult":
        """An empty result, optionally marked as failed."""
        return cls(
            products=[],
            pagination=Pagination(current_page=page, limit=limit),
            error=error,
        )


class AutocompleteSuggestion(BaseModel):
    """A single autocomplete suggestion."""
    text: str
    type: SuggestionType = SuggestionType.PRODUCT


class AutocompleteResponse(BaseModel):
    """Autocomplete suggestions for one query text."""
    query: str
    suggestions: List[AutocompleteSuggestion] = Field(default_factory=list)


class PriceRange(WireModel):
    min_price: float = DEFAULT_PRICE_RANGE[0]
    max_price: float = DEFAULT_PRICE_RANGE[1]


class FilterOptions(WireModel):
    """Options available for the flat filters."""
    categories: List[Any] = Field(default_factory=list)
    brands: List[str] = Field(default_factory=list)
    price_range: PriceRange = Field(default_factory=PriceRange)
    ratings: List[Any] = Field(default_factory=list)

    @field_validator("brands", mode="before")
    @classmethod
    def clean_brands(cls, v):
        if not v:
            return []
        return sorted({str(b).strip() for b in v if b and str(b).strip()})

    @field_validator("price_range", mode="before")
    @classmethod
    def default_price_range(cls, v):
        return v or PriceRange()


# ============================================================================
# History Models
# ============================================================================

class SearchHistoryEntry(WireModel):
    """A remembered search."""
    query: str
    filters: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class PopularSearch(WireModel):
    """A popular search term with its usage count."""
    query: str
    count: int = 0
