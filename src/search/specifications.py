"""
Specification Normalizer.

Catalog specifications arrive in several shapes:
- structured mappings/objects: {"name": "RAM", "value": "8GB", "category": "Performance"}
- legacy strings: "RAM: 8GB"
- junk: None, {}, {"name": "RAM"}, numbers

Every raw entry is classified exactly once into a tagged SpecInput and then
resolved into a canonical Specification. Malformed entries are dropped, never
raised: a heterogeneous catalog must not block facet rendering.

Also hosts the small catalog helpers that operate on normalized
specifications (grouping, value formatting, local filtering).
"""

from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from pydantic import BaseModel

from config.constants import DEFAULT_SPEC_CATEGORY, UNITLESS_SPEC_VALUES
from core.logging import get_logger
from core.utils import coerce_text
from search.models import FilterSelection, Product, Specification

logger = get_logger(__name__)

LEGACY_SEPARATOR = ":"


# =============================================================================
# Tagged input variant
# =============================================================================

class SpecShape(str, Enum):
    """Shape of a raw specification entry."""
    STRUCTURED = "structured"
    LEGACY_TEXT = "legacy_text"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class SpecInput:
    """A raw specification entry resolved to its shape."""
    shape: SpecShape
    name: Optional[str] = None
    value: Optional[str] = None
    category: Optional[str] = None
    unit: Optional[str] = None


MALFORMED = SpecInput(shape=SpecShape.MALFORMED)


def _fields_of(raw: Any) -> Optional[Mapping[str, Any]]:
    """Mapping view of a structured entry, or None if it isn't one."""
    if isinstance(raw, Mapping):
        return raw
    if isinstance(raw, BaseModel):
        return raw.model_dump()
    if hasattr(raw, "name") and hasattr(raw, "value"):
        return {
            "name": getattr(raw, "name", None),
            "value": getattr(raw, "value", None),
            "category": getattr(raw, "category", None),
            "unit": getattr(raw, "unit", None),
        }
    return None


def classify_spec(raw: Any) -> SpecInput:
    """
    Resolve a raw catalog entry into a tagged SpecInput.

    Args:
        raw: Anything found in a product's ``specifications`` list.

    Returns:
        SpecInput with shape STRUCTURED or LEGACY_TEXT, or MALFORMED when the
        entry has no usable name/value pair.
    """
    if isinstance(raw, str):
        name, sep, value = raw.partition(LEGACY_SEPARATOR)
        if not sep:
            return MALFORMED
        name, value = coerce_text(name), coerce_text(value)
        if not name or not value:
            return MALFORMED
        return SpecInput(shape=SpecShape.LEGACY_TEXT, name=name, value=value)

    fields = _fields_of(raw)
    if fields is None:
        return MALFORMED

    name = coerce_text(fields.get("name"))
    value = coerce_text(fields.get("value"))
    if not name or not value:
        return MALFORMED

    return SpecInput(
        shape=SpecShape.STRUCTURED,
        name=name,
        value=value,
        category=coerce_text(fields.get("category")),
        unit=coerce_text(fields.get("unit")),
    )


def normalize_specification(raw: Any) -> Optional[Specification]:
    """Normalize one raw entry; None if it is malformed."""
    spec_input = classify_spec(raw)
    if spec_input.shape is SpecShape.MALFORMED:
        return None
    return Specification(
        name=spec_input.name,
        value=spec_input.value,
        category=spec_input.category or DEFAULT_SPEC_CATEGORY,
        unit=spec_input.unit,
    )


def normalize_specifications(raws: Optional[Iterable[Any]]) -> List[Specification]:
    """
    Normalize a product's raw specification list.

    Never raises. Entries that fail the shape check are dropped.

    Args:
        raws: Raw specification entries (may be None).

    Returns:
        Canonical specifications with category defaulted to "Other".
    """
    if raws is None:
        return []
    if not isinstance(raws, (list, tuple, set, frozenset)):
        raws = [raws]

    normalized = []
    dropped = 0
    for raw in raws:
        spec = normalize_specification(raw)
        if spec is None:
            dropped += 1
            continue
        normalized.append(spec)

    if dropped:
        logger.debug("Dropped malformed specifications", dropped=dropped, kept=len(normalized))
    return normalized


def product_specifications(product: Any) -> List[Specification]:
    """Normalized specifications of a Product (or product-like mapping)."""
    if isinstance(product, Product):
        raws = product.specifications
    elif isinstance(product, Mapping):
        raws = product.get("specifications")
    else:
        raws = getattr(product, "specifications", None)
    return normalize_specifications(raws)


# =============================================================================
# Catalog helpers
# =============================================================================

def group_specifications_by_category(
    specifications: Iterable[Specification],
) -> Dict[str, List[Specification]]:
    """Group normalized specifications by category, preserving order."""
    grouped: Dict[str, List[Specification]] = defaultdict(list)
    for spec in specifications:
        grouped[spec.category].append(spec)
    return dict(grouped)


def format_specification_value(spec: Optional[Specification]) -> str:
    """
    Render a specification value with its unit.

    >>> format_specification_value(Specification(name="RAM", value="8", unit="GB"))
    '8GB'
    """
    if spec is None or not spec.value:
        return "N/A"
    if spec.unit and spec.value not in UNITLESS_SPEC_VALUES:
        return f"{spec.value}{spec.unit}"
    return spec.value


def filter_products_by_specifications(
    products: Sequence[Any],
    selection: Optional[FilterSelection],
) -> List[Any]:
    """
    Keep products matching a specification selection.

    A product matches when, for every (category, spec name) in the selection,
    it has a specification in that category with that name whose value is
    one of the selected values. Selections are ANDed across spec names and
    ORed within one.

    Args:
        products: Products to filter (not mutated).
        selection: category -> spec name -> selected values.

    Returns:
        Matching products in their original order.
    """
    if not selection:
        return list(products)

    matched = []
    for product in products:
        index: Dict[tuple, set] = defaultdict(set)
        for spec in product_specifications(product):
            index[(spec.category, spec.name)].add(spec.value)
        if not index:
            continue
        if all(
            not index.get((category, spec_name), set()).isdisjoint(values)
            for category, specs in selection.items()
            for spec_name, values in specs.items()
        ):
            matched.append(product)
    return matched


def search_products_by_specifications(products: Sequence[Any], term: Optional[str]) -> List[Any]:
    """Case-insensitive substring match of a term against spec name/value/category."""
    needle = coerce_text(term)
    if not needle:
        return list(products)
    needle = needle.lower()

    return [
        product for product in products
        if any(
            needle in spec.name.lower()
            or needle in spec.value.lower()
            or needle in spec.category.lower()
            for spec in product_specifications(product)
        )
    ]


def unique_specification_values(products: Sequence[Any], spec_name: str) -> List[str]:
    """Sorted distinct values of one spec name across products, any category."""
    values = {
        spec.value
        for product in products
        for spec in product_specifications(product)
        if spec.name == spec_name
    }
    return sorted(values)
