"""
Facet Extractor.

Derives specification filter options from a locally available product set:
per category, per spec name, the sorted distinct values observed.

This is a client-side convenience for the filter panel, not a replacement
for server-side faceted counts.
"""

from collections import defaultdict
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from config.constants import DEFAULT_FACET_CONFIG
from core.logging import get_logger
from search.models import FacetCategory
from search.specifications import product_specifications

logger = get_logger(__name__)

FacetScope = Mapping[str, Sequence[str]]


def _group_values(products: Sequence[Any]) -> Dict[str, Dict[str, Set[str]]]:
    """category -> spec name -> distinct values, one pass over all specs."""
    grouped: Dict[str, Dict[str, Set[str]]] = defaultdict(lambda: defaultdict(set))
    for product in products:
        for spec in product_specifications(product):
            grouped[spec.category][spec.name].add(spec.value)
    return grouped


def _retained_spec_names(
    category: str,
    spec_names: Sequence[str],
    category_scope: FacetScope,
    spec_cap: int,
) -> List[str]:
    allowed = category_scope.get(category)
    if allowed:
        present = set(spec_names)
        return [name for name in allowed if name in present]
    # No allow-list: first N names in lexicographic order
    return sorted(spec_names)[:spec_cap]


def extract_facets(
    products: Sequence[Any],
    category_scope: Optional[FacetScope] = None,
    spec_cap: int = DEFAULT_FACET_CONFIG.SPEC_CAP,
) -> List[FacetCategory]:
    """
    Build filter-panel facets from product specifications.

    Output is deterministic for a fixed product set regardless of input
    order: categories and values are sorted lexicographically, spec names
    follow the allow-list order (or lexicographic order when capped).

    Args:
        products: Products (or product-like mappings) with raw specifications.
        category_scope: Per-category allow-list of spec names. Defaults to the
            "important specs" list; pass {} to cap every category instead.
        spec_cap: Spec names kept for categories without an allow-list.

    Returns:
        One FacetCategory per category that retains at least one spec name.
    """
    if category_scope is None:
        category_scope = DEFAULT_FACET_CONFIG.IMPORTANT_SPECS

    grouped = _group_values(products)

    facets = []
    for category in sorted(grouped):
        specs = grouped[category]
        retained = _retained_spec_names(category, list(specs), category_scope, spec_cap)
        if not retained:
            continue
        facets.append(FacetCategory(
            category_name=category,
            specs={name: sorted(specs[name]) for name in retained},
        ))

    logger.debug(
        "Extracted facets",
        products=len(products),
        categories=len(facets),
    )
    return facets


def facets_to_dict(facets: Sequence[FacetCategory]) -> Dict[str, Dict[str, List[str]]]:
    """Plain nested-dict view: {category: {spec name: [values]}}."""
    return {facet.category_name: dict(facet.specs) for facet in facets}


class FacetExtractor:
    """
    Memoizing facet extractor.

    Facets are recomputed only when the product set (by id and specification
    content) or the category scope changes.
    """

    def __init__(
        self,
        category_scope: Optional[FacetScope] = None,
        spec_cap: int = DEFAULT_FACET_CONFIG.SPEC_CAP,
    ):
        self._category_scope = category_scope
        self._spec_cap = spec_cap
        self._fingerprint: Optional[Tuple] = None
        self._facets: List[FacetCategory] = []

    @property
    def category_scope(self) -> Optional[FacetScope]:
        return self._category_scope

    @category_scope.setter
    def category_scope(self, scope: Optional[FacetScope]) -> None:
        self._category_scope = scope
        self._fingerprint = None

    @staticmethod
    def fingerprint(products: Sequence[Any]) -> Tuple:
        """Order-independent identity of a product set."""
        entries = []
        for product in products:
            product_id = product.get("id") if isinstance(product, Mapping) else getattr(product, "id", None)
            specs = sorted(
                (spec.category, spec.name, spec.value)
                for spec in product_specifications(product)
            )
            entries.append((str(product_id), tuple(specs)))
        return tuple(sorted(entries))

    def facets_for(self, products: Sequence[Any]) -> List[FacetCategory]:
        """Facets for a product set, reusing the last result when unchanged."""
        fingerprint = self.fingerprint(products)
        if fingerprint != self._fingerprint:
            self._facets = extract_facets(products, self._category_scope, self._spec_cap)
            self._fingerprint = fingerprint
        return self._facets
