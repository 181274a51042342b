"""
Filter State Manager.

Owns the current search selection:
- free-text query
- flat filters (category, brand, price bounds, rating floor, stock, sort)
- nested specification selection: category -> spec name -> selected values

and produces the canonical SearchQuery from it.

Invariants:
- a category key never maps to an empty dict and a spec name never maps to
  an empty list (both are pruned on removal)
- unset flat filters are absent, never stored as empty strings

Every committed filter mutation notifies ``on_filters_change`` and then
either re-dispatches the search (something is still selected) or issues a
clear-results signal (nothing is).
"""

import copy
from typing import Any, Callable, List, Optional, Protocol

from pydantic.alias_generators import to_snake

from config.constants import DEFAULT_PAGINATION_CONFIG
from core.logging import get_logger
from search.models import (
    FLAT_FILTER_KEYS,
    FilterSelection,
    FlatFilters,
    SearchHistoryEntry,
    SearchQuery,
    SortBy,
    SortOrder,
)
from search.pagination import is_valid_page

logger = get_logger(__name__)

FiltersChangeCallback = Callable[[FilterSelection], None]


class SearchSink(Protocol):
    """Where committed state goes (the QueryDispatcher)."""

    def submit_search(self, query: SearchQuery) -> Any: ...

    def clear_results(self) -> None: ...


def _filter_key(key: str) -> str:
    """Accept python or wire names: 'minPrice' -> 'min_price'."""
    snake = to_snake(key)
    if snake not in FLAT_FILTER_KEYS:
        raise ValueError(f"Unknown filter key: {key!r}")
    return snake


class FilterStateManager:
    """
    Mutable search selection with a canonical query view.

    Args:
        sink: Dispatcher receiving searches/clears (optional for pure state use).
        on_filters_change: Called with the spec selection after every
            committed filter mutation.
        page_limit: Page size put on every SearchQuery.
    """

    def __init__(
        self,
        sink: Optional[SearchSink] = None,
        on_filters_change: Optional[FiltersChangeCallback] = None,
        page_limit: int = DEFAULT_PAGINATION_CONFIG.DEFAULT_LIMIT,
    ):
        self.sink = sink
        self.on_filters_change = on_filters_change
        self.page_limit = page_limit

        self._query_text = ""
        self._flat = FlatFilters()
        self._selection: FilterSelection = {}
        self._sort_order = SortOrder.DESC
        self._page = 1

        self.last_dispatch: Any = None

    # =========================================================================
    # Read access
    # =========================================================================

    @property
    def query_text(self) -> str:
        return self._query_text

    @property
    def flat_filters(self) -> FlatFilters:
        return self._flat.model_copy()

    @property
    def selection(self) -> FilterSelection:
        """Deep copy of the specification selection."""
        return copy.deepcopy(self._selection)

    @property
    def page(self) -> int:
        return self._page

    @property
    def sort_order(self) -> SortOrder:
        return self._sort_order

    def active_filter_count(self) -> int:
        """Selected spec values plus set flat filters (sort excluded)."""
        spec_count = sum(
            len(values)
            for specs in self._selection.values()
            for values in specs.values()
        )
        return spec_count + len(self._flat.active_keys())

    def category_filter_count(self, category: str) -> int:
        return sum(len(values) for values in self._selection.get(category, {}).values())

    def is_selected(self, category: str, spec_name: str, value: str) -> bool:
        return value in self._selection.get(category, {}).get(spec_name, [])

    def active_spec_filters(self) -> List[tuple]:
        """Flattened (category, spec name, value) triples, for chips."""
        return [
            (category, spec_name, value)
            for category, specs in self._selection.items()
            for spec_name, values in specs.items()
            for value in values
        ]

    def has_criteria(self) -> bool:
        """True if any free text or filter is set."""
        return bool(self._query_text) or bool(self._flat.active_keys()) or bool(self._selection)

    def to_search_query(self) -> SearchQuery:
        """The canonical, serializable query for the current state."""
        return SearchQuery(
            q=self._query_text,
            **self._flat.model_dump(exclude_none=True),
            sort_order=self._sort_order,
            page=self._page,
            limit=self.page_limit,
            specifications=self.selection,
        )

    # =========================================================================
    # Free text
    # =========================================================================

    def set_query(self, text: str) -> None:
        """Record typed text. Typing alone never dispatches a search."""
        self._query_text = (text or "").strip()

    def submit(self, text: Optional[str] = None) -> Any:
        """
        Explicit submit: search the current state from page 1.

        Returns the dispatch handle, or None if there is nothing to search.
        """
        if text is not None:
            self.set_query(text)
        if not self.has_criteria():
            return None
        self._page = 1
        return self._dispatch()

    # =========================================================================
    # Flat filters
    # =========================================================================

    def set_flat_filter(self, key: str, value: Any) -> FlatFilters:
        """
        Set or delete one flat filter.

        Empty values (None, "", False for in_stock, 0 for price floor/rating)
        delete the key.

        Raises:
            ValueError: unknown key or invalid value (e.g. negative price,
                min_price above max_price). State is left unchanged.
        """
        field = _filter_key(key)
        data = self._flat.model_dump(exclude_none=True)
        data[field] = value
        # Validation drops empty values and raises on invalid ones
        self._flat = FlatFilters.model_validate(data)
        self._page = 1
        self._commit()
        return self.flat_filters

    def set_sort(self, sort_by: Any, sort_order: Optional[Any] = None) -> FlatFilters:
        """Change ordering; paging restarts at 1. Invalid values change nothing."""
        order = self._sort_order if sort_order is None else SortOrder(sort_order)
        sort_by = SortBy(sort_by)
        self._sort_order = order
        return self.set_flat_filter("sort_by", sort_by)

    # =========================================================================
    # Specification selection
    # =========================================================================

    def toggle_spec_value(
        self,
        category: str,
        spec_name: str,
        value: str,
        checked: bool,
    ) -> FilterSelection:
        """
        Check or uncheck one specification value.

        Checking inserts the value once (no duplicates); unchecking removes
        it and prunes the spec name and category when they become empty.
        """
        if checked:
            values = self._selection.setdefault(category, {}).setdefault(spec_name, [])
            if value not in values:
                values.append(value)
        else:
            specs = self._selection.get(category)
            if specs is not None and spec_name in specs:
                specs[spec_name] = [v for v in specs[spec_name] if v != value]
                if not specs[spec_name]:
                    del specs[spec_name]
                if not specs:
                    del self._selection[category]

        self._page = 1
        self._commit()
        return self.selection

    def clear_category(self, category: str) -> FilterSelection:
        """Drop every selected value in one category."""
        self._selection.pop(category, None)
        self._page = 1
        self._commit()
        return self.selection

    def clear_all(self) -> None:
        """
        Reset flat filters and the spec selection. The free-text query is
        kept, so a remaining query is searched again.
        """
        self._flat = FlatFilters()
        self._sort_order = SortOrder.DESC
        self._selection = {}
        self._page = 1
        self._commit()

    def clear_search(self) -> None:
        """Reset everything, including the query text."""
        self._query_text = ""
        self.clear_all()

    # =========================================================================
    # Paging & restore
    # =========================================================================

    def go_to_page(self, page: int, total_pages: int) -> bool:
        """
        Move to another page of the current search.

        Out-of-range pages and the current page are rejected without
        dispatching.

        Returns:
            True if a search was dispatched.
        """
        if not is_valid_page(page, total_pages) or page == self._page:
            logger.debug("Ignoring page request", page=page, total_pages=total_pages)
            return False
        self._page = page
        self._dispatch()
        return True

    def restore(self, entry: SearchHistoryEntry) -> Any:
        """Re-run a history entry: its query text and flat filters only."""
        self._query_text = entry.query.strip()
        self._flat = FlatFilters.model_validate(entry.filters or {})
        self._sort_order = SortOrder.DESC
        self._selection = {}
        self._page = 1
        return self._commit()

    def load(self, query: SearchQuery, dispatch: bool = True) -> Any:
        """Adopt a SearchQuery wholesale (e.g. parsed from a deep link)."""
        self._query_text = query.q
        self._flat = query.flat_filters
        self._sort_order = query.sort_order
        self._selection = copy.deepcopy(query.specifications)
        self._page = query.page
        self.page_limit = query.limit
        if not dispatch:
            return None
        return self._commit()

    # =========================================================================
    # Commit
    # =========================================================================

    def _commit(self) -> Any:
        if self.on_filters_change is not None:
            self.on_filters_change(self.selection)
        if self.has_criteria():
            return self._dispatch()
        self.last_dispatch = None
        if self.sink is not None:
            self.sink.clear_results()
        return None

    def _dispatch(self) -> Any:
        if self.sink is None:
            return None
        self.last_dispatch = self.sink.submit_search(self.to_search_query())
        return self.last_dispatch
