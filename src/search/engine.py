"""
Search Engine facade.

Wires the components together with explicit injection:

    user input -> FilterStateManager -> QueryDispatcher -> Search Service
                                                  |
                      on_search_results <- ResultPaginator

History, analytics and the Search Service client are constructed once per
engine and passed down; nothing is module-global.

Usage:
    engine = create_search_engine(on_search_results=render)
    engine.type_query("pho")         # debounced autocomplete
    engine.submit("phone")           # immediate search
    engine.toggle_spec_value("Performance", "RAM", "8GB", True)
    await engine.drain()
"""

from typing import Any, List, Optional, Sequence

from config.settings import Settings, get_settings
from core.logging import get_logger
from search.analytics import SearchAnalytics
from search.dispatcher import ClearCallback, QueryDispatcher, ResultsCallback, SuggestionsCallback
from search.facets import FacetExtractor
from search.filter_state import FiltersChangeCallback, FilterStateManager
from search.history import HistoryManager
from search.models import (
    AutocompleteSuggestion,
    FacetCategory,
    FilterOptions,
    FilterSelection,
    FlatFilters,
    PopularSearch,
    SearchHistoryEntry,
    SearchResult,
)
from search.pagination import PageWindow, ResultPaginator
from search.query_string import build_search_url, parse_search_url
from search.service_client import SearchServiceClient
from search.specifications import filter_products_by_specifications

logger = get_logger(__name__)


class SearchEngine:
    """
    One user's search surface: state, dispatch, paging, facets, history.

    Args:
        service: Search Service collaborator.
        settings: Engine settings (defaults to get_settings()).
        history: Injected HistoryManager (one is created if omitted).
        analytics: Injected SearchAnalytics (one is created if omitted).
        on_search_results: Called with every settled, non-superseded result.
        on_filters_change: Called with the spec selection on every filter mutation.
        on_suggestions: Called with autocomplete answers.
        on_clear: Called when results are cleared without a search.
    """

    def __init__(
        self,
        service: Any,
        settings: Optional[Settings] = None,
        history: Optional[HistoryManager] = None,
        analytics: Optional[SearchAnalytics] = None,
        on_search_results: Optional[ResultsCallback] = None,
        on_filters_change: Optional[FiltersChangeCallback] = None,
        on_suggestions: Optional[SuggestionsCallback] = None,
        on_clear: Optional[ClearCallback] = None,
    ):
        self.settings = settings or get_settings()
        self.service = service
        self.on_search_results = on_search_results
        self.on_clear = on_clear

        self.history = history or HistoryManager(
            service=service,
            max_entries=self.settings.history_max_entries,
        )
        self.analytics = analytics or SearchAnalytics(service)
        self.paginator = ResultPaginator(self.settings.max_visible_pages)
        self.facet_extractor = FacetExtractor(spec_cap=self.settings.facet_spec_cap)
        self.filter_options: Optional[FilterOptions] = None

        self.dispatcher = QueryDispatcher(
            service,
            history=self.history,
            analytics=self.analytics,
            on_results=self._handle_results,
            on_suggestions=on_suggestions,
            on_clear=self._handle_clear,
            debounce_seconds=self.settings.autocomplete_debounce_seconds,
            min_autocomplete_chars=self.settings.autocomplete_min_chars,
            autocomplete_limit=self.settings.autocomplete_limit,
        )
        self.filters = FilterStateManager(
            sink=self.dispatcher,
            on_filters_change=on_filters_change,
            page_limit=min(self.settings.default_page_limit, self.settings.max_page_limit),
        )

    # =========================================================================
    # Result routing
    # =========================================================================

    def _handle_results(self, result: SearchResult) -> None:
        self.paginator.update(result.pagination)
        if self.on_search_results is not None:
            self.on_search_results(result)

    def _handle_clear(self) -> None:
        self.paginator.reset()
        if self.on_clear is not None:
            self.on_clear()
        elif self.on_search_results is not None:
            self.on_search_results(SearchResult.empty())

    @property
    def result(self) -> SearchResult:
        return self.dispatcher.last_result

    @property
    def page_window(self) -> PageWindow:
        return self.paginator.window

    # =========================================================================
    # Query text
    # =========================================================================

    def type_query(self, text: str) -> None:
        """Keystroke: record text and restart the autocomplete debounce."""
        self.filters.set_query(text)
        self.dispatcher.request_autocomplete(text)

    def submit(self, text: Optional[str] = None) -> Any:
        """Explicit submit; pending autocomplete is dropped."""
        self.dispatcher.cancel_autocomplete()
        return self.filters.submit(text)

    def select_suggestion(self, suggestion: AutocompleteSuggestion) -> Any:
        return self.submit(suggestion.text)

    def clear_search(self) -> None:
        self.dispatcher.cancel_autocomplete()
        self.dispatcher.request_autocomplete("")
        self.filters.clear_search()

    # =========================================================================
    # Filters, sorting, paging
    # =========================================================================

    def set_flat_filter(self, key: str, value: Any) -> FlatFilters:
        return self.filters.set_flat_filter(key, value)

    def toggle_spec_value(self, category: str, spec_name: str, value: str, checked: bool) -> FilterSelection:
        return self.filters.toggle_spec_value(category, spec_name, value, checked)

    def clear_category(self, category: str) -> FilterSelection:
        return self.filters.clear_category(category)

    def clear_all(self) -> None:
        self.filters.clear_all()

    def active_filter_count(self) -> int:
        return self.filters.active_filter_count()

    def change_sort(self, sort_by: Any, sort_order: Optional[Any] = None) -> FlatFilters:
        return self.filters.set_sort(sort_by, sort_order)

    def go_to_page(self, page: int) -> bool:
        """Request another page; out-of-range requests are ignored."""
        if not self.paginator.can_go_to(page):
            return False
        return self.filters.go_to_page(page, self.paginator.pagination.total_pages)

    def next_page(self) -> bool:
        page = self.paginator.next_page()
        return page is not None and self.go_to_page(page)

    def prev_page(self) -> bool:
        page = self.paginator.prev_page()
        return page is not None and self.go_to_page(page)

    # =========================================================================
    # History & suggestions
    # =========================================================================

    def rerun(self, entry: SearchHistoryEntry) -> Any:
        """Re-run a history entry with its filters."""
        self.dispatcher.cancel_autocomplete()
        return self.filters.restore(entry)

    async def load_history(self, limit: Optional[int] = None) -> List[SearchHistoryEntry]:
        return await self.history.load_remote(limit)

    async def popular_searches(self, n: Optional[int] = None) -> List[PopularSearch]:
        return await self.history.popular_searches(n or self.settings.popular_searches_limit)

    # =========================================================================
    # Filter options & facets
    # =========================================================================

    async def load_filter_options(self, category: Optional[str] = None) -> FilterOptions:
        """Options for the flat filters; defaults if the service fails."""
        try:
            self.filter_options = await self.service.get_filters(category)
        except Exception as e:
            logger.warning("Failed to get search filters", error=str(e), category=category)
            self.filter_options = FilterOptions()
        return self.filter_options

    def facets_for(self, products: Sequence[Any]) -> List[FacetCategory]:
        """Specification facets derived from locally available products."""
        return self.facet_extractor.facets_for(products)

    def filter_products(self, products: Sequence[Any]) -> List[Any]:
        """Apply the current spec selection to a local product set."""
        return filter_products_by_specifications(products, self.filters.selection)

    # =========================================================================
    # Deep links
    # =========================================================================

    def search_url(self, path: str = "/search") -> str:
        return build_search_url(self.filters.to_search_query(), path=path)

    def load_url(self, url: str, dispatch: bool = True) -> Any:
        """Restore state from a search URL and (by default) search it."""
        return self.filters.load(parse_search_url(url), dispatch=dispatch)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def drain(self) -> None:
        await self.dispatcher.drain()

    async def aclose(self) -> None:
        await self.dispatcher.aclose()
        close = getattr(self.service, "aclose", None)
        if close is not None:
            await close()


def create_search_engine(
    settings: Optional[Settings] = None,
    service: Optional[Any] = None,
    **kwargs: Any,
) -> SearchEngine:
    """
    Build a SearchEngine, creating the httpx Search Service client when no
    service is injected. Remaining keyword arguments (callbacks, history,
    analytics) are passed to SearchEngine.
    """
    settings = settings or get_settings()
    if service is None:
        service = SearchServiceClient(settings=settings)
    return SearchEngine(service, settings=settings, **kwargs)
