"""
Product Search Engine Module.

Provides:
- SearchEngine: facade wiring state, dispatch, paging, facets and history
- FilterStateManager: query text, flat filters and specification selection
- QueryDispatcher: debounced autocomplete + immediate search, stale-response discard
- SearchServiceClient: httpx client for the external Search Service
- Facet extraction and specification normalization for heterogeneous catalogs
- HistoryManager / SearchAnalytics: recent searches, popular searches, tracking
"""

from search.analytics import SearchAnalytics
from search.dispatcher import QueryDispatcher
from search.engine import SearchEngine, create_search_engine
from search.facets import FacetExtractor, extract_facets
from search.filter_state import FilterStateManager
from search.history import HistoryManager
from search.models import FacetCategory, Product, SearchQuery, SearchResult, Specification
from search.pagination import PageWindow, ResultPaginator, compute_page_window
from search.query_string import build_search_url, parse_search_url
from search.service_client import SearchService, SearchServiceClient, SearchServiceError
from search.specifications import normalize_specifications

__all__ = [
    "SearchEngine",
    "create_search_engine",
    "FilterStateManager",
    "QueryDispatcher",
    "SearchService",
    "SearchServiceClient",
    "SearchServiceError",
    "FacetExtractor",
    "extract_facets",
    "normalize_specifications",
    "HistoryManager",
    "SearchAnalytics",
    "PageWindow",
    "ResultPaginator",
    "compute_page_window",
    "build_search_url",
    "parse_search_url",
    "FacetCategory",
    "Product",
    "SearchQuery",
    "SearchResult",
    "Specification",
]
