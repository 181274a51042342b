"""
Search Service Client.

Async httpx client for the external Search Service. Every endpoint answers
with an envelope:

    {"success": true, "data": {...}}

The client unwraps ``data``, validates it into engine models and raises
SearchServiceError on any transport, HTTP or envelope failure. Retry and
timeout policy live here, not in the dispatcher.

Autocomplete, filter options and popular searches are cached for a short
TTL; search results are never cached.
"""

import time
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

import httpx
from pydantic import ValidationError

from config.settings import Settings, get_settings
from core.logging import get_logger
from core.utils import safe_get
from search.models import (
    AutocompleteResponse,
    AutocompleteSuggestion,
    FilterOptions,
    SearchHistoryEntry,
    SearchQuery,
    SearchResult,
)
from search.query_string import to_params

logger = get_logger(__name__)


class SearchServiceError(Exception):
    """Raised when a Search Service call fails."""

    def __init__(self, message: str, endpoint: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.endpoint = endpoint
        self.status_code = status_code


@runtime_checkable
class SearchService(Protocol):
    """Collaborator contract consumed by the engine."""

    async def search(self, query: SearchQuery) -> SearchResult: ...

    async def autocomplete(self, text: str, limit: int = 10) -> AutocompleteResponse: ...

    async def get_filters(self, category: Optional[str] = None) -> FilterOptions: ...

    async def get_search_history(self, limit: int = 20) -> List[SearchHistoryEntry]: ...

    async def get_popular_searches(self, limit: int = 10) -> List[Any]: ...

    async def save_search_to_history(self, query: str, filters: Dict[str, Any]) -> None: ...

    async def track_search(self, query: str, result_count: int, filters: Dict[str, Any]) -> None: ...


# =============================================================================
# Response cache
# =============================================================================

class ResponseCache:
    """Small TTL cache, oldest entry evicted beyond ``max_entries``."""

    def __init__(self, ttl_seconds: float, max_entries: int):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, tuple]" = OrderedDict()

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if time.monotonic() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any) -> None:
        if self.ttl_seconds <= 0:
            return
        self._entries.pop(key, None)
        self._entries[key] = (time.monotonic(), value)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def _parse_suggestion(item: Any) -> Optional[AutocompleteSuggestion]:
    """Validate one suggestion; unknown types and blank texts are skipped."""
    if not isinstance(item, dict) or not item.get("text"):
        return None
    try:
        return AutocompleteSuggestion.model_validate(item)
    except ValidationError:
        logger.debug("Skipping malformed suggestion", suggestion=item)
        return None


# =============================================================================
# HTTP client
# =============================================================================

class SearchServiceClient:
    """
    httpx-based Search Service client.

    Usage:
        async with SearchServiceClient() as client:
            result = await client.search(SearchQuery(q="phone"))
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        settings = settings or get_settings()
        self.base_url = (base_url or settings.search_api_base_url).rstrip("/")
        self.timeout = timeout or settings.search_request_timeout_seconds
        self.autocomplete_min_chars = settings.autocomplete_min_chars
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
        self._cache = ResponseCache(
            ttl_seconds=settings.search_cache_ttl_seconds,
            max_entries=settings.search_cache_max_entries,
        )

    async def __aenter__(self) -> "SearchServiceClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client (only if we created it)."""
        if self._owns_client:
            await self._http.aclose()

    def clear_cache(self) -> None:
        self._cache.clear()

    # =========================================================================
    # Transport
    # =========================================================================

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Send a request and return the unwrapped ``data`` payload."""
        try:
            resp = await self._http.request(method, path, params=params, json=json)
            resp.raise_for_status()
            body = resp.json()
        except httpx.HTTPStatusError as e:
            raise SearchServiceError(
                f"{method} {path} returned {e.response.status_code}",
                endpoint=path,
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise SearchServiceError(f"{method} {path} failed: {e}", endpoint=path) from e
        except ValueError as e:
            raise SearchServiceError(f"{method} {path} returned invalid JSON", endpoint=path) from e

        if not isinstance(body, dict):
            raise SearchServiceError(f"{method} {path} returned unexpected payload", endpoint=path)
        if body.get("success") is False:
            raise SearchServiceError(
                body.get("message") or f"{method} {path} reported failure",
                endpoint=path,
            )
        return body.get("data") or {}

    # =========================================================================
    # Search
    # =========================================================================

    async def search(self, query: SearchQuery) -> SearchResult:
        data = await self._request("GET", "/search/products", params=to_params(query))
        return SearchResult.model_validate(data)

    async def autocomplete(self, text: str, limit: int = 10) -> AutocompleteResponse:
        """Typed suggestions (product, brand, category) truncated to ``limit``."""
        normalized = text.strip().lower()
        if len(normalized) < self.autocomplete_min_chars:
            return AutocompleteResponse(query=text, suggestions=[])

        cache_key = f"autocomplete:{normalized}:{limit}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        data = await self._request(
            "GET", "/search/autocomplete", params={"q": normalized, "limit": limit}
        )
        suggestions = [
            suggestion
            for suggestion in map(_parse_suggestion, safe_get(data, "suggestions", default=[]))
            if suggestion is not None
        ][:limit]
        response = AutocompleteResponse(query=text, suggestions=suggestions)
        self._cache.set(cache_key, response)
        return response

    async def get_filters(self, category: Optional[str] = None) -> FilterOptions:
        cache_key = f"filters:{category or ''}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        params = {"category": category} if category else None
        data = await self._request("GET", "/search/filters", params=params)
        options = FilterOptions.model_validate(data)
        self._cache.set(cache_key, options)
        return options

    # =========================================================================
    # History & Popular Searches
    # =========================================================================

    async def get_search_history(self, limit: int = 20) -> List[SearchHistoryEntry]:
        data = await self._request("GET", "/search/history", params={"limit": limit})
        entries = []
        for item in safe_get(data, "history", default=[]):
            if isinstance(item, dict) and item.get("query"):
                entries.append(SearchHistoryEntry.model_validate(item))
        return entries

    async def get_popular_searches(self, limit: int = 10) -> List[Any]:
        cache_key = f"popular:{limit}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        data = await self._request("GET", "/search/popular", params={"limit": limit})
        searches = list(safe_get(data, "searches", default=[]))
        self._cache.set(cache_key, searches)
        return searches

    async def save_search_to_history(self, query: str, filters: Dict[str, Any]) -> None:
        entry = SearchHistoryEntry(query=query.strip(), filters=filters or {})
        await self._request("POST", "/search/history", json=entry.model_dump(mode="json"))

    async def clear_search_history(self) -> None:
        await self._request("DELETE", "/search/history")

    # =========================================================================
    # Analytics
    # =========================================================================

    async def track_search(self, query: str, result_count: int, filters: Dict[str, Any]) -> None:
        await self._request("POST", "/search/analytics", json={
            "query": query.strip(),
            "resultsCount": result_count,
            "filters": filters or {},
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })
