"""
Query Dispatcher.

Issues requests to the Search Service with two timing contracts:

- Autocomplete: debounced. Each keystroke restarts the quiet period and only
  the last text typed within it is sent.
- Search: immediate on submit, filter, sort or page change.

Both classes share one ordering rule. Every outgoing request is tagged with
a per-class generation number; a response is applied only if its tag is
still the latest issued for its class. Superseded responses are ignored,
not aborted, so a slow response can never overwrite state for a newer
query.

Runs on the asyncio event loop; every public method is non-blocking.
"""

import asyncio
from enum import Enum
from typing import Any, Callable, Coroutine, Dict, Optional, Set

from config.constants import DEFAULT_DISPATCHER_CONFIG
from core.logging import get_logger
from search.analytics import SearchAnalytics
from search.history import HistoryManager
from search.models import AutocompleteResponse, SearchQuery, SearchResult

logger = get_logger(__name__)

ResultsCallback = Callable[[SearchResult], None]
SuggestionsCallback = Callable[[AutocompleteResponse], None]
ClearCallback = Callable[[], None]


class RequestKind(str, Enum):
    AUTOCOMPLETE = "autocomplete"
    SEARCH = "search"


class GenerationCounter:
    """Monotonic per-class request tags."""

    def __init__(self):
        self._latest: Dict[RequestKind, int] = {kind: 0 for kind in RequestKind}

    def issue(self, kind: RequestKind) -> int:
        self._latest[kind] += 1
        return self._latest[kind]

    # Bumping without a request invalidates whatever is in flight
    supersede = issue

    def latest(self, kind: RequestKind) -> int:
        return self._latest[kind]

    def is_current(self, kind: RequestKind, tag: int) -> bool:
        return self._latest[kind] == tag


class QueryDispatcher:
    """
    Debounced autocomplete + immediate search with stale-response discard.

    Args:
        service: Search Service collaborator (``search`` and ``autocomplete``).
        history: HistoryManager receiving successful free-text searches.
        analytics: SearchAnalytics receiving (query, result count, filters).
        on_results: Called with every settled, non-superseded SearchResult.
        on_suggestions: Called with every non-superseded autocomplete answer.
        on_clear: Called when results are cleared instead of searched.
        debounce_seconds: Autocomplete quiet period.
        min_autocomplete_chars: Shortest trimmed text that triggers autocomplete.
        autocomplete_limit: Suggestions requested per autocomplete call.
    """

    def __init__(
        self,
        service: Any,
        history: Optional[HistoryManager] = None,
        analytics: Optional[SearchAnalytics] = None,
        on_results: Optional[ResultsCallback] = None,
        on_suggestions: Optional[SuggestionsCallback] = None,
        on_clear: Optional[ClearCallback] = None,
        debounce_seconds: float = DEFAULT_DISPATCHER_CONFIG.DEBOUNCE_SECONDS,
        min_autocomplete_chars: int = DEFAULT_DISPATCHER_CONFIG.MIN_AUTOCOMPLETE_CHARS,
        autocomplete_limit: int = DEFAULT_DISPATCHER_CONFIG.AUTOCOMPLETE_LIMIT,
    ):
        self._service = service
        self.history = history if history is not None else HistoryManager()
        self.analytics = analytics
        self.on_results = on_results
        self.on_suggestions = on_suggestions
        self.on_clear = on_clear
        self.debounce_seconds = debounce_seconds
        self.min_autocomplete_chars = min_autocomplete_chars
        self.autocomplete_limit = autocomplete_limit

        self.generations = GenerationCounter()
        self.last_result: SearchResult = SearchResult.empty()
        self.suggestions: AutocompleteResponse = AutocompleteResponse(query="")

        self._debounce_task: Optional[asyncio.Task] = None
        self._latest_search: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()

    # =========================================================================
    # Task bookkeeping
    # =========================================================================

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def is_searching(self) -> bool:
        return self._latest_search is not None and not self._latest_search.done()

    @property
    def has_pending_autocomplete(self) -> bool:
        return self._debounce_task is not None and not self._debounce_task.done()

    async def drain(self) -> None:
        """Wait until every pending timer and request has settled."""
        while True:
            pending = [t for t in self._tasks if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel everything still pending."""
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)

    # =========================================================================
    # Autocomplete
    # =========================================================================

    def request_autocomplete(self, text: str) -> None:
        """
        Restart the debounce window for ``text``.

        Text shorter than the minimum cancels the pending timer, invalidates
        any in-flight answer and publishes empty suggestions.
        """
        self.cancel_autocomplete()

        if len(text.strip()) < self.min_autocomplete_chars:
            self.generations.supersede(RequestKind.AUTOCOMPLETE)
            self._apply_suggestions(AutocompleteResponse(query=text))
            return

        self._debounce_task = self._spawn(self._debounce(text))

    def cancel_autocomplete(self) -> None:
        """Drop the pending debounce timer, if any."""
        if self.has_pending_autocomplete:
            self._debounce_task.cancel()
        self._debounce_task = None

    async def _debounce(self, text: str) -> None:
        await asyncio.sleep(self.debounce_seconds)
        tag = self.generations.issue(RequestKind.AUTOCOMPLETE)
        self._spawn(self._run_autocomplete(tag, text))

    async def _run_autocomplete(self, tag: int, text: str) -> Optional[AutocompleteResponse]:
        try:
            response = await self._service.autocomplete(text, self.autocomplete_limit)
        except Exception as e:
            logger.warning("Autocomplete request failed", error=str(e), query=text)
            response = AutocompleteResponse(query=text)

        if not self.generations.is_current(RequestKind.AUTOCOMPLETE, tag):
            logger.debug(
                "Discarding stale autocomplete response",
                query=text,
                tag=tag,
                latest=self.generations.latest(RequestKind.AUTOCOMPLETE),
            )
            return None

        self._apply_suggestions(response)
        return response

    def _apply_suggestions(self, response: AutocompleteResponse) -> None:
        self.suggestions = response
        if self.on_suggestions is not None:
            self.on_suggestions(response)

    # =========================================================================
    # Search
    # =========================================================================

    def submit_search(self, query: SearchQuery) -> asyncio.Task:
        """
        Dispatch a search immediately.

        Any earlier search still in flight is superseded.

        Returns:
            Task resolving to the applied SearchResult, or None if the
            response was superseded before it arrived.
        """
        tag = self.generations.issue(RequestKind.SEARCH)
        logger.debug("Dispatching search", tag=tag, query=query.q, page=query.page)
        task = self._spawn(self._run_search(tag, query))
        self._latest_search = task
        return task

    def clear_results(self) -> None:
        """Publish an empty result without a network call."""
        self.generations.supersede(RequestKind.SEARCH)
        self.last_result = SearchResult.empty()
        if self.on_clear is not None:
            self.on_clear()
        elif self.on_results is not None:
            self.on_results(self.last_result)

    async def _run_search(self, tag: int, query: SearchQuery) -> Optional[SearchResult]:
        try:
            result = await self._service.search(query)
        except Exception as e:
            logger.warning("Search request failed", error=str(e), query=query.q, page=query.page)
            result = SearchResult.empty(page=query.page, limit=query.limit, error=str(e) or type(e).__name__)

        if not self.generations.is_current(RequestKind.SEARCH, tag):
            logger.debug(
                "Discarding stale search response",
                query=query.q,
                tag=tag,
                latest=self.generations.latest(RequestKind.SEARCH),
            )
            return None

        self.last_result = result
        if result.is_empty and not result.is_error:
            logger.info("Search returned no products", query=query.q, did_you_mean=result.did_you_mean)

        if self.on_results is not None:
            self.on_results(result)

        if query.q and not result.is_error and not result.is_empty:
            self._record_search(query, result)
        return result

    def _record_search(self, query: SearchQuery, result: SearchResult) -> None:
        """History + analytics for a successful free-text search."""
        filters = query.flat_filters.to_dict()
        entry = self.history.add_to_history(query.q, filters)
        if entry is not None:
            self._spawn(self.history.persist(entry))
        if self.analytics is not None:
            self._spawn(self.analytics.log_search(query.q, result.total_products, filters))
