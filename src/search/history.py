"""
Suggestion/History Manager.

Keeps a bounded, most-recent-first list of searches the user ran and
exposes popular searches for the autocomplete surface.

History is process-scoped state owned by a HistoryManager instance that is
injected into the QueryDispatcher; nothing here is module-global.
"""

from typing import Any, Dict, List, Optional

from config.constants import DEFAULT_HISTORY_CONFIG
from core.logging import get_logger
from search.models import PopularSearch, SearchHistoryEntry

logger = get_logger(__name__)


def _shape_popular(item: Any) -> Optional[PopularSearch]:
    """Accept "term" strings or {query|_id|term|text, count} records."""
    if isinstance(item, str):
        query = item.strip()
        return PopularSearch(query=query) if query else None
    if not isinstance(item, dict):
        return None
    query = item.get("query") or item.get("_id") or item.get("term") or item.get("text")
    if not isinstance(query, str) or not query.strip():
        return None
    count = item.get("count") or 0
    try:
        count = int(count)
    except (TypeError, ValueError):
        count = 0
    return PopularSearch(query=query.strip(), count=count)


class HistoryManager:
    """
    Recent-search history with FIFO eviction and query-text dedup.

    Entries are stored newest first. Adding a query that is already present
    moves it to the front instead of duplicating it.

    The optional ``service`` is the Search Service collaborator used to seed
    history, persist additions and look up popular searches. Remote failures
    are logged and never raised.
    """

    def __init__(
        self,
        service: Optional[Any] = None,
        max_entries: int = DEFAULT_HISTORY_CONFIG.MAX_ENTRIES,
        min_query_chars: int = DEFAULT_HISTORY_CONFIG.MIN_QUERY_CHARS,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self._service = service
        self.max_entries = max_entries
        self.min_query_chars = min_query_chars
        self._entries: List[SearchHistoryEntry] = []

    @property
    def entries(self) -> List[SearchHistoryEntry]:
        """History, newest first (a copy)."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def queries(self) -> List[str]:
        return [entry.query for entry in self._entries]

    # =========================================================================
    # Local history
    # =========================================================================

    def add_to_history(
        self,
        query: str,
        filters: Optional[Dict[str, Any]] = None,
    ) -> Optional[SearchHistoryEntry]:
        """
        Record a search.

        Args:
            query: Free-text query (stripped; too-short queries are ignored).
            filters: Flat filters the search ran with.

        Returns:
            The new entry, or None if the query was too short.
        """
        text = (query or "").strip()
        if len(text) < self.min_query_chars:
            return None

        entry = SearchHistoryEntry(query=text, filters=dict(filters or {}))
        self._entries = [e for e in self._entries if e.query != text]
        self._entries.insert(0, entry)

        evicted = self._entries[self.max_entries:]
        if evicted:
            del self._entries[self.max_entries:]
            logger.debug("Evicted history entries", evicted=[e.query for e in evicted])
        return entry

    def remove(self, query: str) -> bool:
        before = len(self._entries)
        self._entries = [e for e in self._entries if e.query != query]
        return len(self._entries) != before

    def clear(self) -> None:
        self._entries = []

    def find(self, query: str) -> Optional[SearchHistoryEntry]:
        return next((e for e in self._entries if e.query == query), None)

    # =========================================================================
    # Remote collaborator
    # =========================================================================

    async def load_remote(self, limit: Optional[int] = None) -> List[SearchHistoryEntry]:
        """
        Seed history from the Search Service (newest first).

        Remote entries are merged behind local ones, deduplicated by query.
        """
        if self._service is None:
            return self.entries
        try:
            remote = await self._service.get_search_history(limit or self.max_entries)
        except Exception as e:
            logger.warning("Failed to load search history", error=str(e))
            return self.entries

        known = {e.query for e in self._entries}
        for entry in remote:
            if entry.query not in known and len(self._entries) < self.max_entries:
                self._entries.append(entry)
                known.add(entry.query)
        return self.entries

    async def persist(self, entry: SearchHistoryEntry) -> None:
        """Best-effort save of an entry to the Search Service."""
        if self._service is None:
            return
        try:
            await self._service.save_search_to_history(entry.query, entry.filters)
        except Exception as e:
            # History is non-critical
            logger.warning("Failed to save search to history", error=str(e), query=entry.query)

    async def clear_history(self) -> None:
        """Clear local history and, when supported, the remote copy."""
        self.clear()
        clear_remote = getattr(self._service, "clear_search_history", None)
        if clear_remote is None:
            return
        try:
            await clear_remote()
        except Exception as e:
            logger.warning("Failed to clear search history", error=str(e))

    async def popular_searches(self, n: int = DEFAULT_HISTORY_CONFIG.POPULAR_LIMIT) -> List[PopularSearch]:
        """
        Popular searches from the aggregation collaborator, bounded to ``n``.

        This only shapes and bounds the collaborator's answer; popularity is
        never computed locally.
        """
        if n <= 0 or self._service is None:
            return []
        try:
            raw = await self._service.get_popular_searches(n)
        except Exception as e:
            logger.warning("Failed to get popular searches", error=str(e))
            return []

        shaped = []
        for item in raw or []:
            popular = _shape_popular(item)
            if popular is not None:
                shaped.append(popular)
            if len(shaped) >= n:
                break
        return shaped
