"""
Tests for search history, popular searches and analytics.
"""

import pytest


class TestHistoryManager:
    """Tests for local history behavior."""

    def test_newest_first(self):
        from search.history import HistoryManager

        history = HistoryManager()
        history.add_to_history("phone")
        history.add_to_history("laptop")

        assert history.queries() == ["laptop", "phone"]

    def test_duplicate_moves_to_front(self):
        """Adding "phone" twice keeps one entry, at the front."""
        from search.history import HistoryManager

        history = HistoryManager()
        history.add_to_history("phone")
        history.add_to_history("laptop")
        history.add_to_history("phone", {"brand": "Acme"})

        assert history.queries() == ["phone", "laptop"]
        assert history.find("phone").filters == {"brand": "Acme"}

    def test_bounded_fifo_eviction(self):
        from search.history import HistoryManager

        history = HistoryManager(max_entries=3)
        for query in ["one", "two", "three", "four"]:
            history.add_to_history(query)

        assert history.queries() == ["four", "three", "two"]

    def test_short_queries_ignored(self):
        from search.history import HistoryManager

        history = HistoryManager()

        assert history.add_to_history(" a ") is None
        assert len(history) == 0

    def test_query_trimmed(self):
        from search.history import HistoryManager

        history = HistoryManager()
        history.add_to_history("  phone  ")
        history.add_to_history("phone")

        assert history.queries() == ["phone"]

    def test_remove_and_clear(self):
        from search.history import HistoryManager

        history = HistoryManager()
        history.add_to_history("phone")
        history.add_to_history("laptop")

        assert history.remove("phone") is True
        assert history.remove("phone") is False
        history.clear()
        assert history.entries == []

    def test_entries_is_a_copy(self):
        from search.history import HistoryManager

        history = HistoryManager()
        history.add_to_history("phone")
        history.entries.clear()

        assert len(history) == 1

    def test_invalid_bound(self):
        from search.history import HistoryManager

        with pytest.raises(ValueError):
            HistoryManager(max_entries=0)


class TestRemoteHistory:
    """Tests for the Search Service side of history."""

    @pytest.mark.asyncio
    async def test_load_remote_merges_behind_local(self, fake_service):
        from search.history import HistoryManager
        from search.models import SearchHistoryEntry

        fake_service.remote_history = [
            SearchHistoryEntry(query="laptop"),
            SearchHistoryEntry(query="phone"),
        ]
        history = HistoryManager(service=fake_service)
        history.add_to_history("phone")

        entries = await history.load_remote()

        assert [e.query for e in entries] == ["phone", "laptop"]

    @pytest.mark.asyncio
    async def test_load_remote_failure_keeps_local(self, fake_service):
        from search.history import HistoryManager

        fake_service.history_error = RuntimeError("down")
        history = HistoryManager(service=fake_service)
        history.add_to_history("phone")

        assert [e.query for e in await history.load_remote()] == ["phone"]

    @pytest.mark.asyncio
    async def test_popular_searches_shaped_and_bounded(self, fake_service):
        from search.history import HistoryManager

        fake_service.popular = [
            {"_id": "phone", "count": 12},
            "laptop",
            {"count": 3},
            {"query": "tablet", "count": "x"},
            {"term": "watch", "count": 1},
        ]
        history = HistoryManager(service=fake_service)

        popular = await history.popular_searches(5)

        assert [(p.query, p.count) for p in popular] == [
            ("phone", 12), ("laptop", 0), ("tablet", 0), ("watch", 1),
        ]
        assert len(await history.popular_searches(2)) == 2
        assert await history.popular_searches(0) == []

    @pytest.mark.asyncio
    async def test_popular_searches_without_service(self):
        from search.history import HistoryManager

        assert await HistoryManager().popular_searches() == []


class TestSearchAnalytics:
    """Tests for SearchAnalytics."""

    @pytest.mark.asyncio
    async def test_log_search_delivers(self, fake_service):
        from search.analytics import SearchAnalytics

        analytics = SearchAnalytics(fake_service)

        assert await analytics.log_search(" phone ", 2, {"brand": "Acme"}) is True
        assert fake_service.tracked == [("phone", 2, {"brand": "Acme"})]

    @pytest.mark.asyncio
    async def test_failure_swallowed(self):
        from unittest.mock import AsyncMock, MagicMock
        from search.analytics import SearchAnalytics

        service = MagicMock()
        service.track_search = AsyncMock(side_effect=RuntimeError("down"))

        assert await SearchAnalytics(service).log_search("phone", 1) is False

    @pytest.mark.asyncio
    async def test_disabled(self, fake_service):
        from search.analytics import SearchAnalytics

        assert await SearchAnalytics(fake_service, enabled=False).log_search("phone", 1) is False
        assert await SearchAnalytics().log_search("phone", 1) is False
        assert fake_service.tracked == []
