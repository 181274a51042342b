"""
Pytest configuration and shared fixtures for the search engine tests.
"""
import asyncio
import math
import os
import sys
from typing import Dict, List, Optional

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(__file__)), "src"))

# Load environment variables
from dotenv import load_dotenv
load_dotenv(os.path.join(os.path.dirname(os.path.dirname(__file__)), ".env"))

from search.models import (  # noqa: E402
    AutocompleteResponse,
    AutocompleteSuggestion,
    FilterOptions,
    Pagination,
    SearchHistoryEntry,
    SearchQuery,
    SearchResult,
)


# ============================================================================
# Fixtures: Test Data Factories
# ============================================================================

@pytest.fixture
def sample_products() -> List[dict]:
    """Catalog slice with structured, legacy and malformed specifications."""
    return [
        {
            "id": 1,
            "name": "Acme Phone X",
            "brand": "Acme",
            "price": 499.0,
            "specifications": [
                {"name": "RAM", "value": "8GB", "category": "Performance"},
                {"name": "Screen Size", "value": "6.1", "unit": "in", "category": "Display & Interface"},
                "Color: Black",
            ],
        },
        {
            "id": 2,
            "name": "Acme Phone Pro",
            "brand": "Acme",
            "price": 899.0,
            "specifications": [
                {"name": "RAM", "value": "16GB", "category": "Performance"},
                {"name": "Screen Size", "value": "6.7", "unit": "in", "category": "Display & Interface"},
                None,
                {"name": "Weight"},
            ],
        },
        {
            "id": 3,
            "name": "Zeta Cable",
            "brand": "Zeta",
            "price": 9.0,
            "specifications": None,
        },
    ]


@pytest.fixture
def many_products() -> List[dict]:
    """45 products matching "phone" (3 pages of 20)."""
    return [
        {"id": i, "name": f"Phone {i}", "specifications": [{"name": "RAM", "value": "8GB", "category": "Performance"}]}
        for i in range(1, 46)
    ]


# ============================================================================
# Fixtures: Search Service
# ============================================================================

class FakeSearchService:
    """
    In-memory Search Service.

    ``gates`` maps query text to an asyncio.Event: a search for that text
    waits until the event is set, so tests control response ordering.
    """

    def __init__(self, products: Optional[List[dict]] = None):
        self.products = list(products or [])
        self.gates: Dict[str, asyncio.Event] = {}
        self.search_error: Optional[Exception] = None
        self.autocomplete_error: Optional[Exception] = None
        self.filters_error: Optional[Exception] = None
        self.history_error: Optional[Exception] = None

        self.search_calls: List[SearchQuery] = []
        self.autocomplete_calls: List[str] = []
        self.saved_history: List[tuple] = []
        self.tracked: List[tuple] = []

        self.remote_history: List[SearchHistoryEntry] = []
        self.popular: List[object] = []
        self.filter_options = FilterOptions(brands=["Zeta", "Acme", ""])

    async def search(self, query: SearchQuery) -> SearchResult:
        self.search_calls.append(query)
        gate = self.gates.get(query.q)
        if gate is not None:
            await gate.wait()
        if self.search_error is not None:
            raise self.search_error

        needle = query.q.lower()
        matched = [p for p in self.products if needle in p["name"].lower()]
        total = len(matched)
        total_pages = math.ceil(total / query.limit) if total else 0
        start = (query.page - 1) * query.limit
        return SearchResult(
            products=matched[start:start + query.limit],
            pagination=Pagination(
                current_page=query.page,
                total_pages=total_pages,
                total_products=total,
                limit=query.limit,
                has_next=query.page < total_pages,
                has_prev=query.page > 1,
            ),
            suggestions=[] if matched else ["phone"],
        )

    async def autocomplete(self, text: str, limit: int = 10) -> AutocompleteResponse:
        self.autocomplete_calls.append(text)
        gate = self.gates.get(text)
        if gate is not None:
            await gate.wait()
        if self.autocomplete_error is not None:
            raise self.autocomplete_error
        return AutocompleteResponse(
            query=text,
            suggestions=[AutocompleteSuggestion(text=f"{text} suggestion")][:limit],
        )

    async def get_filters(self, category: Optional[str] = None) -> FilterOptions:
        if self.filters_error is not None:
            raise self.filters_error
        return self.filter_options

    async def get_search_history(self, limit: int = 20) -> List[SearchHistoryEntry]:
        if self.history_error is not None:
            raise self.history_error
        return self.remote_history[:limit]

    async def get_popular_searches(self, limit: int = 10) -> list:
        return self.popular[:limit]

    async def save_search_to_history(self, query: str, filters: dict) -> None:
        if self.history_error is not None:
            raise self.history_error
        self.saved_history.append((query, filters))

    async def track_search(self, query: str, result_count: int, filters: dict) -> None:
        self.tracked.append((query, result_count, filters))


@pytest.fixture
def make_service():
    """Factory for FakeSearchService over a custom catalog."""
    return FakeSearchService


@pytest.fixture
def fake_service(sample_products) -> FakeSearchService:
    return FakeSearchService(sample_products)


@pytest.fixture
def test_settings():
    """Isolated settings (no .env, short debounce)."""
    from config.settings import get_settings_for_testing
    return get_settings_for_testing()


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: tests that exercise several components together"
    )
