"""
Tests for SearchQuery URL serialization.
"""

import pytest
from pydantic import ValidationError


class TestToParams:
    """Tests for to_params."""

    def test_wire_names_and_omitted_empties(self):
        from search.models import SearchQuery
        from search.query_string import to_params

        params = to_params(SearchQuery(q="phone", brand="Acme", min_price=100, in_stock=True))

        assert params["q"] == "phone"
        assert params["brand"] == "Acme"
        assert params["minPrice"] == "100.0"
        assert params["inStock"] == "true"
        assert params["sortBy"] == "relevance"
        assert params["page"] == "1"
        assert "maxPrice" not in params
        assert "category" not in params
        assert "specifications" not in params

    def test_blank_query_omitted(self):
        from search.models import SearchQuery
        from search.query_string import to_params

        assert "q" not in to_params(SearchQuery(q="   ", brand="Acme"))

    def test_specifications_as_compact_json(self):
        from search.models import SearchQuery
        from search.query_string import to_params

        params = to_params(SearchQuery(specifications={"Performance": {"RAM": ["8GB"]}}))

        assert params["specifications"] == '{"Performance":{"RAM":["8GB"]}}'


class TestRoundTrip:
    """A query survives serialization to a URL and back."""

    def test_full_query(self):
        from search.models import SearchQuery, SortBy, SortOrder
        from search.query_string import build_search_url, parse_search_url

        query = SearchQuery(
            q="gaming phone",
            category="phones",
            brand="Acme",
            min_price=100,
            max_price=900.5,
            rating=4,
            in_stock=True,
            sort_by=SortBy.PRICE,
            sort_order=SortOrder.ASC,
            page=3,
            limit=40,
            specifications={"Performance": {"RAM": ["8GB", "16GB"]}, "Display & Interface": {"Screen Size": ["6.1"]}},
        )

        url = build_search_url(query)

        assert url.startswith("/search?")
        assert parse_search_url(url) == query

    def test_empty_query(self):
        from search.models import SearchQuery
        from search.query_string import from_query_string, to_query_string

        query = SearchQuery()

        assert from_query_string(to_query_string(query)) == query


class TestFromParams:
    """Tests for from_params."""

    def test_snake_case_names_accepted(self):
        from search.query_string import from_params

        query = from_params({"q": "phone", "min_price": "10"})

        assert query.min_price == 10

    def test_invalid_param_dropped(self):
        from search.query_string import from_params

        query = from_params({"q": "phone", "page": "abc", "brand": "Acme"})

        assert query.page == 1
        assert query.brand == "Acme"

    def test_malformed_specifications_dropped(self):
        from search.query_string import from_query_string

        query = from_query_string("?q=phone&specifications=%7Bnot-json")

        assert query.q == "phone"
        assert query.specifications == {}

    def test_repeated_key_last_wins(self):
        from search.query_string import from_params

        assert from_params([("brand", "Acme"), ("brand", "Zeta")]).brand == "Zeta"

    def test_inverted_price_range_raises(self):
        from search.query_string import from_params

        with pytest.raises(ValidationError):
            from_params({"minPrice": "500", "maxPrice": "100"})
