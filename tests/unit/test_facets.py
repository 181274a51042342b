"""
Tests for facet extraction.
"""

import random


class TestExtractFacets:
    """Tests for extract_facets."""

    def test_ram_example(self):
        """Two phones with different RAM give one Performance facet."""
        from search.facets import extract_facets, facets_to_dict

        products = [
            {"id": 1, "specifications": [{"name": "RAM", "value": "8GB", "category": "Performance"}]},
            {"id": 2, "specifications": [{"name": "RAM", "value": "16GB", "category": "Performance"}]},
        ]

        assert facets_to_dict(extract_facets(products)) == {"Performance": {"RAM": ["16GB", "8GB"]}}

    def test_uncategorized_specs_land_in_other(self, sample_products):
        from search.facets import extract_facets, facets_to_dict

        facets = facets_to_dict(extract_facets(sample_products))

        assert facets["Other"] == {"Color": ["Black"]}
        assert facets["Display & Interface"] == {"Screen Size": ["6.1", "6.7"]}

    def test_categories_sorted(self, sample_products):
        from search.facets import extract_facets

        names = [facet.category_name for facet in extract_facets(sample_products)]

        assert names == sorted(names)

    def test_deterministic_regardless_of_order(self, sample_products):
        from search.facets import extract_facets

        expected = extract_facets(sample_products)
        shuffled = list(sample_products)
        random.Random(7).shuffle(shuffled)

        assert extract_facets(list(reversed(sample_products))) == expected
        assert extract_facets(shuffled) == expected

    def test_allow_list_order_and_filtering(self):
        from search.facets import extract_facets, facets_to_dict

        products = [{"id": 1, "specifications": [
            {"name": "Storage", "value": "128GB", "category": "Performance"},
            {"name": "RAM", "value": "8GB", "category": "Performance"},
            {"name": "Cooling", "value": "Vapor", "category": "Performance"},
        ]}]

        specs = facets_to_dict(extract_facets(products))["Performance"]

        # Allow-list order, unlisted names dropped
        assert list(specs) == ["RAM", "Storage"]

    def test_category_without_allowed_names_is_omitted(self):
        from search.facets import extract_facets

        products = [{"id": 1, "specifications": [
            {"name": "Cooling", "value": "Vapor", "category": "Performance"},
        ]}]

        assert extract_facets(products) == []

    def test_spec_cap_for_unlisted_categories(self):
        from search.facets import extract_facets, facets_to_dict

        products = [{"id": 1, "specifications": [
            {"name": name, "value": "x", "category": "Misc"} for name in "GFEDCBA"
        ]}]

        specs = facets_to_dict(extract_facets(products, spec_cap=3))["Misc"]

        assert list(specs) == ["A", "B", "C"]

    def test_empty_scope_caps_every_category(self):
        from search.facets import extract_facets, facets_to_dict

        products = [{"id": 1, "specifications": [
            {"name": "Cooling", "value": "Vapor", "category": "Performance"},
        ]}]

        assert facets_to_dict(extract_facets(products, category_scope={})) == {
            "Performance": {"Cooling": ["Vapor"]}
        }

    def test_no_products(self):
        from search.facets import extract_facets

        assert extract_facets([]) == []


class TestFacetExtractor:
    """Tests for the memoizing FacetExtractor."""

    def test_reuses_result_for_same_product_set(self, sample_products):
        from search.facets import FacetExtractor

        extractor = FacetExtractor()
        first = extractor.facets_for(sample_products)

        assert extractor.facets_for(list(reversed(sample_products))) is first

    def test_recomputes_on_change(self, sample_products):
        from search.facets import FacetExtractor

        extractor = FacetExtractor()
        first = extractor.facets_for(sample_products)

        assert extractor.facets_for(sample_products[:1]) is not first

    def test_scope_change_invalidates(self, sample_products):
        from search.facets import FacetExtractor

        extractor = FacetExtractor()
        first = extractor.facets_for(sample_products)
        extractor.category_scope = {}

        assert extractor.facets_for(sample_products) is not first
