"""
Tests for stable sorting and page slicing.
"""

import pytest

from shopcore.catalog.pagination import paginate, total_pages
from shopcore.catalog.sorting import DEFAULT_SORTS, SortSpec, sort_products, text_key


@pytest.fixture
def shelf(product_factory):
    return [
        product_factory("1", name="banana", price=5, stock=3, category="Fruit", rating=4.0),
        product_factory("2", name="Apple", price=5, stock=40, category="Fruit", created_at="2024-05-01"),
        product_factory("3", name="cherry", price=2, stock=3, category="Berries", rating=4.5),
        product_factory("4", name="apple", price=9, stock=12, category="Fruit", created_at="2024-01-01"),
        product_factory("5", name="Éclair", price=7, sale_price=4, stock=0, category="Bakery"),
    ]


def ids(records):
    return [r.id for r in records]


# ============================================================================
# Sorting
# ============================================================================

class TestSortProducts:
    def test_name_ignores_case_and_accents(self, shelf):
        assert ids(sort_products(shelf, SortSpec("name"))) == ["2", "4", "1", "3", "5"]

    def test_equal_keys_keep_input_order(self, shelf):
        result = sort_products(shelf, SortSpec("stock"))
        assert ids(result)[:3] == ["5", "1", "3"]

    def test_descending_is_stable(self, shelf):
        result = sort_products(shelf, SortSpec("stock", "desc"))
        assert ids(result) == ["2", "4", "1", "3", "5"]

    def test_price_uses_list_price(self, shelf):
        assert ids(sort_products(shelf, SortSpec("price"))) == ["3", "5", "1", "2", "4"]

    def test_double_toggle_restores_order(self, shelf):
        spec = SortSpec("category")
        once = sort_products(shelf, spec)
        twice = sort_products(sort_products(shelf, spec.toggled()), spec.toggled().toggled())
        assert ids(once) == ids(twice)

    def test_unknown_field_keeps_order(self, shelf):
        assert sort_products(shelf, SortSpec("weight")) == shelf

    def test_missing_rating_sorts_lowest(self, shelf):
        assert ids(sort_products(shelf, SortSpec("rating", "desc")))[:2] == ["3", "1"]

    def test_newest_first(self, shelf):
        assert ids(sort_products(shelf, SortSpec("created_at", "desc")))[:2] == ["2", "4"]

    def test_input_not_mutated(self, shelf):
        before = list(shelf)
        sort_products(shelf, SortSpec("price", "desc"))
        assert shelf == before

    def test_registered_key(self, shelf):
        registry = DEFAULT_SORTS.copy()
        registry.register("name_length", lambda p: len(p.name))
        assert ids(sort_products(shelf, SortSpec("name_length"), registry))[0] == "2"

    def test_shared_defaults_are_read_only(self):
        with pytest.raises(TypeError):
            DEFAULT_SORTS.register("name_length", lambda p: len(p.name))
        assert DEFAULT_SORTS.get("name_length") is None


class TestSortSpec:
    def test_toggle(self):
        assert SortSpec("name").toggled() == SortSpec("name", "desc")
        assert SortSpec("name", "desc").toggled() == SortSpec("name", "asc")

    def test_unknown_direction_defaults_to_asc(self):
        assert SortSpec("name", "sideways").direction == "asc"

    def test_direction_case_insensitive(self):
        assert SortSpec("name", "DESC").descending

    def test_text_key_equal_for_case_variants(self):
        assert text_key("Apple")[0] == text_key("apple")[0]
        assert text_key("Éclair")[0] == "eclair"


# ============================================================================
# Pagination
# ============================================================================

class TestPaginate:
    def test_pages_cover_items_exactly_once(self):
        items = list(range(23))
        pages = [paginate(items, n, 10) for n in range(1, 4)]
        assert [len(p.items) for p in pages] == [10, 10, 3]
        assert sum((p.items for p in pages), []) == items

    def test_page_metadata(self):
        page = paginate(list(range(23)), 2, 10)
        assert page.total_count == 23
        assert page.total_pages == 3
        assert (page.start_index, page.end_index) == (10, 20)
        assert page.has_next and page.has_previous

    def test_page_above_range_clamps_to_last(self):
        page = paginate(list(range(23)), 9, 10)
        assert page.page == 3
        assert page.items == [20, 21, 22]

    @pytest.mark.parametrize("requested", [0, -4])
    def test_page_below_range_clamps_to_first(self, requested):
        assert paginate(list(range(5)), requested, 2).page == 1

    def test_empty_list_has_one_page(self):
        page = paginate([], 3, 10)
        assert page.total_pages == 1
        assert page.page == 1
        assert page.items == []
        assert not page.has_next

    def test_page_size_below_one_treated_as_one(self):
        page = paginate(["a", "b"], 2, 0)
        assert page.page_size == 1
        assert page.items == ["b"]

    @pytest.mark.parametrize("count,size,expected", [(0, 10, 1), (10, 10, 1), (11, 10, 2), (100, 7, 15)])
    def test_total_pages(self, count, size, expected):
        assert total_pages(count, size) == expected
