"""Tests for in-memory filtering, faceting, sorting and pagination"""

import pytest
from pydantic import ValidationError

from nft_gallery.models import Item, QueryParams, SortDirection, SortKey, TokenMetadata, Trait
from nft_gallery.query import apply_query, build_facets, matches_attributes, matches_text, paginate, sort_items


def make_item(token_id, name, price="0.1000", **traits):
    return Item(
        token_id=token_id,
        contract_address="0xA",
        network="mainnet",
        name=name,
        symbol="FOO",
        price=price,
        metadata=TokenMetadata(
            name=name,
            attributes=[Trait(trait_type=key, value=value) for key, value in traits.items()],
        ),
    )


@pytest.fixture
def items():
    return [
        make_item("03", "Charlie", "0.3000", Hat="Cap", Eyes="Laser"),
        make_item("0c", "alpha", "0.0500", Hat="Crown"),
        make_item("01", "Bravo", "0.2000", Hat="Cap", Eyes="Sleepy"),
    ]


class TestMatching:
    def test_text_matches_name_case_insensitively(self, items):
        assert matches_text(items[0], "char")
        assert not matches_text(items[0], "delta")

    def test_text_matches_decimal_token_number(self, items):
        assert matches_text(items[1], "12")

    def test_blank_query_matches_everything(self, items):
        assert all(matches_text(item, "  ") for item in items)

    def test_union_within_trait(self, items):
        selected = {"Hat": ["Cap", "Crown"]}
        assert all(matches_attributes(item, selected) for item in items)

    def test_intersection_across_traits(self, items):
        selected = {"Hat": ["Cap"], "Eyes": ["Laser"]}
        assert [item.name for item in items if matches_attributes(item, selected)] == ["Charlie"]

    def test_empty_selection_ignored(self, items):
        assert matches_attributes(items[1], {"Eyes": []})


class TestFacetsAndSorting:
    def test_facets_sorted(self, items):
        assert build_facets(items) == {"Eyes": ["Laser", "Sleepy"], "Hat": ["Cap", "Crown"]}

    def test_sort_by_token_number(self, items):
        ordered = sort_items(items, SortKey.TOKEN_ID, SortDirection.ASC)
        assert [item.token_id for item in ordered] == ["01", "03", "0c"]

    def test_sort_by_name_desc(self, items):
        ordered = sort_items(items, SortKey.NAME, SortDirection.DESC)
        assert [item.name for item in ordered] == ["Charlie", "Bravo", "alpha"]

    def test_sort_by_price(self, items):
        ordered = sort_items(items, SortKey.PRICE, SortDirection.ASC)
        assert [item.price for item in ordered] == ["0.0500", "0.2000", "0.3000"]

    def test_paginate(self, items):
        assert paginate(items, 2, 2) == [items[2]]
        assert paginate(items, 3, 2) == []

    def test_sort_key_aliases(self):
        assert SortKey.from_string("tokenId") == SortKey.TOKEN_ID
        assert SortKey.from_string(" Price ") == SortKey.PRICE
        assert SortKey.from_string("rarity") == SortKey.TOKEN_ID


class TestApplyQuery:
    def test_filter_sort_page(self, items):
        params = QueryParams(page_size=1, sort_by=SortKey.NAME, attributes={"Hat": ["Cap"]})
        page = apply_query(items, params)

        assert [item.name for item in page.items] == ["Bravo"]
        assert page.total_count == 2
        assert page.has_more is True
        assert page.facets["Hat"] == ["Cap", "Crown"]

    def test_facets_ignore_filters(self, items):
        page = apply_query(items, QueryParams(query="nothing matches"))
        assert page.items == []
        assert page.total_count == 0
        assert page.facets == build_facets(items)

    def test_explicit_has_more(self, items):
        assert apply_query(items, QueryParams(), has_more=True).has_more is True
        assert apply_query(items, QueryParams()).has_more is False


class TestQueryParams:
    def test_offset(self):
        assert QueryParams(page=3, page_size=20).offset == 40

    @pytest.mark.parametrize("field", ["page", "page_size"])
    def test_rejects_non_positive(self, field):
        with pytest.raises(ValidationError):
            QueryParams(**{field: 0})
