"""In-memory filtering, faceting, sorting and pagination over Item lists"""

from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .models import Item, ItemPage, QueryParams, SortDirection, SortKey
from .utils import contains_ci, token_number


def matches_text(item: Item, query: str) -> bool:
    """Name match, or decimal token id match (``"12"`` finds token ``0x0c``)"""
    query = query.strip()
    if not query:
        return True
    if contains_ci(item.name, query):
        return True
    number = token_number(item.token_id)
    return number >= 0 and query in str(number)


def matches_attributes(item: Item, selected: Mapping[str, Sequence[str]]) -> bool:
    """
    Union within a trait, intersection across traits

    A trait with no selected values imposes no constraint.
    """
    active = {trait: set(values) for trait, values in selected.items() if values}
    if not active:
        return True

    held: Dict[str, set] = {}
    for trait in item.attributes:
        held.setdefault(trait.trait_type, set()).add(str(trait.value))

    return all(held.get(trait, set()) & values for trait, values in active.items())


def build_facets(items: Iterable[Item]) -> Dict[str, List[str]]:
    """Reverse index: trait name -> sorted distinct values"""
    facets: Dict[str, set] = {}
    for item in items:
        for trait in item.attributes:
            facets.setdefault(trait.trait_type, set()).add(str(trait.value))
    return {trait: sorted(values) for trait, values in sorted(facets.items())}


def _price(item: Item) -> Decimal:
    try:
        return Decimal(item.price)
    except InvalidOperation:
        return Decimal(0)


SORT_KEYS = {
    SortKey.TOKEN_ID: lambda item: token_number(item.token_id),
    SortKey.NAME: lambda item: item.name.casefold(),
    SortKey.PRICE: _price,
}


def sort_items(items: Iterable[Item], key: SortKey, direction: SortDirection) -> List[Item]:
    """Stable sort by the given key"""
    return sorted(
        items,
        key=SORT_KEYS[SortKey(key)],
        reverse=SortDirection(direction) == SortDirection.DESC,
    )


def paginate(items: Sequence[Item], page: int, page_size: int) -> List[Item]:
    start = (page - 1) * page_size
    return list(items[start:start + page_size])


def apply_query(
    items: Sequence[Item],
    params: QueryParams,
    page: int = 1,
    has_more: Optional[bool] = None,
) -> ItemPage:
    """
    Filter, sort and paginate a fetched window of items

    Facets are computed from the unfiltered items so the UI can always
    offer every value present. ``page`` is relative to the window;
    ``has_more`` defaults to whether later pages of the window remain.
    """
    facets = build_facets(items)
    matched = [
        item for item in items
        if matches_text(item, params.query) and matches_attributes(item, params.attributes)
    ]
    ordered = sort_items(matched, params.sort_by, params.sort_dir)
    if has_more is None:
        has_more = page * params.page_size < len(ordered)
    return ItemPage(
        items=paginate(ordered, page, params.page_size),
        total_count=len(ordered),
        page=params.page,
        page_size=params.page_size,
        facets=facets,
        has_more=has_more,
    )
