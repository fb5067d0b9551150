"""Search and sort for category lists.

Pure functions: nothing here touches the store or the service, so the same
snapshot can be re-derived for every change of search text or sort order.
Missing fields sort as an empty string or zero instead of failing.
"""

import locale
import unicodedata
from functools import cmp_to_key
from typing import Iterable, List, Union
from models.category import Category
from models.view import SortKey, SortOrder, ViewState


def _text(value) -> str:
    return "" if value is None else str(value)


def _count(value) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError, OverflowError):
        return 0


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def matches_query(category: Category, query: str) -> bool:
    """Return True if the category name contains query, ignoring case.

    An empty query matches every category.
    """
    if not query:
        return True
    return query.casefold() in _text(category.name).casefold()


def _base_letters(text: str) -> str:
    """Casefold and strip accents, so "Éclair" collates with "eclair"."""
    decomposed = unicodedata.normalize("NFKD", text.casefold())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def compare_names(a: str, b: str) -> int:
    """Compare two names using the current locale's collation.

    Names are compared on their base letters first, then with accents, then
    case-sensitively, so "apex" < "Éclair" < "Zelda" even under the C locale.
    """
    for left, right in (
        (_base_letters(a), _base_letters(b)),
        (a.casefold(), b.casefold()),
        (a, b),
    ):
        result = locale.strcoll(left, right)
        if result != 0:
            return _sign(result)
    return 0

def compare_categories(
    a: Category, b: Category, sort_key: Union[SortKey, str]
) -> int:
    """Compare two categories on a single field, in ascending order.

    Returns:
        Negative, zero or positive, like a classic cmp function.
    """
    key = SortKey(sort_key)

    if key is SortKey.NAME:
        return compare_names(_text(a.name), _text(b.name))
    if key is SortKey.GAME_COUNT:
        return _sign(_count(a.game_count) - _count(b.game_count))

    # Timestamps are stored in a fixed-width ISO format, so string order is time order.
    left = _text(getattr(a, key.value))
    right = _text(getattr(b, key.value))
    return (left > right) - (left < right)


def derive_view(
    snapshot: Iterable[Category],
    query: str = "",
    sort_key: Union[SortKey, str] = SortKey.NAME,
    sort_order: Union[SortOrder, str] = SortOrder.ASC,
) -> List[Category]:
    """Filter and sort a snapshot for display.

    The sort is stable: categories that compare equal keep their snapshot
    order in both directions.

    Args:
        snapshot: Categories in service order.
        query: Case-insensitive name filter; empty keeps everything.
        sort_key: Field to sort by.
        sort_order: "asc" or "desc".

    Returns:
        A new list; the snapshot itself is not modified.
    """
    key = SortKey(sort_key)
    direction = -1 if SortOrder(sort_order) is SortOrder.DESC else 1

    def ordered(a: Category, b: Category) -> int:
        return direction * compare_categories(a, b, key)

    matched = [category for category in snapshot if matches_query(category, query)]
    return sorted(matched, key=cmp_to_key(ordered))


def derive_view_for(snapshot: Iterable[Category], view: ViewState) -> List[Category]:
    """derive_view driven by a ViewState."""
    return derive_view(snapshot, view.query, view.sort_key, view.sort_order)
