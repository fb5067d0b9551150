"""View state for presenting a category list."""

from dataclasses import dataclass
from enum import Enum


class SortKey(str, Enum):
    """Field a category list is ordered by."""

    NAME = "name"
    GAME_COUNT = "game_count"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class ViewState:
    """Search and sort settings chosen by the user.

    Attributes:
        query: Case-insensitive substring to match against names. Empty matches all.
        sort_key: Field to sort by.
        sort_order: Ascending or descending.
    """

    query: str = ""
    sort_key: SortKey = SortKey.NAME
    sort_order: SortOrder = SortOrder.ASC
