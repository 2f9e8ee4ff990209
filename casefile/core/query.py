"""
Query pipeline - category filter, text search, then sort, over a record list.
Pure: the input list is never modified and identical inputs give identical output.
"""

import unicodedata
from typing import Callable, Dict, List, Tuple

from .schema import CATEGORIES, Record


ALL_CATEGORIES = "all"

CATEGORY_FILTERS = [ALL_CATEGORIES] + CATEGORIES

SORT_OPTIONS = {
    "nameAsc": "Name (A-Z)",
    "nameDesc": "Name (Z-A)",
    "dateAsc": "Date (Oldest first)",
    "dateDesc": "Date (Newest first)",
}

DEFAULT_SORT = "nameAsc"


def name_sort_key(name: str) -> Tuple[str, str, str]:
    """
    Collation key approximating locale-aware comparison.

    Primary order ignores accents and case, secondary order considers accents,
    and on a full tie lowercase sorts before uppercase.
    """
    folded = (name or "").casefold()
    base = "".join(
        ch for ch in unicodedata.normalize("NFKD", folded)
        if not unicodedata.combining(ch)
    )
    return base, folded, (name or "").swapcase()


def _created_at(record: Record) -> int:
    return record.created_at or 0


_SORTS: Dict[str, Tuple[Callable[[Record], object], bool]] = {
    "nameAsc": (lambda r: name_sort_key(r.name), False),
    "nameDesc": (lambda r: name_sort_key(r.name), True),
    "dateAsc": (_created_at, False),
    "dateDesc": (_created_at, True),
}


def filter_by_category(records: List[Record], category_filter: str) -> List[Record]:
    if category_filter == ALL_CATEGORIES:
        return list(records)
    return [r for r in records if r.category == category_filter]


def matches_query(record: Record, query: str) -> bool:
    """Case-insensitive substring match on name, phone or case details."""
    needle = query.casefold()
    return (
        needle in (record.name or "").casefold()
        or needle in (record.phone or "")
        or needle in (record.case_details or "").casefold()
    )


def sort_records(records: List[Record], sort_key: str) -> List[Record]:
    if sort_key not in _SORTS:
        raise ValueError(f"sort_key must be one of: {list(SORT_OPTIONS)}")

    key, reverse = _SORTS[sort_key]
    # sorted() is stable, so reverse=True keeps ties in input order
    return sorted(records, key=key, reverse=reverse)


def apply_query(records: List[Record], search_query: str = "", sort_key: str = DEFAULT_SORT,
                category_filter: str = ALL_CATEGORIES) -> List[Record]:
    """
    Produce the filtered, searched and sorted view of a record list.

    Args:
        records: Full record set, typically RecordStore.get_all()
        search_query: Free text; blank after trimming means no search
        sort_key: One of SORT_OPTIONS
        category_filter: "all" or an exact category label

    Returns:
        New list; records without a category only survive the "all" filter
    """
    filtered = filter_by_category(records, category_filter)

    query = (search_query or "").strip()
    if query:
        filtered = [r for r in filtered if matches_query(r, query)]

    return sort_records(filtered, sort_key)
