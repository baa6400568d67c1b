"""
Search and pagination over a cached collection.

All functions here are pure: they take a sequence of records and return
new lists. Search is a case-insensitive substring match on ``name``
(people, planets, ...) or, failing that, ``title`` (films). Pagination is
a plain slice, so an out-of-range page is an empty page, not an error.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from fastapi.datastructures import URL

from .schemas import Record


def _norm(s: Optional[str]) -> str:
    # Whitespace is part of the term; only a blank term disables search.
    term = (s or "").lower()
    return term if term.strip() else ""


def matches_search(record: Record, term: str) -> bool:
    """Return True when ``record``'s name (or title) contains ``term``.

    ``term`` must already be lower-cased. Records with neither field
    never match a non-empty term.
    """
    if not term:
        return True
    label = record.get("name")
    if not isinstance(label, str):
        label = record.get("title")
    if not isinstance(label, str):
        return False
    return term in label.lower()


def filter_records(records: Sequence[Record], search: Optional[str]) -> List[Record]:
    term = _norm(search)
    if not term:
        return list(records)
    return [r for r in records if matches_search(r, term)]


def _coerce_positive_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def coerce_page(value: Any) -> int:
    """Parse a ``page`` query value; missing, invalid or < 1 gives 1."""
    return _coerce_positive_int(value) or 1


def coerce_limit(value: Any, default: int) -> int:
    """Parse a ``limit`` query value; missing, invalid or < 1 gives ``default``."""
    return _coerce_positive_int(value) or default


@dataclass
class QueryResult:
    total: int
    page: int
    per_page: int
    items: List[Record] = field(default_factory=list)

    @property
    def has_next(self) -> bool:
        return self.page * self.per_page < self.total

    @property
    def has_previous(self) -> bool:
        return self.page > 1


def paginate(
    records: Sequence[Record],
    search: Optional[str] = None,
    page: Any = None,
    limit: Any = None,
    default_limit: int = 20,
) -> QueryResult:
    """Filter ``records`` by ``search`` and cut out one page.

    Parameters
    ----------
    records : Sequence[Record]
        The cached collection, in publication order.
    search : Optional[str]
        Free-text filter on name/title. Empty or ``None`` disables it.
    page : Any
        1-indexed page number, as received from the query string.
    limit : Any
        Page size, as received from the query string.
    default_limit : int
        Page size used when ``limit`` is missing or invalid.

    Returns
    -------
    QueryResult
        ``total`` counts the filtered records, not the whole collection.
    """
    matched = filter_records(records, search)
    p = coerce_page(page)
    per_page = coerce_limit(limit, default_limit)
    start = (p - 1) * per_page
    end = start + per_page
    return QueryResult(total=len(matched), page=p, per_page=per_page, items=matched[start:end])


def build_page_links(
    url: URL,
    result: QueryResult,
    search: Optional[str] = None,
    limit: Any = None,
) -> Dict[str, Optional[str]]:
    """Build SWAPI-style absolute ``next``/``previous`` URLs.

    The links reuse the scheme, host and path of the incoming request.
    ``search`` is carried over when non-empty and ``limit`` when the
    client supplied a valid one.
    """
    base = url.replace(query="", fragment="")

    def link(page: int) -> str:
        params: Dict[str, Any] = {"page": page}
        if _norm(search):
            params["search"] = search
        if _coerce_positive_int(limit) is not None:
            params["limit"] = result.per_page
        return str(base.include_query_params(**params))

    return {
        "next": link(result.page + 1) if result.has_next else None,
        "previous": link(result.page - 1) if result.has_previous else None,
    }
