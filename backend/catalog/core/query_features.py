"""Query Features — typed parsing of list-endpoint query parameters.

Invariants:
    - Reserved keys (page, sort, limit, fields) are never treated as filters
    - Every other key is a filter; nested operator tokens must be in FilterOperator
    - Unrecognized operator tokens raise QueryParameterError (never silently dropped)
    - page/limit fall back to defaults on non-numeric or non-positive input
    - limit is capped at max_limit and page at the last page whose offset fits in 64 bits
    - Pure: no IO, no SQLAlchemy; translation to clauses lives in services/query_translator.py

Design Decisions:
    - Bracket syntax (price[gt]=5) folded into {"price": {"gt": "5"}} before parsing,
      so callers can pass either raw query items or an already-nested mapping
    - Frozen dataclasses: a parsed QueryFeatures is a value, safe to share within a request
"""

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum

from catalog.core.errors import QueryParameterError

RESERVED_KEYS = frozenset({"page", "sort", "limit", "fields"})
DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 1000
# offset is bound as a signed 64-bit integer by every driver
MAX_OFFSET = 2**63 - 1

_BRACKET_KEY = re.compile(r"^([^\[\]]+)\[([^\[\]]*)\]$")

QueryParams = Mapping[str, "str | Mapping[str, str]"]


class FilterOperator(str, Enum):
    """Comparison operators accepted in field[op]=value filters."""
    EQ = "eq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"


@dataclass(frozen=True)
class FieldFilter:
    field: str
    operator: FilterOperator
    value: str


@dataclass(frozen=True)
class SortKey:
    field: str
    descending: bool = False


@dataclass(frozen=True)
class QueryFeatures:
    """Parsed list query: filters, sort keys, projection and pagination."""
    filters: tuple[FieldFilter, ...] = ()
    sort: tuple[SortKey, ...] = ()
    fields: tuple[str, ...] | None = None
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def fold_bracket_params(
    items: Iterable[tuple[str, str]],
) -> dict[str, str | dict[str, str]]:
    """Fold raw query items into a nested mapping.

    ``[("price[gt]", "5"), ("name", "Hammer")]`` becomes
    ``{"price": {"gt": "5"}, "name": "Hammer"}``. A later item for the same
    key wins; a plain value next to bracketed ones is kept as ``eq``.
    """
    folded: dict[str, str | dict[str, str]] = {}
    for key, value in items:
        match = _BRACKET_KEY.match(key)
        if not match:
            existing = folded.get(key)
            if isinstance(existing, dict):
                existing[FilterOperator.EQ.value] = value
            else:
                folded[key] = value
            continue
        name, op = match.groups()
        existing = folded.get(name)
        if isinstance(existing, dict):
            existing[op] = value
        elif existing is not None:
            folded[name] = {FilterOperator.EQ.value: existing, op: value}
        else:
            folded[name] = {op: value}
    return folded


def parse_query_features(
    params: QueryParams,
    default_limit: int = DEFAULT_PAGE_SIZE,
    max_limit: int = MAX_PAGE_SIZE,
) -> QueryFeatures:
    """Parse a (folded) query mapping into QueryFeatures."""
    limit = min(_parse_positive_int(params.get("limit"), default_limit), max_limit)
    page = min(_parse_positive_int(params.get("page"), 1), MAX_OFFSET // limit + 1)
    return QueryFeatures(
        filters=_parse_filters(params),
        sort=_parse_sort(params.get("sort")),
        fields=_parse_fields(params.get("fields")),
        page=page,
        limit=limit,
    )


def _parse_filters(params: QueryParams) -> tuple[FieldFilter, ...]:
    filters = []
    for name, raw in params.items():
        if name in RESERVED_KEYS:
            continue
        if isinstance(raw, Mapping):
            for op, value in raw.items():
                filters.append(FieldFilter(name, _parse_operator(name, op), value))
        else:
            filters.append(FieldFilter(name, FilterOperator.EQ, raw))
    return tuple(filters)


def _parse_operator(field_name: str, token: str) -> FilterOperator:
    try:
        return FilterOperator(token)
    except ValueError:
        raise QueryParameterError(
            f"Unsupported operator '{token}' for field '{field_name}'. "
            f"Expected one of: {', '.join(op.value for op in FilterOperator)}.",
            code="INVALID_QUERY_OPERATOR",
        )


def _parse_sort(raw) -> tuple[SortKey, ...]:
    if raw is None:
        return ()
    keys = []
    for part in _require_str("sort", raw).split(","):
        part = part.strip()
        if not part:
            continue
        if part.startswith("-"):
            keys.append(SortKey(part[1:], descending=True))
        else:
            keys.append(SortKey(part))
    return tuple(keys)


def _parse_fields(raw) -> tuple[str, ...] | None:
    if raw is None:
        return None
    names = []
    for part in _require_str("fields", raw).split(","):
        part = part.strip()
        if part and part not in names:
            names.append(part)
    return tuple(names) or None


def _parse_positive_int(raw, default: int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def _require_str(key: str, raw) -> str:
    if not isinstance(raw, str):
        raise QueryParameterError(f"Query parameter '{key}' does not take operators.")
    return raw
