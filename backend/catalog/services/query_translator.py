"""Query Translator — applies parsed QueryFeatures to a SQLAlchemy select().

Invariants:
    - Order is fixed: filter -> sort -> pagination (projection happens at serialization)
    - A filter on an unknown field matches nothing; it never raises
    - Unknown sort fields are ignored; with no usable sort key the default order applies
    - Filter values are coerced to the column's Python type or rejected with QueryParameterError

Design Decisions:
    - Public field names (imgURL, category, createdAt) resolved through an explicit
      field map, so the query surface matches the JSON surface
    - Default order created_at then id: stable pagination across pages
"""

import logging
import uuid
from collections.abc import Mapping
from datetime import datetime

from sqlalchemy import Select, false
from sqlalchemy.orm import InstrumentedAttribute

from catalog.core.errors import QueryParameterError
from catalog.core.query_features import FilterOperator, FieldFilter, QueryFeatures

logger = logging.getLogger(__name__)

_OPERATORS = {
    FilterOperator.EQ: lambda column, value: column == value,
    FilterOperator.GT: lambda column, value: column > value,
    FilterOperator.GTE: lambda column, value: column >= value,
    FilterOperator.LT: lambda column, value: column < value,
    FilterOperator.LTE: lambda column, value: column <= value,
}


def apply_query_features(
    stmt: Select,
    features: QueryFeatures,
    field_map: Mapping[str, InstrumentedAttribute],
    default_order: tuple[InstrumentedAttribute, ...] = (),
) -> Select:
    """Translate features into where/order_by/offset/limit clauses on stmt."""
    stmt = _apply_filters(stmt, features, field_map)
    stmt = _apply_sort(stmt, features, field_map, default_order)
    return stmt.offset(features.offset).limit(features.limit)


def _apply_filters(stmt, features, field_map):
    for item in features.filters:
        column = field_map.get(item.field)
        if column is None:
            logger.debug(f"Filter on unknown field '{item.field}' matches nothing")
            stmt = stmt.where(false())
            continue
        value = _coerce(column, item)
        stmt = stmt.where(_OPERATORS[item.operator](column, value))
    return stmt


def _apply_sort(stmt, features, field_map, default_order):
    clauses = []
    for key in features.sort:
        column = field_map.get(key.field)
        if column is None:
            continue
        clauses.append(column.desc() if key.descending else column.asc())
    if not clauses:
        clauses = [column.asc() for column in default_order]
    return stmt.order_by(*clauses) if clauses else stmt


def _coerce(column: InstrumentedAttribute, item: FieldFilter):
    python_type = column.type.python_type
    try:
        if python_type is datetime:
            return datetime.fromisoformat(item.value)
        if python_type is uuid.UUID:
            return uuid.UUID(item.value)
        return python_type(item.value)
    except (TypeError, ValueError):
        raise QueryParameterError(
            f"Invalid value '{item.value}' for field '{item.field}'.",
            code="INVALID_QUERY_VALUE",
        )
