# emotion_backend/helpers/query_builder.py
import operator
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import asc, desc
from sqlalchemy.orm import Query

from emotion_backend.models.filters import Filter, OrderBy


def _in_values(value: Any) -> List[Any]:
    # "a,b,c" from query strings, any iterable otherwise
    return value.split(",") if isinstance(value, str) else list(value)


FILTER_OPERATORS: Dict[str, Callable[[Any, Any], Any]] = {
    "eq": operator.eq,
    "ne": operator.ne,
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
    "like": lambda col, value: col.like(f"%{value}%"),
    "in": lambda col, value: col.in_(_in_values(value)),
}

ORDER_DIRECTIONS = {"asc": asc, "desc": desc}


def apply_filters(query: Query, model, filters: List[Filter]) -> Query:
    """Apply column filters; unknown columns and operators are ignored"""
    for f in filters:
        col = getattr(model, f.column, None)
        condition = FILTER_OPERATORS.get(f.type)
        if col is None or condition is None:
            continue
        query = query.filter(condition(col, f.value))
    return query


def apply_ordering(query: Query, model, orders: List[OrderBy]) -> Query:
    for o in orders:
        col = getattr(model, o.column, None)
        direction = ORDER_DIRECTIONS.get(o.order.lower())
        if col is not None and direction is not None:
            query = query.order_by(direction(col))
    return query


def apply_pagination(query: Query, page: int = 1, limit: int = 10) -> Query:
    """1-based page of ``limit`` rows"""
    return apply_window(query, limit=limit, offset=(page - 1) * limit)


def apply_window(query: Query, limit: Optional[int] = None, offset: int = 0) -> Query:
    """Offset/limit slice where a missing limit means 'everything'"""
    if offset:
        query = query.offset(offset)
    if limit is not None:
        query = query.limit(limit)
    return query
