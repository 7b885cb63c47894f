"""
Translate filter and order mappings into SQLAlchemy Core expressions.

    build_where(users, {"test": 1, "a": {"op": "in", "val": [1, 2]}})
    # users.test = :test AND users.a IN (...)

A literal None matches NULL. An empty filter matches every row. A tuple of field
names as key, with "in" or "notin", matches rows whose key tuple is one of the
given value tuples:

    build_where(users2, {("id", "test"): {"op": "in", "val": [(1, 1), (2, 5)]}})
"""

from typing import Any, Callable

from sqlalchemy import ColumnElement, Table, and_, true, tuple_
from sqlalchemy.sql.elements import UnaryExpression

from recordmodel.database.protocols import Filter, Order

OPERATORS: dict[str, Callable[[Any, Any], ColumnElement]] = {
    "in": lambda column, val: column.in_(list(val)),
    "notin": lambda column, val: column.not_in(list(val)),
    "like": lambda column, val: column.like(val),
    "ilike": lambda column, val: column.ilike(val),
    "lt": lambda column, val: column < val,
    "lte": lambda column, val: column <= val,
    "gt": lambda column, val: column > val,
    "gte": lambda column, val: column >= val,
    "ne": lambda column, val: column != val,
}


def _column(table: Table, field: str):
    try:
        return table.c[field]
    except KeyError:
        raise ValueError(f"Unknown field {field!r} for collection {table.name!r}") from None


def is_predicate(value: Any) -> bool:
    return isinstance(value, dict) and "op" in value and "val" in value


def build_condition(table: Table, field: str | tuple[str, ...], value: Any) -> ColumnElement:
    if isinstance(field, tuple):
        if not is_predicate(value) or value["op"] not in ("in", "notin"):
            raise ValueError(f"Field tuple {field!r} needs an in or notin predicate")
        column = tuple_(*(_column(table, f) for f in field))
        return OPERATORS[value["op"]](column, [tuple(v) for v in value["val"]])

    column = _column(table, field)
    if not is_predicate(value):
        return column == value

    op = value["op"]
    try:
        operator = OPERATORS[op]
    except KeyError:
        raise ValueError(f"Unknown filter operator {op!r} on field {field!r}") from None
    return operator(column, value["val"])


def build_where(table: Table, filter: Filter | None) -> ColumnElement:
    """AND of one condition per filter entry."""
    if not filter:
        return true()
    return and_(*(build_condition(table, field, value) for field, value in filter.items()))


def build_order(table: Table, order: Order | None) -> list[UnaryExpression]:
    clauses = []
    for entry in order or ():
        column = _column(table, entry["key"])
        direction = str(entry.get("dir", "ASC")).upper()
        if direction not in ("ASC", "DESC"):
            raise ValueError(f"Unknown order direction {entry.get('dir')!r}")
        clauses.append(column.desc() if direction == "DESC" else column.asc())
    return clauses
