import re
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Tuple

from app.core.errors import ClientRequestError
from app.core.sanitize import sanitize_identifier

# Query-string keys that steer the SELECT instead of filtering it
CONTROL_KEYS = {"sort", "limit", "offset"}

# Leading integer, the way a permissive parseInt reads "10", " 7", "-3" or "25px"
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

_SCALAR_TYPES = (str, int, float, bool, type(None))


class PreparedStatement(NamedTuple):
    """SQL text with `?` placeholders plus the values bound to them, in order."""

    sql: str
    params: List[Any]


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def split_filters(query_items: Iterable[Tuple[str, str]]) -> List[Tuple[str, str]]:
    """Keep every query-string pair that is not a control key, in request order."""
    return [(key, value) for key, value in query_items if key not in CONTROL_KEYS]


def parse_sort(sort: str) -> Tuple[str, str]:
    """`name:desc` -> ("name", "DESC"); anything but a literal `desc` sorts ascending."""
    parts = sort.split(":")
    column = sanitize_identifier(parts[0])
    direction = "DESC" if len(parts) > 1 and parts[1] == "desc" else "ASC"
    return column, direction


def parse_page_value(raw: str, name: str) -> int:
    match = _LEADING_INT.match(raw)
    if not match:
        raise ClientRequestError(f"Invalid {name} value")
    return int(match.group(1))


def _record_columns(body: Any) -> Tuple[List[str], List[Any]]:
    """Turn a flat JSON object into (sanitized columns, values) in key order."""
    if not isinstance(body, dict):
        raise ClientRequestError("Request body must be a JSON object")

    columns: List[str] = []
    values: List[Any] = []
    for key, value in body.items():
        if not isinstance(value, _SCALAR_TYPES):
            raise ClientRequestError(f"Unsupported value for column '{key}'")
        columns.append(sanitize_identifier(key))
        values.append(value)
    return columns, values


# -----------------------------------------------------------------------------
# Builders
# -----------------------------------------------------------------------------


def build_select(
    table: str,
    record_id: Optional[str] = None,
    filters: Iterable[Tuple[str, Any]] = (),
    sort: Optional[str] = None,
    limit: Optional[str] = None,
    offset: Optional[str] = None,
) -> PreparedStatement:
    """
    Build a SELECT for a whole table, one row by id, or rows matching filters.

    An id lookup wins over filters: when `record_id` is given the filters are
    dropped entirely, from the text and from the params.
    Sorting and paging apply whether or not a WHERE clause was added.

    Example:
        build_select("users", filters=[("a", "1"), ("b", "2")], sort="name:desc")
        -> SELECT * FROM `users` WHERE a = ? AND b = ? ORDER BY name DESC
    """
    sql = f"SELECT * FROM `{sanitize_identifier(table)}`"
    params: List[Any] = []

    if record_id:
        sql += " WHERE id = ?"
        params.append(record_id)
    else:
        conditions = []
        for column, value in filters:
            conditions.append(f"{sanitize_identifier(column)} = ?")
            params.append(value)
        if conditions:
            sql += " WHERE " + " AND ".join(conditions)

    if sort:
        column, direction = parse_sort(sort)
        sql += f" ORDER BY {column} {direction}"

    # Paging values are written as integer literals, never bound
    if limit:
        sql += f" LIMIT {parse_page_value(limit, 'limit')}"
    if offset:
        sql += f" OFFSET {parse_page_value(offset, 'offset')}"

    return PreparedStatement(sql, params)


def build_insert(table: str, body: Any) -> PreparedStatement:
    if isinstance(body, list):
        raise ClientRequestError("Batch insert not supported")

    columns, values = _record_columns(body)
    placeholders = ", ".join("?" for _ in columns)
    sql = (
        f"INSERT INTO `{sanitize_identifier(table)}` "
        f"({', '.join(columns)}) VALUES ({placeholders})"
    )
    return PreparedStatement(sql, values)


def build_update(
    table: str, record_id: Optional[str], body: Dict[str, Any]
) -> PreparedStatement:
    """
    Build `UPDATE ... SET a = ?, b = ? WHERE id = ?`.
    Body values are bound in key order and the id goes last.
    """
    if not record_id:
        raise ClientRequestError("ID required for update")

    columns, values = _record_columns(body)
    assignments = ", ".join(f"{column} = ?" for column in columns)
    sql = f"UPDATE `{sanitize_identifier(table)}` SET {assignments} WHERE id = ?"
    return PreparedStatement(sql, values + [record_id])


def build_delete(table: str, record_id: Optional[str]) -> PreparedStatement:
    if not record_id:
        raise ClientRequestError("ID required for delete")

    sql = f"DELETE FROM `{sanitize_identifier(table)}` WHERE id = ?"
    return PreparedStatement(sql, [record_id])
