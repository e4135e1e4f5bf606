# catalog/filters.py

"""Filtering, pagination and sorting for the list endpoints.

Query strings are handled in two passes. ``parse_filters`` converts the raw
strings and collects every value it cannot convert (reported as 400). The
resulting ``Filters`` are then checked against ``FILTER_RULES`` (reported as
422). ``list_query`` turns validated filters into a single SELECT that also
returns the total number of matching rows.
"""

from __future__ import annotations

import math
import re
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field
from sqlalchemy import func, literal_column, select

from .errors import QueryParamError
from .validator import Validator, rules

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 20

# Safelist of sort keys and the ORDER BY term each one stands for.
SORT_COLUMNS: Dict[str, Tuple[str, str]] = {
    "id": ("id", "ASC"),
    "created_at": ("created_at", "ASC"),
    "name": ("name", "ASC"),
    "-id": ("id", "DESC"),
    "-created_at": ("created_at", "DESC"),
    "-name": ("name", "DESC"),
}

FILTER_RULES = {
    "name": rules("omitempty,max=100"),
    "sort": rules("omitempty,max=4,dive,oneof=" + " ".join(SORT_COLUMNS)),
    "page": rules("gte=1,lte=10000000"),
    "page_size": rules("gte=1,lte=100"),
}

INTEGER_RE = re.compile(r"^[+-]?[0-9]+$")
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
RFC3339_RE = re.compile(
    r"^([0-9]{4}-[0-9]{2}-[0-9]{2})[Tt]([0-9]{2}:[0-9]{2}:[0-9]{2})"
    r"(?:\.([0-9]+))?([Zz]|[+-][0-9]{2}:[0-9]{2})$"
)


class Filters(BaseModel):
    ids: List[int] = Field(default_factory=list)
    name: str = ""
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    sorts: List[str] = Field(default_factory=list)
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE

    def wire_values(self) -> Dict[str, object]:
        """Filter values keyed by their query string names."""
        return {
            "id": self.ids,
            "name": self.name,
            "date_from": self.date_from,
            "date_to": self.date_to,
            "sort": self.sorts,
            "page": self.page,
            "page_size": self.page_size,
        }

    def sort_columns(self) -> List[Tuple[str, str]]:
        """
        Resolve the requested sort keys into (column, direction) pairs.

        Unless the client sorts on id itself, ``id ASC`` is appended so rows
        with equal sort values always come back in the same order.
        """
        columns = [SORT_COLUMNS[key] for key in self.sorts]
        if not any(key in ("id", "-id") for key in self.sorts):
            columns.append(SORT_COLUMNS["id"])
        return columns

    def order_by(self) -> str:
        return ", ".join(f"{column} {direction}" for column, direction in self.sort_columns())

    @property
    def limit(self) -> int:
        return self.page_size

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class Metadata(BaseModel):
    current_page: int = 0
    page_size: int = 0
    first_page: int = 0
    last_page: int = 0
    total_records: int = 0

    def to_dict(self) -> Dict[str, int]:
        # Zero values are left out, so empty metadata renders as {}.
        return self.model_dump(exclude_defaults=True)


def calculate_metadata(total_records: int, page: int, page_size: int) -> Metadata:
    if total_records == 0:
        return Metadata()

    return Metadata(
        current_page=page,
        page_size=page_size,
        first_page=1,
        last_page=math.ceil(total_records / page_size),
        total_records=total_records,
    )


def parse_rfc3339(raw: str) -> datetime:
    match = RFC3339_RE.match(raw)
    if match is None:
        raise ValueError(f"not an RFC 3339 timestamp: {raw}")

    date, clock, fraction, zone = match.groups()
    fraction = (fraction or "")[:6].ljust(6, "0")
    if zone in ("Z", "z"):
        zone = "+00:00"
    return datetime.fromisoformat(f"{date}T{clock}.{fraction}{zone}")


def parse_int(raw: str) -> int:
    """Parse a base-10 signed 64-bit integer, raising ValueError otherwise."""
    if not INTEGER_RE.match(raw):
        raise ValueError(f"not an integer: {raw}")
    value = int(raw)
    if not INT64_MIN <= value <= INT64_MAX:
        raise ValueError(f"integer out of range: {raw}")
    return value


def _read_csv(query: Mapping[str, str], key: str) -> List[str]:
    raw = query.get(key, "")
    return raw.split(",") if raw else []


def _read_int(query, key, default, errors):
    raw = query.get(key, "")
    if raw == "":
        return default
    try:
        return parse_int(raw)
    except ValueError:
        errors[key] = f"must be an integer value: {raw}"
        return default


def _read_ids(query, key, errors):
    ids = []
    for token in _read_csv(query, key):
        try:
            ids.append(parse_int(token))
        except ValueError:
            errors[key] = f'invalid id: "{token}"'
            return []
    return ids


def _read_time(query, key, errors):
    raw = query.get(key, "")
    if raw == "":
        return None
    try:
        return parse_rfc3339(raw)
    except ValueError:
        errors[key] = f"invalid datetime: {raw}"
        return None


def parse_filters(query: Mapping[str, str]) -> Filters:
    """
    Build Filters from query string values.

    Raises QueryParamError listing every value that could not be converted.
    """
    errors: Dict[str, str] = {}

    ids = _read_ids(query, "id", errors)
    date_from = _read_time(query, "date_from", errors)
    date_to = _read_time(query, "date_to", errors)
    page = _read_int(query, "page", DEFAULT_PAGE, errors)
    page_size = _read_int(query, "page_size", DEFAULT_PAGE_SIZE, errors)

    if errors:
        raise QueryParamError(errors)

    return Filters(
        ids=ids,
        name=query.get("name", ""),
        date_from=date_from,
        date_to=date_to,
        sorts=_read_csv(query, "sort"),
        page=page,
        page_size=page_size,
    )


def read_filters(query: Mapping[str, str], validator: Validator) -> Filters:
    """Parse and validate list filters in one go."""
    filters = parse_filters(query)
    validator.check(filters.wire_values(), FILTER_RULES)
    return filters


def list_query(model, filters: Filters):
    """
    SELECT every column of ``model``'s table plus ``count(*) OVER()`` as
    ``total_records``, restricted, ordered and paged by ``filters``.
    """
    table = model.__table__
    stmt = select(func.count().over().label("total_records"), *table.c)

    if filters.ids:
        stmt = stmt.where(table.c.id.in_(filters.ids))

    if filters.name:
        config = literal_column("'simple'")
        stmt = stmt.where(
            func.to_tsvector(config, table.c.name).bool_op("@@")(
                func.plainto_tsquery(config, filters.name)
            )
        )

    if filters.date_from is not None:
        stmt = stmt.where(table.c.created_at >= filters.date_from)
    if filters.date_to is not None:
        stmt = stmt.where(table.c.created_at <= filters.date_to)

    order = [
        table.c[column].asc() if direction == "ASC" else table.c[column].desc()
        for column, direction in filters.sort_columns()
    ]
    return stmt.order_by(*order).limit(filters.limit).offset(filters.offset)
