# catalog/dependencies.py

"""
FastAPI dependencies shared by the routers.

Repositories and the validator are handed to endpoints through ``Depends`` so
tests can swap them with ``app.dependency_overrides``.
"""

from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from .db import DB_QUERY_TIMEOUT, get_db
from .errors import InvalidIDParamError, InvalidVersionHeaderError
from .filters import parse_int
from .repositories import CategoryRepository, ProductRepository
from .validator import Validator

_validator = Validator()


def get_validator() -> Validator:
    return _validator


def get_category_repository(db: Session = Depends(get_db)) -> CategoryRepository:
    return CategoryRepository(db, timeout=DB_QUERY_TIMEOUT)


def get_product_repository(db: Session = Depends(get_db)) -> ProductRepository:
    return ProductRepository(db, timeout=DB_QUERY_TIMEOUT)


def read_id_param(id: str) -> int:
    """The ``{id}`` path parameter as a positive 64-bit integer."""
    try:
        value = parse_int(id)
    except ValueError:
        raise InvalidIDParamError(id)
    if value < 1:
        raise InvalidIDParamError(id)
    return value


def read_expected_version(
    x_expected_version: Optional[str] = Header(None),
) -> Optional[int]:
    """The optional ``X-Expected-Version`` header as an integer."""
    if x_expected_version is None:
        return None
    try:
        return parse_int(x_expected_version.strip())
    except ValueError:
        raise InvalidVersionHeaderError(x_expected_version)
