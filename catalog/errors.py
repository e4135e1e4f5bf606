# catalog/errors.py

"""Catalog error taxonomy.

Raised by the decoding, filtering and repository layers. The API layer
(``catalog.responses``) translates each class into an HTTP response; nothing
outside that module knows about status codes.
"""

from __future__ import annotations

from typing import Dict


class CatalogError(Exception):
    """Base class for every failure the service knows how to report."""


# ---------------------------------------------------------------------------
# Request body decoding
# ---------------------------------------------------------------------------


class DecodeError(CatalogError):
    """The request body could not be decoded into the expected shape."""


class BodyTooLargeError(DecodeError):
    def __init__(self, limit: int) -> None:
        super().__init__(f"body must not be larger than {limit} bytes")
        self.limit = limit


class EmptyBodyError(DecodeError):
    def __init__(self) -> None:
        super().__init__("body must not be empty")


class MalformedJSONError(DecodeError):
    def __init__(self, offset: int | None = None) -> None:
        if offset is None:
            message = "body contains badly-formed JSON"
        else:
            message = f"body contains badly-formed JSON (at character {offset})"
        super().__init__(message)
        self.offset = offset


class TypeMismatchError(DecodeError):
    def __init__(self, field: str | None = None, offset: int | None = None) -> None:
        if field:
            message = f'body contains incorrect JSON type for field "{field}"'
        else:
            message = f"body contains incorrect JSON type (at character {offset})"
        super().__init__(message)
        self.field = field
        self.offset = offset


class UnknownFieldError(DecodeError):
    def __init__(self, field: str) -> None:
        super().__init__(f'body contains unknown key "{field}"')
        self.field = field


class TrailingDataError(DecodeError):
    def __init__(self) -> None:
        super().__init__("body must only contain a single JSON value")


class InvalidTargetError(TypeError):
    """``read_json`` was handed something that is not a model class.

    A bug in the calling code, so it is deliberately not a ``CatalogError``.
    """


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


class FailedValidationError(CatalogError):
    """One or more fields broke their validation rules (422)."""

    def __init__(self, errors: Dict[str, str]) -> None:
        super().__init__(join_field_errors(errors))
        self.errors = dict(errors)


class QueryParamError(CatalogError):
    """Query string values that could not be parsed at all (400)."""

    def __init__(self, errors: Dict[str, str]) -> None:
        super().__init__(join_field_errors(errors))
        self.errors = dict(errors)


class InvalidIDParamError(CatalogError):
    def __init__(self, raw: str) -> None:
        super().__init__(f"invalid id parameter: {raw}")
        self.raw = raw


class InvalidVersionHeaderError(CatalogError):
    def __init__(self, raw: str) -> None:
        super().__init__(f"invalid X-Expected-Version header: {raw}")
        self.raw = raw


def join_field_errors(errors: Dict[str, str]) -> str:
    """Flatten field errors into one log line, keeping insertion order."""
    return "; ".join(f"{field} {message}" for field, message in errors.items())


# ---------------------------------------------------------------------------
# Data layer
# ---------------------------------------------------------------------------


class RecordNotFoundError(CatalogError):
    def __init__(self, message: str = "record not found") -> None:
        super().__init__(message)


class EditConflictError(CatalogError):
    """The stored version no longer matches the one the caller read."""

    def __init__(self, message: str = "edit conflict") -> None:
        super().__init__(message)


class InvalidCategoryIDError(CatalogError):
    """A product referenced a category that does not exist."""

    def __init__(self, category_id: int) -> None:
        super().__init__(f"category_id {category_id} does not exist: invalid category_id")
        self.category_id = category_id


class DatabaseError(CatalogError):
    """Any other failure reported by the database or driver."""


class QueryCanceledError(DatabaseError):
    """The statement ran past its timeout and was cancelled by the server."""
