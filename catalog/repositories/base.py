# catalog/repositories/base.py

"""Shared plumbing for the table repositories.

Every public operation runs in its own short transaction with a PostgreSQL
``statement_timeout``, so a slow statement is cancelled by the server instead
of holding the request open. SQLAlchemy failures never leave this layer
untranslated: callers only ever see ``catalog.errors`` classes.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import ClassVar, Iterator, List, Tuple

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..db import DB_QUERY_TIMEOUT
from ..errors import (
    CatalogError,
    DatabaseError,
    EditConflictError,
    QueryCanceledError,
    RecordNotFoundError,
)
from ..filters import Filters, Metadata, calculate_metadata, list_query

logger = logging.getLogger(__name__)

# SQLSTATE codes
QUERY_CANCELED = "57014"
FOREIGN_KEY_VIOLATION = "23503"


def sqlstate(exc: BaseException):
    """The SQLSTATE of the driver error behind a SQLAlchemy exception, if any."""
    orig = getattr(exc, "orig", None)
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


class Repository:
    """
    CRUD over one table. Subclasses set ``model`` (the ORM class) and
    ``fields`` (the client-writable columns).
    """

    model: ClassVar[type]
    fields: ClassVar[Tuple[str, ...]]

    def __init__(self, session: Session, timeout: float = DB_QUERY_TIMEOUT):
        self.session = session
        self.timeout = timeout

    @property
    def table(self):
        return self.model.__table__

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        session = self.session
        try:
            timeout_ms = str(int(self.timeout * 1000))
            session.execute(select(func.set_config("statement_timeout", timeout_ms, True)))
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            if sqlstate(exc) == QUERY_CANCELED:
                raise QueryCanceledError(
                    f"{self.table.name}: statement cancelled after {self.timeout}s"
                ) from exc
            raise DatabaseError(str(exc)) from exc
        except Exception:
            session.rollback()
            raise

    def integrity_error(self, exc: IntegrityError, record) -> CatalogError | None:
        """Hook for turning a constraint violation into a domain error."""
        return None

    def _values(self, record):
        return {name: getattr(record, name) for name in self.fields}

    def _record(self, row):
        values = dict(row._mapping)
        values.pop("total_records", None)
        return self.model(**values)

    def _execute_write(self, session, stmt, record):
        try:
            return session.execute(stmt)
        except IntegrityError as exc:
            translated = self.integrity_error(exc, record)
            if translated is None:
                raise
            raise translated from exc

    def insert(self, record):
        """Insert ``record``, filling in its id, created_at and version."""
        table = self.table
        stmt = (
            insert(table)
            .values(**self._values(record))
            .returning(table.c.id, table.c.created_at, table.c.version)
        )
        with self.transaction() as session:
            row = self._execute_write(session, stmt, record).one()

        record.id, record.created_at, record.version = row
        logger.info("inserted %s id=%s", table.name, record.id)
        return record

    def get_by_id(self, record_id: int):
        table = self.table
        with self.transaction() as session:
            row = session.execute(select(table).where(table.c.id == record_id)).one_or_none()

        if row is None:
            raise RecordNotFoundError()
        return self._record(row)

    def get_all(self, filters: Filters) -> Tuple[List, Metadata]:
        with self.transaction() as session:
            rows = session.execute(list_query(self.model, filters)).all()

        total_records = rows[0].total_records if rows else 0
        records = [self._record(row) for row in rows]
        return records, calculate_metadata(total_records, filters.page, filters.page_size)

    def update(self, record):
        """
        Write ``record`` back only if the stored version still equals
        ``record.version``; on success ``record.version`` is the new version.
        """
        table = self.table
        stmt = (
            update(table)
            .where(table.c.id == record.id, table.c.version == record.version)
            .values(version=table.c.version + 1, **self._values(record))
            .returning(table.c.version)
        )
        with self.transaction() as session:
            version = self._execute_write(session, stmt, record).scalar_one_or_none()
            if version is None:
                raise EditConflictError()

        record.version = version
        logger.info("updated %s id=%s version=%s", table.name, record.id, version)
        return record

    def delete(self, record_id: int) -> None:
        table = self.table
        with self.transaction() as session:
            result = session.execute(delete(table).where(table.c.id == record_id))
            if result.rowcount == 0:
                raise RecordNotFoundError()

        logger.info("deleted %s id=%s", table.name, record_id)
