# tests/conftest.py

"""
Shared fixtures for the API tests.

Handler tests run against in-memory repositories injected through
``app.dependency_overrides``; no database is needed for them. The repository
tests in ``test_repositories.py`` bring their own PostgreSQL fixtures.
"""

import logging
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from catalog.dependencies import get_category_repository, get_product_repository
from catalog.errors import EditConflictError, InvalidCategoryIDError, RecordNotFoundError
from catalog.filters import calculate_metadata
from catalog.main import app
from catalog.models import Category, Product

# Suppress noisy logs from third-party libraries during tests
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)


class InMemoryRepository:
    """Dict-backed stand-in with the same interface and errors as Repository."""

    model = None

    def __init__(self):
        self.rows = {}
        self.next_id = 1
        self.error = None
        self.last_filters = None

    def _copy(self, record):
        columns = self.model.__table__.columns
        return self.model(**{c.name: getattr(record, c.name) for c in columns})

    def _fail(self):
        if self.error is not None:
            raise self.error

    def insert(self, record):
        self._fail()
        record.id = self.next_id
        record.version = 1
        record.created_at = datetime.now(timezone.utc)
        self.next_id += 1
        self.rows[record.id] = self._copy(record)
        return record

    def get_by_id(self, record_id):
        self._fail()
        if record_id not in self.rows:
            raise RecordNotFoundError()
        return self._copy(self.rows[record_id])

    def get_all(self, filters):
        self._fail()
        self.last_filters = filters
        records = [self._copy(r) for r in self.rows.values()]
        if filters.ids:
            records = [r for r in records if r.id in filters.ids]
        if filters.name:
            words = filters.name.lower().split()
            records = [r for r in records if all(w in r.name.lower().split() for w in words)]
        for column, direction in reversed(filters.sort_columns()):
            records.sort(key=lambda r: getattr(r, column), reverse=direction == "DESC")

        total = len(records)
        page = records[filters.offset : filters.offset + filters.limit]
        if not page:
            total = 0
        return page, calculate_metadata(total, filters.page, filters.page_size)

    def update(self, record):
        self._fail()
        stored = self.rows.get(record.id)
        if stored is None or stored.version != record.version:
            raise EditConflictError()
        record.version += 1
        self.rows[record.id] = self._copy(record)
        return record

    def delete(self, record_id):
        self._fail()
        if self.rows.pop(record_id, None) is None:
            raise RecordNotFoundError()


class InMemoryCategoryRepository(InMemoryRepository):
    model = Category


class InMemoryProductRepository(InMemoryRepository):
    model = Product

    def __init__(self, categories):
        super().__init__()
        self.categories = categories

    def insert(self, record):
        if record.category_id not in self.categories.rows:
            raise InvalidCategoryIDError(record.category_id)
        return super().insert(record)


@pytest.fixture
def category_repo():
    return InMemoryCategoryRepository()


@pytest.fixture
def product_repo(category_repo):
    return InMemoryProductRepository(category_repo)


@pytest.fixture
def client(category_repo, product_repo):
    """
    TestClient wired to the in-memory repositories. Used outside a ``with``
    block so the lifespan (which connects to PostgreSQL) does not run.
    """
    app.dependency_overrides[get_category_repository] = lambda: category_repo
    app.dependency_overrides[get_product_repository] = lambda: product_repo
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def lenient_client(client):
    """Like ``client`` but returns 500 responses instead of re-raising."""
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def category(category_repo):
    return category_repo.insert(Category(name="Test Category", description="A test category"))
