# tests/test_categories.py

"""
API tests for the category endpoints, run against the in-memory repository.
"""

import logging

import pytest
from fastapi.testclient import TestClient

from catalog.errors import DatabaseError
from catalog.models import Category


# --- Create ---


def test_create_category_success(client: TestClient, category_repo):
    """
    POST /v1/api/categories returns the created category with a server-assigned
    id and version and a Location header pointing at it.
    """
    response = client.post(
        "/v1/api/categories",
        json={"name": "Test Category", "description": "A test category"},
    )

    assert response.status_code == 201
    assert response.headers["content-type"] == "application/json"
    body = response.json()
    category_id = body["category"]["id"]
    assert body == {
        "category": {
            "id": category_id,
            "name": "Test Category",
            "description": "A test category",
            "version": 1,
        }
    }
    assert response.headers["location"] == f"/v1/api/categories/{category_id}"
    assert category_repo.rows[category_id].name == "Test Category"


def test_create_category_only_required_fields(client: TestClient):
    response = client.post("/v1/api/categories", json={"name": "Stationery"})
    assert response.status_code == 201
    assert response.json()["category"]["description"] == ""


def test_create_category_rejects_client_supplied_id(client: TestClient, category_repo):
    response = client.post(
        "/v1/api/categories", json={"id": 99, "name": "Test Category", "version": 7}
    )
    assert response.status_code == 400
    assert response.json() == {"error": 'body contains unknown key "id"'}
    assert category_repo.rows == {}


def test_create_category_empty_body(client: TestClient):
    response = client.post("/v1/api/categories", content=b"")
    assert response.status_code == 400
    assert response.json() == {"error": "body must not be empty"}


def test_create_category_malformed_json(client: TestClient):
    response = client.post("/v1/api/categories", content=b'{"name": "Books",}')
    assert response.status_code == 400
    assert response.json() == {"error": "body contains badly-formed JSON (at character 17)"}


def test_create_category_body_too_large(client: TestClient):
    response = client.post(
        "/v1/api/categories", content=b'{"name": "' + b"a" * 1_048_600 + b'"}'
    )
    assert response.status_code == 400
    assert response.json() == {"error": "body must not be larger than 1048576 bytes"}


def test_create_category_required_validation(client: TestClient):
    response = client.post("/v1/api/categories", json={"name": ""})
    assert response.status_code == 422
    assert response.json() == {"error": {"name": "is required"}}


def test_create_category_max_length_validation(client: TestClient):
    response = client.post("/v1/api/categories", json={"name": "x" * 101})
    assert response.status_code == 422
    assert response.json() == {"error": {"name": "must be at most 100 characters long"}}


def test_create_category_database_error(client: TestClient, category_repo, caplog):
    """Database failures surface as an opaque 500; the detail only goes to the log."""
    caplog.set_level(logging.INFO, logger="catalog.responses")
    category_repo.error = DatabaseError('duplicate key value violates unique constraint "x"')

    response = client.post("/v1/api/categories", json={"name": "Test Category"})

    assert response.status_code == 500
    assert response.json() == {
        "error": "the server encountered a problem and could not process your request"
    }
    record = caplog.records[-1]
    assert record.levelno == logging.ERROR
    assert "duplicate key" in record.getMessage()
    assert record.method == "POST"
    assert record.uri == "/v1/api/categories"


# --- Get by id ---


def test_get_category_success(client: TestClient, category):
    response = client.get(f"/v1/api/categories/{category.id}")
    assert response.status_code == 200
    assert response.json() == {
        "category": {
            "id": category.id,
            "name": "Test Category",
            "description": "A test category",
            "version": 1,
        }
    }


def test_get_category_is_repeatable(client: TestClient, category):
    first = client.get(f"/v1/api/categories/{category.id}")
    second = client.get(f"/v1/api/categories/{category.id}")
    assert first.json() == second.json()


def test_get_category_negative_id(client: TestClient, caplog):
    caplog.set_level(logging.INFO, logger="catalog.responses")
    response = client.get("/v1/api/categories/-1")

    assert response.status_code == 400
    assert response.json() == {"error": "invalid id parameter: -1"}
    assert caplog.records[-1].getMessage() == "invalid id parameter: -1"
    assert caplog.records[-1].uri == "/v1/api/categories/-1"


def test_get_category_invalid_id_type(client: TestClient):
    response = client.get("/v1/api/categories/abc")
    assert response.status_code == 400
    assert response.json() == {"error": "invalid id parameter: abc"}


def test_get_category_id_overflow(client: TestClient):
    response = client.get("/v1/api/categories/99999999999999999999")
    assert response.status_code == 400
    assert response.json() == {"error": "invalid id parameter: 99999999999999999999"}


def test_get_category_largest_id_is_looked_up(client: TestClient):
    response = client.get(f"/v1/api/categories/{2**63 - 1}")
    assert response.status_code == 404


def test_get_category_not_found(client: TestClient):
    response = client.get("/v1/api/categories/999999")
    assert response.status_code == 404
    assert response.json() == {"error": "the requested resource could not be found"}


def test_get_category_database_error(client: TestClient, category_repo):
    category_repo.error = DatabaseError("connection reset by peer")
    response = client.get("/v1/api/categories/1")
    assert response.status_code == 500


# --- List ---


def _seed(category_repo, *names):
    return [category_repo.insert(Category(name=name, description="")) for name in names]


def test_list_categories_defaults(client: TestClient, category_repo):
    _seed(category_repo, "Books", "Games")

    response = client.get("/v1/api/categories")

    assert response.status_code == 200
    body = response.json()
    assert [c["name"] for c in body["categories"]] == ["Books", "Games"]
    assert body["metadata"] == {
        "current_page": 1,
        "page_size": 20,
        "first_page": 1,
        "last_page": 1,
        "total_records": 2,
    }
    assert category_repo.last_filters.sort_columns() == [("id", "ASC")]


def test_list_categories_passes_filters(client: TestClient, category_repo):
    client.get(
        "/v1/api/categories",
        params={
            "id": "23,92,48",
            "name": "test",
            "date_from": "2020-01-30T00:00:00Z",
            "date_to": "2025-08-10T15:04:05Z",
            "sort": "-created_at,name",
            "page": "3",
            "page_size": "5",
        },
    )
    filters = category_repo.last_filters
    assert filters.ids == [23, 92, 48]
    assert filters.name == "test"
    assert filters.date_from.year == 2020
    assert filters.date_to.year == 2025
    assert filters.order_by() == "created_at DESC, name ASC, id ASC"
    assert (filters.page, filters.page_size) == (3, 5)


def test_list_categories_sort_by_name_breaks_ties_by_id(client: TestClient, category_repo):
    _seed(category_repo, "Toys", "Books", "Toys", "Books")

    response = client.get("/v1/api/categories", params={"sort": "name"})

    listed = [(c["name"], c["id"]) for c in response.json()["categories"]]
    assert listed == [("Books", 2), ("Books", 4), ("Toys", 1), ("Toys", 3)]


def test_list_categories_pagination(client: TestClient, category_repo):
    _seed(category_repo, *(f"Category {i}" for i in range(12)))

    response = client.get("/v1/api/categories", params={"page": 3, "page_size": 5})

    body = response.json()
    assert len(body["categories"]) == 2
    assert body["metadata"] == {
        "current_page": 3,
        "page_size": 5,
        "first_page": 1,
        "last_page": 3,
        "total_records": 12,
    }


def test_list_categories_empty(client: TestClient):
    response = client.get("/v1/api/categories")
    assert response.status_code == 200
    assert response.json() == {"categories": [], "metadata": {}}


def test_list_categories_query_parse_errors(client: TestClient, caplog):
    caplog.set_level(logging.INFO, logger="catalog.responses")
    response = client.get(
        "/v1/api/categories",
        params={
            "page": "as",
            "page_size": "bk",
            "id": "23,92,48,.",
            "date_from": "2020-01-30",
            "date_to": "2025-08-10",
        },
    )

    assert response.status_code == 400
    assert response.json() == {
        "error": {
            "date_from": "invalid datetime: 2020-01-30",
            "date_to": "invalid datetime: 2025-08-10",
            "id": 'invalid id: "."',
            "page": "must be an integer value: as",
            "page_size": "must be an integer value: bk",
        }
    }
    record = caplog.records[-1]
    assert record.method == "GET"
    assert record.uri.startswith("/v1/api/categories?")
    assert sorted(record.getMessage().split("; ")) == sorted(
        [
            'id invalid id: "."',
            "date_from invalid datetime: 2020-01-30",
            "date_to invalid datetime: 2025-08-10",
            "page must be an integer value: as",
            "page_size must be an integer value: bk",
        ]
    )


def test_list_categories_integer_overflow(client: TestClient):
    response = client.get(
        "/v1/api/categories",
        params={"page": "99999999999999999999", "id": "1,99999999999999999999"},
    )
    assert response.status_code == 400
    assert response.json() == {
        "error": {
            "id": 'invalid id: "99999999999999999999"',
            "page": "must be an integer value: 99999999999999999999",
        }
    }


def test_list_categories_query_validation_errors(client: TestClient):
    response = client.get(
        "/v1/api/categories",
        params={"page": "-10", "page_size": "103", "sort": "id,-test,-name"},
    )
    assert response.status_code == 422
    assert response.json() == {
        "error": {
            "sort[1]": "must be one of [id created_at name -id -created_at -name]",
            "page": "must be greater than or equal to 1",
            "page_size": "must be less than or equal to 100",
        }
    }


def test_list_categories_database_error(client: TestClient, category_repo):
    category_repo.error = DatabaseError("timeout")
    response = client.get("/v1/api/categories")
    assert response.status_code == 500


# --- Update ---


def test_update_category_bumps_version(client: TestClient, category):
    response = client.patch(
        f"/v1/api/categories/{category.id}", json={"description": "Updated"}
    )
    assert response.status_code == 200
    assert response.json() == {
        "category": {
            "id": category.id,
            "name": "Test Category",
            "description": "Updated",
            "version": 2,
        }
    }


def test_update_category_validates_result(client: TestClient, category):
    response = client.patch(f"/v1/api/categories/{category.id}", json={"name": "ab"})
    assert response.status_code == 422
    assert response.json() == {"error": {"name": "must be at least 3 characters long"}}


def test_update_category_expected_version_mismatch(client: TestClient, category):
    response = client.patch(
        f"/v1/api/categories/{category.id}",
        json={"name": "Renamed"},
        headers={"X-Expected-Version": "7"},
    )
    assert response.status_code == 409
    assert response.json() == {
        "error": "unable to update the record due to an edit conflict, please try again"
    }


def test_update_category_expected_version_match(client: TestClient, category):
    response = client.patch(
        f"/v1/api/categories/{category.id}",
        json={"name": "Renamed"},
        headers={"X-Expected-Version": "1"},
    )
    assert response.status_code == 200
    assert response.json()["category"]["version"] == 2


@pytest.mark.parametrize("header", ["01", "+1"])
def test_update_category_expected_version_is_numeric(client: TestClient, category, header):
    response = client.patch(
        f"/v1/api/categories/{category.id}",
        json={"name": "Renamed"},
        headers={"X-Expected-Version": header},
    )
    assert response.status_code == 200
    assert response.json()["category"]["version"] == 2


@pytest.mark.parametrize("header", ["one", "1.0", "99999999999999999999"])
def test_update_category_bad_expected_version(client: TestClient, category_repo, category, header):
    response = client.patch(
        f"/v1/api/categories/{category.id}",
        json={"name": "Renamed"},
        headers={"X-Expected-Version": header},
    )
    assert response.status_code == 400
    assert response.json() == {"error": f"invalid X-Expected-Version header: {header}"}
    assert category_repo.rows[category.id].name == "Test Category"


def test_update_category_lost_race(client: TestClient, category_repo, category):
    """A write that lands between our read and our update yields a 409."""
    original_get = category_repo.get_by_id

    def get_then_concurrent_write(record_id):
        record = original_get(record_id)
        category_repo.rows[record_id].version += 1
        return record

    category_repo.get_by_id = get_then_concurrent_write

    response = client.patch(f"/v1/api/categories/{category.id}", json={"name": "Renamed"})
    assert response.status_code == 409


def test_update_category_not_found(client: TestClient):
    response = client.patch("/v1/api/categories/999999", json={"name": "Nothing"})
    assert response.status_code == 404


def test_update_category_unknown_field(client: TestClient, category):
    response = client.patch(f"/v1/api/categories/{category.id}", json={"version": 5})
    assert response.status_code == 400
    assert response.json() == {"error": 'body contains unknown key "version"'}


# --- Delete ---


def test_delete_category_success(client: TestClient, category):
    response = client.delete(f"/v1/api/categories/{category.id}")
    assert response.status_code == 200
    assert response.json() == {"message": "category successfully deleted"}

    assert client.get(f"/v1/api/categories/{category.id}").status_code == 404


def test_delete_category_not_found(client: TestClient):
    response = client.delete("/v1/api/categories/999999")
    assert response.status_code == 404
    assert response.json() == {"error": "the requested resource could not be found"}


def test_delete_category_invalid_id(client: TestClient):
    response = client.delete("/v1/api/categories/0")
    assert response.status_code == 400
    assert response.json() == {"error": "invalid id parameter: 0"}


# --- Router fallbacks ---


def test_unknown_route(client: TestClient):
    response = client.get("/v1/api/nothing-here")
    assert response.status_code == 404
    assert response.json() == {"error": "the requested resource could not be found"}


def test_method_not_allowed(client: TestClient):
    response = client.put("/v1/api/categories/1", json={})
    assert response.status_code == 405
    assert response.json() == {
        "error": "the PUT method is not supported for this resource"
    }


def test_unexpected_exception_is_opaque_500(lenient_client: TestClient, category_repo):
    category_repo.error = RuntimeError("boom")
    response = lenient_client.get("/v1/api/categories/1")
    assert response.status_code == 500
    assert response.json() == {
        "error": "the server encountered a problem and could not process your request"
    }
