# catalog/routers/categories.py

"""
Category endpoints.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status

from ..decoding import read_body, read_json
from ..dependencies import (
    get_category_repository,
    get_validator,
    read_expected_version,
    read_id_param,
)
from ..errors import EditConflictError
from ..filters import read_filters
from ..models import Category
from ..repositories import CategoryRepository
from ..responses import write_json
from ..schemas import CATEGORY_RULES, CategoryCreate, CategoryResponse, CategoryUpdate
from ..validator import Validator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/api/categories", tags=["categories"])


def _rule_values(category):
    return {field: getattr(category, field) for field in CATEGORY_RULES}


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create a new category")
def create_category(
    request: Request,
    body: bytes = Depends(read_body),
    repo: CategoryRepository = Depends(get_category_repository),
    validator: Validator = Depends(get_validator),
):
    """
    Creates a category.

    - 400 when the body cannot be decoded, 422 when a field breaks its rules.
    - Any database failure is a 500; the detail only goes to the log.
    """
    payload = read_json(body, CategoryCreate)
    validator.check(payload.model_dump(), CATEGORY_RULES)

    category = repo.insert(Category(name=payload.name, description=payload.description))
    logger.info(f"Category '{category.name}' (ID: {category.id}) created successfully.")

    headers = {"Location": f"/v1/api/categories/{category.id}"}
    return write_json(
        request,
        status.HTTP_201_CREATED,
        {"category": CategoryResponse.model_validate(category)},
        headers,
    )


@router.get("", summary="List categories with filters, sorting and pagination")
def list_categories(
    request: Request,
    repo: CategoryRepository = Depends(get_category_repository),
    validator: Validator = Depends(get_validator),
):
    """
    Supports ``id`` (comma separated), ``name`` (full-text match),
    ``date_from``/``date_to`` (RFC 3339), ``sort``, ``page`` and ``page_size``.
    """
    filters = read_filters(request.query_params, validator)
    categories, metadata = repo.get_all(filters)
    return write_json(
        request,
        status.HTTP_200_OK,
        {
            "categories": [CategoryResponse.model_validate(c) for c in categories],
            "metadata": metadata.to_dict(),
        },
    )


@router.get("/{id}", summary="Retrieve a category by ID")
def get_category(
    request: Request,
    category_id: int = Depends(read_id_param),
    repo: CategoryRepository = Depends(get_category_repository),
):
    category = repo.get_by_id(category_id)
    return write_json(
        request, status.HTTP_200_OK, {"category": CategoryResponse.model_validate(category)}
    )


@router.patch("/{id}", summary="Update an existing category")
def update_category(
    request: Request,
    category_id: int = Depends(read_id_param),
    body: bytes = Depends(read_body),
    expected_version: Optional[int] = Depends(read_expected_version),
    repo: CategoryRepository = Depends(get_category_repository),
    validator: Validator = Depends(get_validator),
):
    """
    Partial update. Only the supplied fields change; the write succeeds only
    if nobody else updated the category since it was read here (409 otherwise).
    An ``X-Expected-Version`` header pins the version the client last saw.
    """
    payload = read_json(body, CategoryUpdate)

    category = repo.get_by_id(category_id)
    if expected_version is not None and expected_version != category.version:
        raise EditConflictError(
            f"category {category_id}: expected version {expected_version}, "
            f"found {category.version}"
        )

    for field, value in payload.model_dump(exclude_none=True).items():
        setattr(category, field, value)
    validator.check(_rule_values(category), CATEGORY_RULES)

    repo.update(category)
    logger.info(f"Category (ID: {category_id}) updated to version {category.version}.")
    return write_json(
        request, status.HTTP_200_OK, {"category": CategoryResponse.model_validate(category)}
    )


@router.delete("/{id}", summary="Delete a category by ID")
def delete_category(
    request: Request,
    category_id: int = Depends(read_id_param),
    repo: CategoryRepository = Depends(get_category_repository),
):
    repo.delete(category_id)
    logger.info(f"Category (ID: {category_id}) deleted successfully.")
    return write_json(
        request, status.HTTP_200_OK, {"message": "category successfully deleted"}
    )
