# catalog/routers/products.py

"""
Product endpoints.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status

from ..decoding import read_body, read_json
from ..dependencies import (
    get_product_repository,
    get_validator,
    read_expected_version,
    read_id_param,
)
from ..errors import EditConflictError
from ..filters import read_filters
from ..models import Product
from ..repositories import ProductRepository
from ..responses import write_json
from ..schemas import PRODUCT_RULES, ProductCreate, ProductResponse, ProductUpdate
from ..validator import Validator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/api/products", tags=["products"])


def _rule_values(product):
    return {field: getattr(product, field) for field in PRODUCT_RULES}


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create a new product")
def create_product(
    request: Request,
    body: bytes = Depends(read_body),
    repo: ProductRepository = Depends(get_product_repository),
    validator: Validator = Depends(get_validator),
):
    """
    Creates a product.

    - 400 when the body cannot be decoded or category_id names no category.
    - 422 when a field breaks its rules.
    """
    payload = read_json(body, ProductCreate)
    validator.check(payload.model_dump(), PRODUCT_RULES)

    product = repo.insert(Product(**payload.model_dump()))
    logger.info(f"Product '{product.name}' (ID: {product.id}) created successfully.")

    headers = {"Location": f"/v1/api/products/{product.id}"}
    return write_json(
        request,
        status.HTTP_201_CREATED,
        {"product": ProductResponse.model_validate(product)},
        headers,
    )


@router.get("", summary="List products with filters, sorting and pagination")
def list_products(
    request: Request,
    repo: ProductRepository = Depends(get_product_repository),
    validator: Validator = Depends(get_validator),
):
    filters = read_filters(request.query_params, validator)
    products, metadata = repo.get_all(filters)
    return write_json(
        request,
        status.HTTP_200_OK,
        {
            "products": [ProductResponse.model_validate(p) for p in products],
            "metadata": metadata.to_dict(),
        },
    )


@router.get("/{id}", summary="Retrieve a product by ID")
def get_product(
    request: Request,
    product_id: int = Depends(read_id_param),
    repo: ProductRepository = Depends(get_product_repository),
):
    product = repo.get_by_id(product_id)
    return write_json(
        request, status.HTTP_200_OK, {"product": ProductResponse.model_validate(product)}
    )


@router.patch("/{id}", summary="Update an existing product")
def update_product(
    request: Request,
    product_id: int = Depends(read_id_param),
    body: bytes = Depends(read_body),
    expected_version: Optional[int] = Depends(read_expected_version),
    repo: ProductRepository = Depends(get_product_repository),
    validator: Validator = Depends(get_validator),
):
    """
    Partial update with the same version check as categories. Moving a
    product to a category that does not exist is a 400.
    """
    payload = read_json(body, ProductUpdate)

    product = repo.get_by_id(product_id)
    if expected_version is not None and expected_version != product.version:
        raise EditConflictError(
            f"product {product_id}: expected version {expected_version}, "
            f"found {product.version}"
        )

    for field, value in payload.model_dump(exclude_none=True).items():
        setattr(product, field, value)
    validator.check(_rule_values(product), PRODUCT_RULES)

    repo.update(product)
    logger.info(f"Product (ID: {product_id}) updated to version {product.version}.")
    return write_json(
        request, status.HTTP_200_OK, {"product": ProductResponse.model_validate(product)}
    )


@router.delete("/{id}", summary="Delete a product by ID")
def delete_product(
    request: Request,
    product_id: int = Depends(read_id_param),
    repo: ProductRepository = Depends(get_product_repository),
):
    repo.delete(product_id)
    logger.info(f"Product (ID: {product_id}) deleted successfully.")
    return write_json(request, status.HTTP_200_OK, {"message": "product successfully deleted"})
