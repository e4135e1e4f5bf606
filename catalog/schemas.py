# catalog/schemas.py

"""
Pydantic schemas for the catalog API.
Input schemas describe the accepted JSON shape only; the field rules that
apply to them live in the rule tables below and are checked by
``catalog.validator.Validator`` after decoding.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .validator import rules


# Base for every request body: unknown keys are rejected and JSON values are
# never coerced into another type.
class StrictInput(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)


# Used in POST /v1/api/categories.
class CategoryCreate(StrictInput):
    name: str = Field("", description="Name of the category.")
    description: str = Field("", description="Optional description.")


# Used in PATCH /v1/api/categories/{id}. Absent or null fields are left as they are.
class CategoryUpdate(StrictInput):
    name: Optional[str] = Field(None, description="New name of the category.")
    description: Optional[str] = Field(None, description="New description.")


# Used in POST /v1/api/products.
class ProductCreate(StrictInput):
    name: str = Field("", description="Name of the product.")
    category_id: int = Field(0, description="Id of an existing category.")
    description: str = Field("", description="Optional description.")
    price: float = Field(0, description="Unit price. Must be non-negative.")
    quantity: int = Field(0, description="Stock quantity. Must be non-negative.")


# Used in PATCH /v1/api/products/{id}.
class ProductUpdate(StrictInput):
    name: Optional[str] = None
    category_id: Optional[int] = None
    description: Optional[str] = None
    price: Optional[float] = None
    quantity: Optional[int] = None


CATEGORY_RULES = {
    "name": rules("required,min=3,max=100"),
    "description": rules("omitempty"),
}

PRODUCT_RULES = {
    "name": rules("required,min=3,max=100"),
    "category_id": rules("required"),
    "description": rules("omitempty"),
    "price": rules("omitempty,gte=0"),
    "quantity": rules("omitempty,gte=0"),
}


# Response representations. created_at is kept server-side only.
class CategoryResponse(BaseModel):
    id: int
    name: str
    description: str
    version: int

    model_config = ConfigDict(from_attributes=True)


class ProductResponse(BaseModel):
    id: int
    name: str
    category_id: int
    description: str
    price: float
    quantity: int
    version: int

    model_config = ConfigDict(from_attributes=True)
