# catalog/repositories/__init__.py

from .base import Repository
from .categories import CategoryRepository
from .products import ProductRepository

__all__ = ["Repository", "CategoryRepository", "ProductRepository"]
