# catalog/routers/__init__.py

from . import categories, products

__all__ = ["categories", "products"]
