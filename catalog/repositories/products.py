# catalog/repositories/products.py

from ..errors import InvalidCategoryIDError
from ..models import Product
from .base import FOREIGN_KEY_VIOLATION, Repository, sqlstate


class ProductRepository(Repository):
    model = Product
    fields = ("name", "category_id", "description", "price", "quantity")

    def integrity_error(self, exc, record):
        # The only foreign key on products is category_id.
        if sqlstate(exc) == FOREIGN_KEY_VIOLATION:
            return InvalidCategoryIDError(record.category_id)
        return None
