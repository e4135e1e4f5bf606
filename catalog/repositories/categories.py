# catalog/repositories/categories.py

from ..models import Category
from .base import Repository


class CategoryRepository(Repository):
    model = Category
    fields = ("name", "description")
