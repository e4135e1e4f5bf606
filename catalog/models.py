# catalog/models.py

"""
SQLAlchemy table definitions for the catalog service.

Instances are also used as plain records by the repositories: they are built
from result rows and never attached to a session, so every write goes through
an explicit statement.
"""

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Text,
    text,
)
from sqlalchemy.sql import func

from .db import Base


class Category(Base):
    """
    SQLAlchemy model for the 'categories' table.
    """

    __tablename__ = "categories"

    id = Column(BigInteger, primary_key=True, autoincrement=True)

    # Server-assigned, never changed afterwards.
    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    name = Column(Text, nullable=False)
    description = Column(Text, nullable=False, server_default="")

    # Optimistic concurrency counter, bumped by every successful update.
    version = Column(Integer, nullable=False, server_default=text("1"))

    def __repr__(self):
        return f"<Category(id={self.id}, name='{self.name}', version={self.version})>"


class Product(Base):
    """
    SQLAlchemy model for the 'products' table.
    A product references its category by id only.
    """

    __tablename__ = "products"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=False, server_default="")
    category_id = Column(BigInteger, ForeignKey("categories.id"), nullable=False)
    price = Column(Float, nullable=False, server_default=text("0"))
    quantity = Column(Integer, nullable=False, server_default=text("0"))
    version = Column(Integer, nullable=False, server_default=text("1"))

    def __repr__(self):
        return (
            f"<Product(id={self.id}, name='{self.name}', "
            f"category_id={self.category_id}, version={self.version})>"
        )
