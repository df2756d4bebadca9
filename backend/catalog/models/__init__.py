"""ORM Models — SQLAlchemy declarative models for catalog entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Product references Category by category_id

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs (ADR: standard SQLAlchemy pattern)
"""

from catalog.models.category import Category  # noqa: F401
from catalog.models.product import Product  # noqa: F401
