"""Product ORM — a sellable catalog item that references exactly one Category.

Invariants:
    - name is unique (store-level constraint backs the explicit pre-check)
    - price >= 0 (check constraint, also validated by the request schemas)
    - category_id must name an existing Category at creation time (checked in the handler)

Design Decisions:
    - img_url column, serialized as imgURL: keeps the public JSON contract
    - relationship lazy="raise": enrichment goes through one batched name lookup,
      never an implicit per-row load (ADR: no N+1 in async context)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    String, Text, Float, DateTime, ForeignKey, CheckConstraint, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from catalog.db.base import Base


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    img_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("categories.id"), nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    category: Mapped["Category"] = relationship(
        "Category", back_populates="products", lazy="raise",
    )
