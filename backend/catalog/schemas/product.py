"""Product Schemas — Pydantic request bodies and the public JSON shape of products.

Invariants:
    - ProductCreate requires name and categoryId; price >= 0 when given
    - ProductUpdate carries only name/imgURL/price; unset fields are left untouched
    - Serialized products use public names: id, name, price, description, imgURL,
      category, createdAt (PRODUCT_FIELDS is the single mapping)

Design Decisions:
    - Aliases (categoryId, imgURL) keep the historical camelCase body contract while
      the Python side stays snake_case
    - Serialization as plain functions over ORM rows: projection (fields=) is applied
      here, after the query, so it never alters which rows match
"""

from collections.abc import Iterable
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from catalog.models.product import Product

# public name -> ORM attribute
PRODUCT_FIELDS = {
    "id": Product.id,
    "name": Product.name,
    "price": Product.price,
    "description": Product.description,
    "imgURL": Product.img_url,
    "category": Product.category_id,
    "createdAt": Product.created_at,
}


class ProductCreate(BaseModel):
    """Product creation body."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1, max_length=200)
    category_id: UUID = Field(alias="categoryId")
    description: str | None = Field(None, max_length=5000)
    price: float = Field(0, ge=0)
    img_url: str | None = Field(None, alias="imgURL", max_length=500)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v


class ProductUpdate(BaseModel):
    """Product update body — only name, imgURL and price are mutable."""
    model_config = ConfigDict(populate_by_name=True)

    name: str | None = Field(None, min_length=1, max_length=200)
    img_url: str | None = Field(None, alias="imgURL", max_length=500)
    price: float | None = Field(None, ge=0)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v

    def changes(self) -> dict:
        """Column values to write, keyed by ORM attribute name."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


def serialize_product(
    product: Product, fields: Iterable[str] | None = None,
) -> dict:
    """Public JSON shape of a product, optionally projected to `fields` (id always kept)."""
    data = {
        "id": str(product.id),
        "name": product.name,
        "price": product.price,
        "description": product.description,
        "imgURL": product.img_url,
        "category": str(product.category_id),
        "createdAt": (
            product.created_at.isoformat() if product.created_at else None
        ),
    }
    if fields is None:
        return data
    keep = {"id", *fields}
    return {key: value for key, value in data.items() if key in keep}
