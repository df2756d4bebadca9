"""Category Cross-Reference — name <-> id resolution and batched name enrichment.

Invariants:
    - One store round trip per enrichment call, batched over all records (never per item)
    - Read-only; no caching across requests
    - List enrichment yields category {id, name}; single-record enrichment yields {name}
    - A reference to a category that no longer exists enriches to name None
"""

import re
from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.models.category import Category


async def find_category_by_name(db: AsyncSession, name: str) -> Category | None:
    """Case-insensitive exact match on category name (Unicode-aware on every backend)."""
    pattern = "^" + re.escape(name) + "$"
    result = await db.execute(
        select(Category).where(Category.name.regexp_match(pattern, flags="i")),
    )
    return result.scalars().first()


async def category_names(
    db: AsyncSession, category_ids: Iterable[UUID],
) -> dict[UUID, str]:
    """Map each category id to its name with a single query."""
    ids = set(category_ids)
    if not ids:
        return {}
    result = await db.execute(
        select(Category.id, Category.name).where(Category.id.in_(ids)),
    )
    return {row.id: row.name for row in result}


async def enrich_products(db: AsyncSession, products: list[dict]) -> list[dict]:
    """Replace each serialized product's category id with {id, name}."""
    ids = [UUID(p["category"]) for p in products if p.get("category")]
    names = await category_names(db, ids)
    for product in products:
        ref = product.get("category")
        if ref is None:
            continue
        product["category"] = {"id": ref, "name": names.get(UUID(ref))}
    return products


async def enrich_product(db: AsyncSession, product: dict) -> dict:
    """Replace a single product's category id with {name} only."""
    ref = product.get("category")
    if ref is None:
        return product
    names = await category_names(db, [UUID(ref)])
    product["category"] = {"name": names.get(UUID(ref))}
    return product


async def enrich_stats(db: AsyncSession, rows: list[dict]) -> list[dict]:
    """Resolve each stat row's category key to {id, name}."""
    names = await category_names(db, (row["category"] for row in rows))
    for row in rows:
        category_id = row["category"]
        row["category"] = {"id": str(category_id), "name": names.get(category_id)}
    return rows
