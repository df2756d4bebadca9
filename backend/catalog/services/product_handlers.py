"""Product Handlers — one method per catalog endpoint, each a short check-then-act sequence.

Invariants:
    - The AsyncSession is injected through the constructor; handlers never touch db_manager
    - Store calls within a request are awaited sequentially (existence -> relation -> mutate)
    - Every success envelope carries status "OK" and nests payload under "data"
    - Not-found guards raise before any mutation; a rejected write leaves the store unchanged
    - Name uniqueness: explicit pre-check for a readable 409, unique constraint for the race

Design Decisions:
    - Handlers return plain dicts (envelopes) so routes stay one-liners
    - count vs length and 400 vs 404 for not-found are kept as historically observed
    - update/delete run as single statements and check rowcount, so a row that vanished
      between the guard and the write is reported instead of silently ignored
"""

import logging
import re
from collections.abc import Mapping
from uuid import UUID

from sqlalchemy import select, update, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.config import Settings
from catalog.core.errors import (
    DuplicateNameError, InvalidReferenceError, PersistenceError,
    QueryParameterError, ResourceNotFoundError, ErrorContext,
)
from catalog.core.query_features import parse_query_features
from catalog.models.category import Category
from catalog.models.product import Product
from catalog.schemas.product import (
    PRODUCT_FIELDS, ProductCreate, ProductUpdate, serialize_product,
)
from catalog.services.category_lookup import (
    enrich_product, enrich_products, enrich_stats, find_category_by_name,
)
from catalog.services.query_translator import apply_query_features

logger = logging.getLogger(__name__)

DEFAULT_ORDER = (Product.created_at, Product.id)
POPULAR_FIELDS = "name,price,description,category"


class ProductHandlers:
    """Catalog request handlers bound to one request's database session."""

    def __init__(self, db: AsyncSession, settings: Settings):
        self._db = db
        self._settings = settings

    # ─── Reads ───────────────────────────────────────────────────

    async def list_products(self, params: Mapping) -> dict:
        """All products, or the filtered/sorted/projected/paginated subset."""
        stmt = select(Product)
        fields = None
        if params:
            features = parse_query_features(
                params,
                default_limit=self._settings.default_page_size,
                max_limit=self._settings.max_page_size,
            )
            stmt = apply_query_features(
                stmt, features, PRODUCT_FIELDS, DEFAULT_ORDER,
            )
            fields = features.fields
        else:
            stmt = stmt.order_by(*DEFAULT_ORDER)
        result = await self._db.execute(stmt)
        products = [
            serialize_product(p, fields) for p in result.scalars().all()
        ]
        return {
            "status": "OK", "count": len(products),
            "data": {"products": products},
        }

    async def popular_products(self, params: Mapping) -> dict:
        """list_products with a fixed limit, minimum price and field subset."""
        query = dict(params)
        query["limit"] = str(self._settings.popular_products_limit)
        query["price"] = {"gt": str(self._settings.popular_products_min_price)}
        query["fields"] = POPULAR_FIELDS
        return await self.list_products(query)

    async def products_of_category(self, category_name: str) -> dict:
        category = await find_category_by_name(self._db, category_name)
        if not category:
            raise ResourceNotFoundError(
                f"The category name '{category_name}' does not exist.", 400,
            )
        result = await self._db.execute(
            select(Product)
            .where(Product.category_id == category.id)
            .order_by(*DEFAULT_ORDER),
        )
        products = [serialize_product(p) for p in result.scalars().all()]
        products = await enrich_products(self._db, products)
        return {
            "status": "OK", "length": len(products),
            "data": {"products": products},
        }

    async def search_products(self, name: str) -> dict:
        """Case-insensitive regular-expression search on product name."""
        try:
            re.compile(name)
        except re.error as e:
            raise QueryParameterError(
                f"Invalid search pattern '{name}': {e}",
                code="INVALID_SEARCH_PATTERN",
            )
        result = await self._db.execute(
            select(Product)
            .where(Product.name.regexp_match(name, flags="i"))
            .order_by(*DEFAULT_ORDER),
        )
        products = [serialize_product(p) for p in result.scalars().all()]
        if products:
            products = await enrich_products(self._db, products)
        return {
            "status": "OK", "length": len(products),
            "data": {"products": products},
        }

    async def get_product(self, product_id: UUID) -> dict:
        product = await self._db.get(Product, product_id)
        if not product:
            raise ResourceNotFoundError(
                "The product id does not exist.", 400,
                ErrorContext(resource_id=str(product_id)),
            )
        data = await enrich_product(self._db, serialize_product(product))
        return {"status": "OK", "data": data}

    async def product_stats(self) -> dict:
        """Per-category price statistics, ascending by product count."""
        total_products = func.count(Product.id).label("totalProducts")
        result = await self._db.execute(
            select(
                Product.category_id,
                func.avg(Product.price).label("avgPrice"),
                func.min(Product.price).label("minPrice"),
                func.max(Product.price).label("maxPrice"),
                func.sum(Product.price).label("totalPrice"),
                total_products,
            )
            .where(Product.price >= 0)
            .group_by(Product.category_id)
            .order_by(total_products.asc()),
        )
        rows = [
            {
                "category": row.category_id,
                "avgPrice": row.avgPrice,
                "minPrice": row.minPrice,
                "maxPrice": row.maxPrice,
                "totalPrice": row.totalPrice,
                "totalProducts": row.totalProducts,
            }
            for row in result
        ]
        stats = await enrich_stats(self._db, rows)
        return {"status": "OK", "count": len(stats), "data": {"stats": stats}}

    # ─── Writes ──────────────────────────────────────────────────

    async def create_product(self, body: ProductCreate) -> dict:
        if await self._name_taken(body.name):
            raise DuplicateNameError(body.name)

        category = await self._db.get(Category, body.category_id)
        if not category:
            raise InvalidReferenceError(
                "The category does not exist.",
                ErrorContext(resource_id=str(body.category_id)),
            )

        product = Product(
            name=body.name, price=body.price, description=body.description,
            img_url=body.img_url, category_id=body.category_id,
        )
        self._db.add(product)
        await self._commit_or_conflict(body.name)

        logger.info(
            f"Product created: {product.name}",
            extra={"product_id": str(product.id), "category": category.name},
        )
        return {
            "status": "OK", "message": "Product created",
            "data": {"id": str(product.id)},
        }

    async def update_product(self, product_id: UUID, body: ProductUpdate) -> dict:
        product = await self._db.get(Product, product_id)
        if not product:
            raise ResourceNotFoundError(
                "The product does not exist.", 404,
                ErrorContext(resource_id=str(product_id)),
            )

        changes = body.changes()
        new_name = changes.get("name")
        if new_name is not None and await self._name_taken(
            new_name, exclude_id=product_id,
        ):
            raise DuplicateNameError(new_name)

        if changes:
            try:
                result = await self._db.execute(
                    update(Product)
                    .where(Product.id == product_id)
                    .values(**changes),
                )
            except IntegrityError:
                await self._db.rollback()
                raise DuplicateNameError(new_name)
            if result.rowcount == 0:
                await self._db.rollback()
                raise PersistenceError("The product could not be updated.", 404)
            await self._commit_or_conflict(new_name)

        name = new_name or product.name
        logger.info(
            f"Product updated: {name}", extra={"product_id": str(product_id)},
        )
        return {"status": "OK", "data": f"The product {name} was updated."}

    async def delete_product(self, product_id: UUID) -> dict:
        product = await self._db.get(Product, product_id)
        if not product:
            raise ResourceNotFoundError(
                "The product does not exist.", 404,
                ErrorContext(resource_id=str(product_id)),
            )
        name = product.name

        result = await self._db.execute(
            delete(Product).where(Product.id == product_id),
        )
        if result.rowcount == 0:
            await self._db.rollback()
            raise PersistenceError("Could not delete the product.", 400)
        await self._db.commit()

        logger.info(
            f"Product deleted: {name}", extra={"product_id": str(product_id)},
        )
        return {
            "status": "OK",
            "message": f"The product {name} was successfully deleted",
        }

    # ─── Helpers ─────────────────────────────────────────────────

    async def _name_taken(self, name: str, exclude_id: UUID | None = None) -> bool:
        stmt = select(Product.id).where(Product.name == name)
        if exclude_id is not None:
            stmt = stmt.where(Product.id != exclude_id)
        result = await self._db.execute(stmt.limit(1))
        return result.scalar_one_or_none() is not None

    async def _commit_or_conflict(self, name: str | None) -> None:
        """Commit; a unique-name race lost at the store surfaces as 409."""
        try:
            await self._db.commit()
        except IntegrityError:
            await self._db.rollback()
            raise DuplicateNameError(name)
