"""Product Routes — thin HTTP surface over ProductHandlers.

Invariants:
    - Every route is wrapped by forward_errors; none contains business logic
    - ProductHandlers receives the request's AsyncSession through get_product_handlers
    - Fixed paths (popular, search, stats, category/...) are declared before /{product_id}

Design Decisions:
    - Raw query items folded with fold_bracket_params so price[gt]=5 style filters
      reach the parser intact
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.api.dispatch import forward_errors
from catalog.config import Settings, get_settings
from catalog.core.query_features import fold_bracket_params
from catalog.infrastructure.database import get_db
from catalog.schemas.product import ProductCreate, ProductUpdate
from catalog.services.product_handlers import ProductHandlers

router = APIRouter(prefix="/api/v1/products", tags=["products"])


def get_product_handlers(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> ProductHandlers:
    return ProductHandlers(db, settings)


@router.get("")
@forward_errors
async def get_products(
    request: Request,
    handlers: ProductHandlers = Depends(get_product_handlers),
):
    """List products; supports filters, sort, fields, page and limit."""
    params = fold_bracket_params(request.query_params.multi_items())
    return await handlers.list_products(params)


@router.get("/popular")
@forward_errors
async def get_popular_products(
    request: Request,
    handlers: ProductHandlers = Depends(get_product_handlers),
):
    params = fold_bracket_params(request.query_params.multi_items())
    return await handlers.popular_products(params)


@router.get("/search")
@forward_errors
async def search_products(
    name: str = Query(""),
    handlers: ProductHandlers = Depends(get_product_handlers),
):
    return await handlers.search_products(name)


@router.get("/stats")
@forward_errors
async def get_stats(
    handlers: ProductHandlers = Depends(get_product_handlers),
):
    """Price statistics grouped by category."""
    return await handlers.product_stats()


@router.get("/category/{category_name}")
@forward_errors
async def get_products_of_category(
    category_name: str,
    handlers: ProductHandlers = Depends(get_product_handlers),
):
    return await handlers.products_of_category(category_name)


@router.get("/{product_id}")
@forward_errors
async def get_one_product(
    product_id: UUID,
    handlers: ProductHandlers = Depends(get_product_handlers),
):
    return await handlers.get_product(product_id)


@router.post("", status_code=status.HTTP_201_CREATED)
@forward_errors
async def post_product(
    body: ProductCreate,
    handlers: ProductHandlers = Depends(get_product_handlers),
):
    return await handlers.create_product(body)


@router.put("/{product_id}")
@forward_errors
async def update_product(
    product_id: UUID,
    body: ProductUpdate,
    handlers: ProductHandlers = Depends(get_product_handlers),
):
    return await handlers.update_product(product_id, body)


@router.delete("/{product_id}")
@forward_errors
async def delete_product(
    product_id: UUID,
    handlers: ProductHandlers = Depends(get_product_handlers),
):
    return await handlers.delete_product(product_id)
