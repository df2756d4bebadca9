"""Dispatch Wrapper — funnels every route-handler failure to the global error handlers, typed.

Invariants:
    - CatalogError passes through unchanged
    - IntegrityError -> ConstraintViolationError (409); other SQLAlchemyError -> DatabaseError (503)
    - Any other exception propagates untouched to the catch-all handler
    - Success-path return values are never altered
    - The wrapped function keeps its signature (functools.wraps), so FastAPI still
      resolves path/query/body parameters and dependencies from it

Design Decisions:
    - Decorator over try/except in every route: one place owns failure plumbing
    - Store errors mapped here rather than in get_db: exceptions thrown back into a
      yield-dependency are too late to pick the response
"""

import functools
import logging
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from catalog.core.errors import (
    CatalogError, ConstraintViolationError, DatabaseError,
)

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


def forward_errors(
    handler: Callable[P, Awaitable[R]],
) -> Callable[P, Awaitable[R]]:
    """Run handler; re-raise any failure as something the error handlers understand."""

    @functools.wraps(handler)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return await handler(*args, **kwargs)
        except CatalogError:
            raise
        except IntegrityError as e:
            logger.warning(f"{handler.__name__}: integrity error: {e.orig}")
            raise ConstraintViolationError(
                "The request conflicts with existing data.",
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"{handler.__name__}: database error: {e}")
            raise DatabaseError("Database operation failed", "query") from e

    return wrapper
