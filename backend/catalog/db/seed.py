"""Category Seeding — inserts the category set the catalog API reads from.

Categories are read-only through the HTTP API, so they are provisioned here.
Re-running is safe: names that already exist (case-insensitively) are skipped.

Usage:
    python -m catalog.db.seed Tools Garden "Home Office"
"""

import argparse
import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catalog.config import get_settings
from catalog.db.session import create_session_factory
from catalog.infrastructure.observability import setup_logging
from catalog.models.category import Category

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = ("Electronics", "Home", "Tools", "Toys")


async def seed_categories(
    session_factory: async_sessionmaker[AsyncSession], names,
) -> list[str]:
    """Insert missing categories; return the names actually inserted."""
    inserted = []
    async with session_factory() as db:
        result = await db.execute(select(Category.name))
        existing = {n.casefold() for n in result.scalars().all()}
        for name in names:
            name = name.strip()
            if not name or name.casefold() in existing:
                continue
            db.add(Category(name=name))
            existing.add(name.casefold())
            inserted.append(name)
        await db.commit()
    logger.info(f"Seeded {len(inserted)} categories", extra={"count": len(inserted)})
    return inserted


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Seed product categories.")
    parser.add_argument("names", nargs="*", default=list(DEFAULT_CATEGORIES))
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    factory = create_session_factory(settings.database_url)
    asyncio.run(seed_categories(factory, args.names))


if __name__ == "__main__":
    main()
