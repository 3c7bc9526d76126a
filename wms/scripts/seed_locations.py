"""
Seed the default warehouse layout: floor zones A–G and shelf zone Z
with rows 01–05.  Safe to re-run.

Usage:
    python -m wms.scripts.seed_locations
"""

import asyncio

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from wms.core.config import settings
from wms.services.location_service import seed_default_layout


async def main() -> None:
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)

    async with session_factory() as session:
        result = await seed_default_layout(session)
        await session.commit()

    print(f"Zones created: {result['zones_created']}, rows created: {result['rows_created']}")
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
