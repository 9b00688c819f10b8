"""
Create the meal-plan tables.

Usage
-----

    python -m scripts.init_db
"""
from __future__ import annotations

import asyncio

from dotenv import load_dotenv
load_dotenv()

from services.db import Base, engine


async def _create() -> None:
    eng = await engine()
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await eng.dispose()
    print(f"✓ created {', '.join(sorted(Base.metadata.tables))}")


def main() -> None:
    asyncio.run(_create())


if __name__ == "__main__":
    main()
