"""Initialize database tables."""

import asyncio
import sys

from backend.app.db.base import engine, Base
# Import all models to register them
from backend.app.models import AuthSession, Document  # noqa: F401


async def init_db(drop: bool = False):
    """Create all database tables."""
    async with engine.begin() as conn:
        if drop:
            # Drop all tables (for development)
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    print("Database tables created successfully!")


if __name__ == "__main__":
    asyncio.run(init_db(drop="--drop" in sys.argv))
