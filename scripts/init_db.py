# scripts/init_db.py
import asyncio

from logistics_pro.core.config import get_settings
from logistics_pro.db import Database
# Registers every model on Base.metadata
import logistics_pro.models  # noqa: F401


async def create_tables():
    database = Database(get_settings().database_url)
    try:
        await database.create_tables()
    finally:
        await database.dispose()
    print("✅ All missing tables created.")

if __name__ == "__main__":
    asyncio.run(create_tables())
