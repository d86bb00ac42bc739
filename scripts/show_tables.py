import asyncio

from sqlalchemy import inspect

from medreminder.core.config import settings
from medreminder.db.database import build_engine


async def show_tables():
    engine = build_engine(settings.database_url)
    async with engine.connect() as conn:
        tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        print("Tables:", tables)
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(show_tables())
