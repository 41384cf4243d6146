import logging
from typing import Dict, Optional

from pymongo import AsyncMongoClient

from app.core.config import settings
from app.db.memory import InMemoryTable
from app.db.tables import MongoTable, Table

logger = logging.getLogger(__name__)


class Database:
    def __init__(self):
        self.client: Optional[AsyncMongoClient] = None
        self.tables: Dict[str, Table] = {}


db = Database()


def table_names():
    return [
        settings.SECTIONS_TABLE,
        settings.RESUMES_TABLE,
        settings.TEMPLATES_TABLE,
        settings.PROFILES_TABLE,
    ]


def get_client() -> AsyncMongoClient:
    if db.client is None:
        if not settings.MONGODB_URI:
            raise RuntimeError("MONGODB_URI environment variable not set")
        db.client = AsyncMongoClient(settings.MONGODB_URI, tz_aware=True)
    return db.client


def get_table(name: str) -> Table:
    """Process-wide handle for ``name``, created on first use."""
    table = db.tables.get(name)
    if table is None:
        if settings.STORAGE_BACKEND == "memory":
            table = InMemoryTable(name)
        else:
            client = get_client()
            table = MongoTable(client[settings.MONGODB_DATABASE][name], client)
        db.tables[name] = table
    return table


async def connect_storage() -> bool:
    try:
        if settings.STORAGE_BACKEND == "mongo":
            await get_client().admin.command("ping")
        for name in table_names():
            await get_table(name).ensure_indexes()
    except Exception as e:
        logger.exception("Failed to connect to storage: %s", e)
        return False

    logger.info("Storage ready (backend=%s)", settings.STORAGE_BACKEND)
    return True


async def close_storage():
    if db.client is not None:
        await db.client.close()
        db.client = None
    db.tables.clear()
