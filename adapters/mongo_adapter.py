"""MongoDB adapter: async client lifecycle for the document store.
"""

from typing import Optional
import logging
from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

logger = logging.getLogger("recipemanager.mongo")

_client: Optional[AsyncMongoClient] = None
_db: Optional[AsyncDatabase] = None


# ------------------ Connection ------------------
async def connect(uri: str, db_name: str) -> AsyncDatabase:
    """Open the client and verify the server answers a ping.

    Raises whatever pymongo raises when the server is unreachable; the caller
    decides whether to retry.
    """
    global _client, _db
    client = AsyncMongoClient(uri, tz_aware=True)
    try:
        await client.admin.command("ping")
    except Exception:
        await client.close()
        raise
    _client = client
    _db = client[db_name]
    logger.info("Connected to MongoDB %s (database: %s)", uri, db_name)
    return _db


async def close() -> None:
    """Close MongoDB connection."""
    global _client, _db
    try:
        if _client is not None:
            await _client.close()
            logger.info("MongoDB client closed")
    except Exception:
        logger.exception("Error closing MongoDB client")
    finally:
        _client = None
        _db = None


def get_db() -> AsyncDatabase:
    """Return the connected database.

    Raises:
        RuntimeError: if connect() has not succeeded
    """
    if _db is None:
        raise RuntimeError("MongoDB is not connected")
    return _db


async def ping() -> bool:
    """True when the server answers, False otherwise."""
    if _client is None:
        return False
    try:
        await _client.admin.command("ping")
        return True
    except Exception as exc:
        logger.warning("MongoDB ping failed: %s", exc)
        return False
