"""
MongoDB client factory.
"""

import logging

from pymongo import AsyncMongoClient

logger = logging.getLogger(__name__)


async def create_mongo_client(uri: str) -> AsyncMongoClient:
    """
    Create an async MongoDB client and make sure the server is reachable.

    pymongo connects lazily, so a `ping` forces server selection here rather
    than inside the first timed operation.
    """
    client: AsyncMongoClient = AsyncMongoClient(uri)
    try:
        await client.admin.command("ping")
    except Exception:
        await client.close()
        raise
    logger.info("MongoDB connection established")
    return client
