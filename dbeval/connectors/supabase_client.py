"""
Supabase client factory.

Supabase is reached through its PostgREST API, so every benchmark operation
against it is an HTTP request. The REST surface cannot run DDL; schema setup
goes through SUPABASE_DB_URL and the Postgres pool instead.
"""

import logging

from supabase import AsyncClient, acreate_client

logger = logging.getLogger(__name__)


async def create_supabase_client(url: str, key: str) -> AsyncClient:
    """Create an async Supabase client. No request is sent until first use."""
    logger.debug("Creating Supabase client for %s", url)
    return await acreate_client(url, key)


async def close_supabase_client(client: AsyncClient) -> None:
    """Close the PostgREST HTTP session held by `client`."""
    await client.postgrest.aclose()
