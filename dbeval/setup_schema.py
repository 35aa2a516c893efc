"""
Database Schema Setup Script

Applies the generated SQL (SCHEMA_OUTPUT_PATH, default samples/blog-schema.sql)
to the benchmark backends and seeds the users the workloads reference:
- Neon: executes the DDL plus the items API table, seeds users
- Supabase: same, through SUPABASE_DB_URL when set (the REST API cannot run DDL)
- MongoDB: creates the equivalent indexes, seeds user documents

Rerunnable: "already exists" errors are skipped and seeding is idempotent.

Usage:
    python -m dbeval.setup_schema
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from pymongo import ASCENDING, DESCENDING, UpdateOne

from dbeval.config import Settings, configure_logging, get_settings
from dbeval.connectors.mongo_client import create_mongo_client
from dbeval.connectors.postgres_pool import PostgresConnectionPool
from dbeval.core.helpers import preview_query_for_log

logger = logging.getLogger(__name__)

SEED_USERS_SQL = """
    INSERT INTO users (id, username, email)
    SELECT g, 'user_' || g, 'user_' || g || '@example.com'
    FROM generate_series(1, $1::int) AS g
    ON CONFLICT DO NOTHING
"""

ITEMS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS items (
  id SERIAL PRIMARY KEY,
  name VARCHAR(255) NOT NULL,
  description TEXT,
  created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_items_created_at ON items(created_at);
"""

# Explicit ids bypass the serial sequence; move it past them.
RESET_USERS_SEQUENCE_SQL = """
    SELECT setval(
        pg_get_serial_sequence('users', 'id'),
        GREATEST((SELECT COALESCE(MAX(id), 0) FROM users), 1)
    )
"""


def read_schema_sql(path: str | Path) -> str:
    schema_file = Path(path)
    if not schema_file.exists():
        raise FileNotFoundError(f"Schema file not found: {schema_file}")
    return schema_file.read_text(encoding="utf-8")


def split_sql_statements(sql_content: str) -> List[str]:
    """
    Split SQL text into statements.

    A statement ends at a line ending with `;` or at a blank line; `--`
    comment lines are dropped. Blank-line boundaries keep older files whose
    index statements lack a terminator splittable.
    """
    statements: List[str] = []
    current: List[str] = []

    def flush():
        if current:
            statements.append("\n".join(current).strip())
            current.clear()

    for line in sql_content.split("\n"):
        stripped = line.strip()

        if not stripped:
            flush()
            continue
        if stripped.startswith("--"):
            continue

        current.append(line)

        if stripped.endswith(";"):
            flush()

    flush()
    return statements


def _already_exists(exc: Exception) -> bool:
    return "already exists" in str(exc).lower()


async def apply_schema(pool: PostgresConnectionPool, sql_content: str) -> int:
    """
    Execute statements one at a time.

    Returns:
        Number of statements that were executed (skipped ones excluded)
    """
    statements = split_sql_statements(sql_content)
    total = len(statements)
    logger.info("[%s] Found %d SQL statements to execute", pool.pool_name, total)

    executed = 0
    for idx, statement in enumerate(statements, 1):
        preview = preview_query_for_log(statement, max_chars=80)
        try:
            await pool.execute_query(statement)
            executed += 1
            logger.info("[%s] [%d/%d] OK: %s", pool.pool_name, idx, total, preview)
        except Exception as e:
            if not _already_exists(e):
                logger.error("[%s] [%d/%d] Failed: %s: %s", pool.pool_name, idx, total, preview, e)
                raise
            logger.info("[%s] [%d/%d] Skipped (exists): %s", pool.pool_name, idx, total, preview)
    return executed


async def seed_users(pool: PostgresConnectionPool, count: int) -> None:
    """Insert users 1..count unless present. Needs users(id, username, email)."""
    await pool.execute_query(SEED_USERS_SQL, count)
    await pool.fetch_val(RESET_USERS_SEQUENCE_SQL)
    logger.info("[%s] Seeded %d users", pool.pool_name, count)


async def setup_mongo(client: Any, database: str, user_count: int) -> None:
    """Indexes mirroring the SQL schema, plus seeded user documents."""
    db = client[database]
    await db["users"].create_index([("id", ASCENDING)], unique=True)
    await db["users"].create_index([("username", ASCENDING)])
    await db["posts"].create_index([("id", ASCENDING)], unique=True)
    await db["posts"].create_index([("user_id", ASCENDING)])
    await db["posts"].create_index([("created_at", DESCENDING)])
    await db["comments"].create_index([("post_id", ASCENDING)])
    await db["post_likes"].create_index([("post_id", ASCENDING)])

    ops = [
        UpdateOne(
            {"id": i},
            {"$setOnInsert": {"id": i, "username": f"user_{i}", "email": f"user_{i}@example.com"}},
            upsert=True,
        )
        for i in range(1, user_count + 1)
    ]
    await db["users"].bulk_write(ops, ordered=False)
    logger.info("[mongodb] Indexes created, seeded %d users", user_count)


async def setup_backends(
    settings: Settings,
    neon_pool: PostgresConnectionPool,
    mongo_client: Any,
    sql_content: Optional[str] = None,
) -> None:
    """Apply schema and seed data on every configured backend."""
    if sql_content is None:
        sql_content = read_schema_sql(settings.SCHEMA_OUTPUT_PATH)

    await apply_schema(neon_pool, sql_content)
    await apply_schema(neon_pool, ITEMS_TABLE_SQL)
    await seed_users(neon_pool, settings.BENCHMARK_USER_COUNT)

    if settings.SUPABASE_DB_URL:
        supabase_pool = PostgresConnectionPool(
            dsn=settings.SUPABASE_DB_URL, min_size=1, max_size=1, pool_name="supabase"
        )
        try:
            await apply_schema(supabase_pool, sql_content)
            await seed_users(supabase_pool, settings.BENCHMARK_USER_COUNT)
        finally:
            await supabase_pool.close()
    else:
        logger.warning("SUPABASE_DB_URL not set; skipping Supabase schema setup")

    await setup_mongo(mongo_client, settings.MONGODB_DATABASE, settings.BENCHMARK_USER_COUNT)


async def _main(settings: Settings) -> None:
    settings.require("NEON_DATABASE_URL", "MONGODB_URI")
    sql_content = read_schema_sql(settings.SCHEMA_OUTPUT_PATH)
    logger.info("Loaded %d characters from %s", len(sql_content), settings.SCHEMA_OUTPUT_PATH)

    neon_pool = PostgresConnectionPool(dsn=settings.NEON_DATABASE_URL, pool_name="neon")
    mongo_client = await create_mongo_client(settings.MONGODB_URI)
    try:
        await setup_backends(settings, neon_pool, mongo_client, sql_content)
    finally:
        await neon_pool.close()
        await mongo_client.close()


def main() -> int:
    settings = get_settings()
    configure_logging(settings)
    try:
        asyncio.run(_main(settings))
    except Exception:
        logger.exception("Schema setup failed")
        return 1
    logger.info("Schema setup complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
