"""
Workload runners.

Each runner issues one timed operation per backend, one backend at a time in
declaration order (Neon, Supabase, MongoDB). Queries are written in each
backend's own dialect but select the same rows in the same order, so the
timings are comparable.
"""

import logging
import random
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Awaitable, Callable, Optional

from dbeval.config import Settings
from dbeval.connectors.mongo_client import create_mongo_client
from dbeval.connectors.postgres_pool import PostgresConnectionPool, open_connection
from dbeval.connectors.supabase_client import close_supabase_client, create_supabase_client
from dbeval.core.operation_timer import OperationTimer

logger = logging.getLogger(__name__)

NEON = "Neon"
SUPABASE = "Supabase"
MONGODB = "MongoDB"
BACKENDS = (NEON, SUPABASE, MONGODB)

SIMPLE_QUERY = "Simple Query"
COMPLEX_QUERY = "Complex Query"
COLD_START = "Cold Start"

SIMPLE_QUERY_USER_ID = 1
SIMPLE_QUERY_LIMIT = 10
COMPLEX_QUERY_LIMIT = 20

INSERT_POST_SQL = (
    "INSERT INTO posts (id, title, content, user_id, created_at, updated_at) "
    "VALUES ($1, $2, $3, $4, $5, $6)"
)

SIMPLE_QUERY_SQL = "SELECT * FROM posts WHERE user_id = $1 ORDER BY id LIMIT $2"

# DISTINCT keeps the two LEFT JOINs from multiplying each other's counts.
COMPLEX_QUERY_SQL = """
    SELECT p.*, u.username AS author_name,
           COUNT(DISTINCT c.id) AS comment_count,
           COUNT(DISTINCT l.id) AS like_count
    FROM posts p
    JOIN users u ON p.user_id = u.id
    LEFT JOIN comments c ON p.id = c.post_id
    LEFT JOIN post_likes l ON p.id = l.post_id
    WHERE p.created_at > $1
    GROUP BY p.id, u.username
    ORDER BY p.created_at DESC
    LIMIT $2
"""

SUPABASE_COMPLEX_SELECT = "*, users!inner(username), comments(count), post_likes(count)"


def utcnow() -> datetime:
    """Naive UTC timestamp, matching `timestamp without time zone` columns."""
    return datetime.now(UTC).replace(tzinfo=None)


def write_operation_label(count: int) -> str:
    """`Write 10k rows` for round thousands, `Write 250 rows` otherwise."""
    if count >= 1000 and count % 1000 == 0:
        return f"Write {count // 1000}k rows"
    return f"Write {count} rows"


def generate_posts(
    count: int,
    user_count: int,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> list[dict[str, Any]]:
    """
    Build the post rows written to every backend.

    Ids run from 1 to `count`; `user_id` is drawn from the seeded users
    (1..user_count).
    """
    now = now or utcnow()
    rng = rng or random.Random()
    return [
        {
            "id": i,
            "title": f"Test Post {i}",
            "content": f"Content for post {i}",
            "user_id": rng.randint(1, user_count),
            "created_at": now,
            "updated_at": now,
        }
        for i in range(1, count + 1)
    ]


def to_json_row(row: dict[str, Any]) -> dict[str, Any]:
    """Copy of `row` with datetimes as ISO strings, for the REST API."""
    return {k: v.isoformat() if isinstance(v, datetime) else v for k, v in row.items()}


def complex_query_pipeline(cutoff: datetime, limit: int) -> list[dict[str, Any]]:
    """Aggregation pipeline equivalent to COMPLEX_QUERY_SQL."""
    return [
        {"$match": {"created_at": {"$gt": cutoff}}},
        {
            "$lookup": {
                "from": "users",
                "localField": "user_id",
                "foreignField": "id",
                "as": "author",
            }
        },
        # Inner join on users, as in the SQL variants
        {"$match": {"author": {"$ne": []}}},
        {
            "$lookup": {
                "from": "comments",
                "localField": "id",
                "foreignField": "post_id",
                "as": "comments",
            }
        },
        {
            "$lookup": {
                "from": "post_likes",
                "localField": "id",
                "foreignField": "post_id",
                "as": "likes",
            }
        },
        {
            "$project": {
                "_id": 1,
                "id": 1,
                "title": 1,
                "content": 1,
                "user_id": 1,
                "created_at": 1,
                "updated_at": 1,
                "author_name": {"$arrayElemAt": ["$author.username", 0]},
                "comment_count": {"$size": "$comments"},
                "like_count": {"$size": "$likes"},
            }
        },
        {"$sort": {"created_at": -1}},
        {"$limit": limit},
    ]


@dataclass
class BackendClients:
    """Already-connected handles to the three backends."""

    neon: PostgresConnectionPool
    supabase: Any
    mongo: Any


class WorkloadRunner:
    """
    Runs the write, read and cold start workloads through an OperationTimer.

    The `connect_*` hooks open the fresh clients used by the cold start
    workload; they default to the real connectors.
    """

    def __init__(
        self,
        timer: OperationTimer,
        clients: BackendClients,
        settings: Settings,
        *,
        connect_neon: Callable[[str], Awaitable[Any]] = open_connection,
        connect_supabase: Callable[[str, str], Awaitable[Any]] = create_supabase_client,
        connect_mongo: Callable[[str], Awaitable[Any]] = create_mongo_client,
        rng: Optional[random.Random] = None,
    ):
        self.timer = timer
        self.clients = clients
        self.settings = settings
        self._connect_neon = connect_neon
        self._connect_supabase = connect_supabase
        self._connect_mongo = connect_mongo
        self._rng = rng

    def _posts_collection(self, client: Any = None):
        client = client if client is not None else self.clients.mongo
        return client[self.settings.MONGODB_DATABASE]["posts"]

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def run_write_test(self) -> None:
        rows = generate_posts(
            self.settings.BENCHMARK_WRITE_ROWS,
            self.settings.BENCHMARK_USER_COUNT,
            rng=self._rng,
        )
        operation = write_operation_label(len(rows))
        logger.info("Write workload: %d rows per backend", len(rows))

        async def neon_write():
            # One awaited INSERT per row, like an application issuing single writes
            pool = self.clients.neon
            for row in rows:
                await pool.execute_query(
                    INSERT_POST_SQL,
                    row["id"],
                    row["title"],
                    row["content"],
                    row["user_id"],
                    row["created_at"],
                    row["updated_at"],
                )

        async def supabase_write():
            payload = [to_json_row(row) for row in rows]
            await self.clients.supabase.table("posts").insert(payload).execute()

        async def mongo_write():
            # insert_many adds `_id` to each document in place
            docs = [dict(row) for row in rows]
            await self._posts_collection().insert_many(docs)

        await self.timer.measure(NEON, operation, neon_write)
        await self.timer.measure(SUPABASE, operation, supabase_write)
        await self.timer.measure(MONGODB, operation, mongo_write)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def run_read_test(self) -> None:
        user_id = SIMPLE_QUERY_USER_ID

        async def neon_simple():
            await self.clients.neon.fetch_all(SIMPLE_QUERY_SQL, user_id, SIMPLE_QUERY_LIMIT)

        async def supabase_simple():
            await (
                self.clients.supabase.table("posts")
                .select("*")
                .eq("user_id", user_id)
                .order("id")
                .limit(SIMPLE_QUERY_LIMIT)
                .execute()
            )

        async def mongo_simple():
            cursor = (
                self._posts_collection()
                .find({"user_id": user_id})
                .sort("id", 1)
                .limit(SIMPLE_QUERY_LIMIT)
            )
            await cursor.to_list()

        await self.timer.measure(NEON, SIMPLE_QUERY, neon_simple)
        await self.timer.measure(SUPABASE, SIMPLE_QUERY, supabase_simple)
        await self.timer.measure(MONGODB, SIMPLE_QUERY, mongo_simple)

        # One cutoff for all three backends
        cutoff = utcnow() - timedelta(days=self.settings.BENCHMARK_RECENT_DAYS)

        async def neon_complex():
            await self.clients.neon.fetch_all(COMPLEX_QUERY_SQL, cutoff, COMPLEX_QUERY_LIMIT)

        async def supabase_complex():
            await (
                self.clients.supabase.table("posts")
                .select(SUPABASE_COMPLEX_SELECT)
                .gt("created_at", cutoff.isoformat())
                .order("created_at", desc=True)
                .limit(COMPLEX_QUERY_LIMIT)
                .execute()
            )

        async def mongo_complex():
            cursor = await self._posts_collection().aggregate(
                complex_query_pipeline(cutoff, COMPLEX_QUERY_LIMIT)
            )
            await cursor.to_list()

        await self.timer.measure(NEON, COMPLEX_QUERY, neon_complex)
        await self.timer.measure(SUPABASE, COMPLEX_QUERY, supabase_complex)
        await self.timer.measure(MONGODB, COMPLEX_QUERY, mongo_complex)

    # ------------------------------------------------------------------
    # Cold start
    # ------------------------------------------------------------------

    async def run_cold_start_test(self) -> None:
        settings = self.settings

        async def neon_cold():
            conn = await self._connect_neon(settings.NEON_DATABASE_URL)
            try:
                await conn.fetchval("SELECT 1")
            finally:
                await conn.close()

        async def supabase_cold():
            client = await self._connect_supabase(settings.SUPABASE_URL, settings.SUPABASE_KEY)
            try:
                await client.table("posts").select("id").limit(1).execute()
            finally:
                await close_supabase_client(client)

        async def mongo_cold():
            client = await self._connect_mongo(settings.MONGODB_URI)
            try:
                await self._posts_collection(client).find_one({})
            finally:
                await client.close()

        await self.timer.measure(NEON, COLD_START, neon_cold)
        await self.timer.measure(SUPABASE, COLD_START, supabase_cold)
        await self.timer.measure(MONGODB, COLD_START, mongo_cold)
