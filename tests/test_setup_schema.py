"""Tests for schema application and seeding."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from conftest import FakeMongo
from pymongo import UpdateOne

from dbeval import setup_schema
from dbeval.core.schema_generator import fallback_schema, render_sql
from dbeval.setup_schema import (
    ITEMS_TABLE_SQL,
    SEED_USERS_SQL,
    apply_schema,
    read_schema_sql,
    seed_users,
    setup_backends,
    setup_mongo,
    split_sql_statements,
)

SAMPLE_SQL = Path(__file__).resolve().parents[1] / "samples" / "blog-schema.sql"


class TestSplitSqlStatements:
    def test_sample_schema_splits_into_tables_and_indexes(self) -> None:
        statements = split_sql_statements(read_schema_sql(SAMPLE_SQL))

        assert len(statements) == 20
        assert sum(s.startswith("CREATE TABLE") for s in statements) == 9
        assert all(s.endswith(";") for s in statements)

    def test_rendered_fallback_round_trips_through_splitter(self) -> None:
        statements = split_sql_statements(render_sql(fallback_schema()))

        assert len(statements) == 4
        assert statements[0].startswith("CREATE TABLE users (")
        assert statements[0].endswith(");")

    def test_unterminated_statements_split_on_blank_lines(self) -> None:
        sql = (
            "CREATE TABLE a (\n  id INT\n);\n\n"
            "CREATE INDEX idx_a ON a(id)\n\n"
            "CREATE INDEX idx_b ON a(id)\n"
        )

        assert split_sql_statements(sql) == [
            "CREATE TABLE a (\n  id INT\n);",
            "CREATE INDEX idx_a ON a(id)",
            "CREATE INDEX idx_b ON a(id)",
        ]

    def test_comment_lines_are_dropped(self) -> None:
        sql = "-- users\nCREATE TABLE u (id INT);\n  -- trailing note\n"

        assert split_sql_statements(sql) == ["CREATE TABLE u (id INT);"]

    def test_items_table_sql_is_two_statements(self) -> None:
        statements = split_sql_statements(ITEMS_TABLE_SQL)

        assert len(statements) == 2
        assert "CREATE TABLE IF NOT EXISTS items" in statements[0]

    def test_missing_schema_file(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError, match="Schema file not found"):
            read_schema_sql(tmp_path / "nope.sql")


@pytest.mark.asyncio
class TestApplySchema:
    async def test_executes_every_statement_in_order(self, neon_pool) -> None:
        executed = await apply_schema(neon_pool, "CREATE TABLE a (id INT);\n\nCREATE TABLE b (id INT);")

        assert executed == 2
        assert [c.args[0] for c in neon_pool.execute_query.await_args_list] == [
            "CREATE TABLE a (id INT);",
            "CREATE TABLE b (id INT);",
        ]

    async def test_already_exists_is_skipped(self, neon_pool) -> None:
        neon_pool.execute_query.side_effect = [
            Exception('relation "a" already exists'),
            None,
        ]

        executed = await apply_schema(neon_pool, "CREATE TABLE a (id INT);\nCREATE TABLE b (id INT);")

        assert executed == 1
        assert neon_pool.execute_query.await_count == 2

    async def test_other_errors_stop_the_run(self, neon_pool) -> None:
        neon_pool.execute_query.side_effect = [
            Exception('syntax error at or near "TABEL"'),
            None,
        ]

        with pytest.raises(Exception, match="syntax error"):
            await apply_schema(neon_pool, "CREATE TABEL a (id INT);\nCREATE TABLE b (id INT);")

        assert neon_pool.execute_query.await_count == 1

    async def test_seed_users_inserts_range_and_resets_sequence(self, neon_pool) -> None:
        await seed_users(neon_pool, 100)

        neon_pool.execute_query.assert_awaited_once_with(SEED_USERS_SQL, 100)
        neon_pool.fetch_val.assert_awaited_once()


@pytest.mark.asyncio
class TestSetupBackends:
    async def test_mongo_indexes_and_user_upserts(self) -> None:
        mongo = FakeMongo()

        await setup_mongo(mongo, "bench", 3)

        users = mongo["bench"]["users"]
        (bulk,) = [c for c in users.calls if c[0] == "bulk_write"]
        ops = bulk[1][0]
        assert bulk[2] == {"ordered": False}
        assert ops == [
            UpdateOne(
                {"id": i},
                {"$setOnInsert": {"id": i, "username": f"user_{i}", "email": f"user_{i}@example.com"}},
                upsert=True,
            )
            for i in (1, 2, 3)
        ]
        assert ("create_index", ([("id", 1)],), {"unique": True}) in users.calls
        assert ("create_index", ([("id", 1)],), {"unique": True}) in mongo["bench"]["posts"].calls

    async def test_neon_and_mongo_without_supabase_db_url(
        self, settings, neon_pool, caplog
    ) -> None:
        mongo = FakeMongo()

        await setup_backends(settings, neon_pool, mongo, "CREATE TABLE a (id INT);")

        sql = [c.args[0] for c in neon_pool.execute_query.await_args_list]
        assert sql[0] == "CREATE TABLE a (id INT);"
        assert any("CREATE TABLE IF NOT EXISTS items" in s for s in sql)
        assert sql[-1] == SEED_USERS_SQL
        assert "SUPABASE_DB_URL not set" in caplog.text
        assert mongo["bench"]["users"].calls

    async def test_supabase_db_url_gets_its_own_pool(
        self, settings, neon_pool, monkeypatch
    ) -> None:
        supabase_pool = AsyncMock()
        supabase_pool.pool_name = "supabase"
        created = {}

        def make_pool(**kwargs):
            created.update(kwargs)
            return supabase_pool

        monkeypatch.setattr(setup_schema, "PostgresConnectionPool", make_pool)
        settings = settings.model_copy(
            update={"SUPABASE_DB_URL": "postgresql://postgres:pw@db.example.supabase.co:5432/postgres"}
        )

        await setup_backends(settings, neon_pool, FakeMongo(), "CREATE TABLE a (id INT);")

        assert created["dsn"] == settings.SUPABASE_DB_URL
        assert supabase_pool.execute_query.await_args_list[0].args == ("CREATE TABLE a (id INT);",)
        supabase_pool.execute_query.assert_any_await(SEED_USERS_SQL, settings.BENCHMARK_USER_COUNT)
        supabase_pool.close.assert_awaited_once()
