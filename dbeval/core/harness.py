"""
Benchmark harness.

Owns one OperationTimer and one WorkloadRunner for a run, and exposes the
aggregated report. `run_benchmark` is the top-level flow used by the CLI:
connect -> (setup) -> write -> read -> cold start -> close.
"""

import logging
from typing import List, Optional

from dbeval.config import Settings
from dbeval.connectors.mongo_client import create_mongo_client
from dbeval.connectors.postgres_pool import PostgresConnectionPool
from dbeval.connectors.supabase_client import close_supabase_client, create_supabase_client
from dbeval.core.aggregator import aggregate_results, format_report
from dbeval.core.operation_timer import OperationTimer
from dbeval.core.workloads import BackendClients, WorkloadRunner
from dbeval.models import AggregatedMetric, BenchmarkResult
from dbeval.setup_schema import setup_backends

logger = logging.getLogger(__name__)

REQUIRED_SETTINGS = ("NEON_DATABASE_URL", "SUPABASE_URL", "SUPABASE_KEY", "MONGODB_URI")


class DatabaseBenchmark:
    """One benchmark run over already-connected backends."""

    def __init__(
        self,
        clients: BackendClients,
        settings: Settings,
        runner: Optional[WorkloadRunner] = None,
    ):
        self.clients = clients
        self.settings = settings
        self.timer = runner.timer if runner is not None else OperationTimer()
        self.runner = runner or WorkloadRunner(self.timer, clients, settings)

    @property
    def results(self) -> List[BenchmarkResult]:
        return self.timer.results

    async def run_all(self) -> None:
        """Write once, then read and cold start BENCHMARK_ITERATIONS times each."""
        iterations = self.settings.BENCHMARK_ITERATIONS

        logger.info("Running write tests...")
        await self.runner.run_write_test()

        logger.info("Running read tests (%d iteration(s))...", iterations)
        for _ in range(iterations):
            await self.runner.run_read_test()

        logger.info("Running cold start tests (%d iteration(s))...", iterations)
        for _ in range(iterations):
            await self.runner.run_cold_start_test()

        failed = sum(1 for r in self.timer.results if not r.success)
        logger.info("Benchmark finished: %d operations, %d failed", len(self.timer), failed)

    def aggregate(self) -> List[AggregatedMetric]:
        return aggregate_results(self.timer.results)

    def report(self) -> str:
        return format_report(self.aggregate())


async def run_benchmark(settings: Settings, *, setup: bool = False) -> DatabaseBenchmark:
    """
    Connect to every backend and run the full benchmark.

    Connection failures are not measured operations and propagate to the
    caller. Clients are closed whatever happens.

    Raises:
        ConfigurationError: if a backend setting is missing
    """
    settings.require(*REQUIRED_SETTINGS)

    neon_pool = PostgresConnectionPool(
        dsn=settings.NEON_DATABASE_URL,
        min_size=settings.POSTGRES_POOL_MIN_SIZE,
        max_size=settings.POSTGRES_POOL_MAX_SIZE,
        pool_name="neon",
    )
    supabase = None
    mongo_client = None
    try:
        await neon_pool.initialize()
        supabase = await create_supabase_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
        mongo_client = await create_mongo_client(settings.MONGODB_URI)

        if setup:
            await setup_backends(settings, neon_pool, mongo_client)

        benchmark = DatabaseBenchmark(
            BackendClients(neon=neon_pool, supabase=supabase, mongo=mongo_client),
            settings,
        )
        await benchmark.run_all()
        return benchmark
    finally:
        if supabase is not None:
            await close_supabase_client(supabase)
        if mongo_client is not None:
            await mongo_client.close()
        await neon_pool.close()
