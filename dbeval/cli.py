"""Command-line entry points: `dbeval-benchmark` and `dbeval-schema`."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from dbeval.config import Settings, configure_logging, get_settings
from dbeval.connectors.llm_client import CompletionClient
from dbeval.core.aggregator import results_to_json
from dbeval.core.harness import run_benchmark
from dbeval.core.schema_generator import (
    DEFAULT_DESCRIPTION,
    SchemaGenerator,
    write_sql,
)

logger = logging.getLogger(__name__)


def _apply_overrides(settings: Settings, overrides: dict[str, Any]) -> Settings:
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if not overrides:
        return settings
    return settings.model_copy(update=overrides)


# ----------------------------------------------------------------------
# Benchmark
# ----------------------------------------------------------------------


def _build_benchmark_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run write, read and cold start workloads against Neon, Supabase and MongoDB."
    )
    parser.add_argument(
        "--setup",
        action="store_true",
        help="Apply SCHEMA_OUTPUT_PATH and seed users before benchmarking.",
    )
    parser.add_argument(
        "--iterations",
        type=int,
        default=None,
        help="Override BENCHMARK_ITERATIONS (read and cold start repeats).",
    )
    parser.add_argument(
        "--rows",
        type=int,
        default=None,
        help="Override BENCHMARK_WRITE_ROWS.",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Also write raw results as JSON to this path.",
    )
    return parser


async def _run_benchmark(args: argparse.Namespace, settings: Settings) -> int:
    benchmark = await run_benchmark(settings, setup=args.setup)

    print()
    print(benchmark.report())

    if args.output:
        out = Path(args.output)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(results_to_json(benchmark.results), encoding="utf-8")
        print(f"\nRaw results saved to {out}")
    return 0


def benchmark_main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_benchmark_parser().parse_args(argv)
    settings = _apply_overrides(
        get_settings(),
        {"BENCHMARK_ITERATIONS": args.iterations, "BENCHMARK_WRITE_ROWS": args.rows},
    )
    configure_logging(settings)
    try:
        return asyncio.run(_run_benchmark(args, settings))
    except Exception:
        logger.exception("Benchmark failed")
        return 1


# ----------------------------------------------------------------------
# Schema generation
# ----------------------------------------------------------------------


def _build_schema_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a Postgres schema from an application description."
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--description", default=None, help="Application description text.")
    source.add_argument(
        "--description-file", default=None, help="Read the description from this file."
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Override SCHEMA_OUTPUT_PATH (where the SQL is written).",
    )
    parser.add_argument(
        "--print-json",
        action="store_true",
        help="Print the parsed schema as JSON before the SQL.",
    )
    return parser


def _read_description(args: argparse.Namespace) -> str:
    if args.description_file:
        return Path(args.description_file).read_text(encoding="utf-8")
    if args.description:
        return args.description
    return DEFAULT_DESCRIPTION


async def _run_schema(args: argparse.Namespace, settings: Settings) -> int:
    description = _read_description(args)
    generator = SchemaGenerator(CompletionClient.from_settings(settings), settings)

    print(f"Generating schema for:\n{description}")
    tables, sql = await generator.generate_sql(description)

    if args.print_json:
        print("\nGenerated Schema:")
        print(json.dumps([t.model_dump() for t in tables], indent=2))

    print("\nGenerated SQL:")
    print(sql)

    out = write_sql(settings.SCHEMA_OUTPUT_PATH, sql)
    print(f"\nSQL saved to {out}")
    return 0


def schema_main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_schema_parser().parse_args(argv)
    settings = _apply_overrides(get_settings(), {"SCHEMA_OUTPUT_PATH": args.output})
    configure_logging(settings)
    try:
        return asyncio.run(_run_schema(args, settings))
    except Exception:
        logger.exception("Schema generation failed")
        return 1


if __name__ == "__main__":
    sys.exit(benchmark_main())
