"""
Data models for dbeval.

This package contains Pydantic models for:
- Benchmark results and aggregates
- The generated schema exchange format
- Items served by the HTTP API
"""

from dbeval.models.benchmark import (
    AggregatedMetric,
    BenchmarkResult,
)

from dbeval.models.schema import (
    SchemaDocument,
    SchemaField,
    TableSchema,
)

from dbeval.models.items import (
    Item,
    ItemCreate,
)

__all__ = [
    # benchmark
    "AggregatedMetric",
    "BenchmarkResult",
    # schema
    "SchemaDocument",
    "SchemaField",
    "TableSchema",
    # items
    "Item",
    "ItemCreate",
]
