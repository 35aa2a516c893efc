"""
Result aggregation and reporting.

Groups BenchmarkResult entries by (backend, operation) in first-seen order and
reduces each group to an AggregatedMetric.
"""

from typing import Dict, Iterable, List, Tuple

from pydantic import TypeAdapter

from dbeval.models import AggregatedMetric, BenchmarkResult

REPORT_TITLE = "Benchmark Results:"

_results_adapter = TypeAdapter(List[BenchmarkResult])


def group_results(
    results: Iterable[BenchmarkResult],
) -> Dict[Tuple[str, str], List[BenchmarkResult]]:
    """Bucket results by (backend, operation); dict order is first-seen order."""
    groups: Dict[Tuple[str, str], List[BenchmarkResult]] = {}
    for result in results:
        groups.setdefault(result.key, []).append(result)
    return groups


def aggregate_results(results: Iterable[BenchmarkResult]) -> List[AggregatedMetric]:
    """Reduce each (backend, operation) group to an AggregatedMetric."""
    metrics: List[AggregatedMetric] = []
    for (backend, operation), group in group_results(results).items():
        metrics.append(
            AggregatedMetric(
                backend=backend,
                operation=operation,
                count=len(group),
                success_count=sum(1 for r in group if r.success),
                avg_duration_ms=sum(r.duration_ms for r in group) / len(group),
                errors=[r.error or "" for r in group if not r.success],
            )
        )
    return metrics


def format_report(metrics: Iterable[AggregatedMetric]) -> str:
    lines = [REPORT_TITLE, "=" * len(REPORT_TITLE)]
    for metric in metrics:
        lines.append("")
        lines.append(f"{metric.label}:")
        lines.append(f"  Average Duration: {metric.avg_duration_ms:.2f}ms")
        lines.append(f"  Success Rate: {metric.success_rate:.2f}%")
        if metric.success_rate < 100:
            lines.append(f"  Errors: {metric.errors}")
    return "\n".join(lines)


def results_to_json(results: List[BenchmarkResult]) -> str:
    """Serialize raw results (in recorded order) as a JSON array."""
    return _results_adapter.dump_json(results, indent=2).decode("utf-8")
