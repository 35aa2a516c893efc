"""
Operation Timer

Runs one async unit of work against a backend, measures it, and records the
outcome as a BenchmarkResult. This is the only place benchmark failures are
caught: callers can rely on `measure` never raising for an action error.
"""

import logging
import time
from typing import Any, Awaitable, Callable, List

from dbeval.core.helpers import classify_error, error_message, truncate_str_for_log
from dbeval.models import BenchmarkResult

logger = logging.getLogger(__name__)

Action = Callable[[], Awaitable[Any]]


class OperationTimer:
    """Times actions and accumulates their results in call order."""

    def __init__(self) -> None:
        self._results: List[BenchmarkResult] = []

    @property
    def results(self) -> List[BenchmarkResult]:
        """Snapshot of the recorded results, oldest first."""
        return list(self._results)

    def __len__(self) -> int:
        return len(self._results)

    async def measure(self, backend: str, operation: str, action: Action) -> BenchmarkResult:
        """
        Await `action()` and record exactly one result for it.

        Any `Exception` raised by the action is recorded as a failure and not
        re-raised. Cancellation (`BaseException`) still propagates.
        """
        start = time.perf_counter()
        try:
            await action()
        except Exception as e:
            duration_ms = (time.perf_counter() - start) * 1000.0
            result = BenchmarkResult(
                backend=backend,
                operation=operation,
                duration_ms=duration_ms,
                latency_ms=0.0,
                success=False,
                error=error_message(e),
            )
            logger.warning(
                "%s / %s failed after %.2fms [%s]: %s",
                backend,
                operation,
                duration_ms,
                classify_error(e),
                truncate_str_for_log(result.error),
            )
        else:
            duration_ms = (time.perf_counter() - start) * 1000.0
            result = BenchmarkResult(
                backend=backend,
                operation=operation,
                duration_ms=duration_ms,
                latency_ms=duration_ms,
                success=True,
            )
            logger.debug("%s / %s completed in %.2fms", backend, operation, duration_ms)

        self._results.append(result)
        return result
