"""
Benchmark Result Models

Defines Pydantic models for timed operation results and their aggregates.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class BenchmarkResult(BaseModel):
    """Outcome of one timed operation against one backend."""

    model_config = ConfigDict(frozen=True)

    backend: str = Field(..., description="Backend label (e.g. Neon)")
    operation: str = Field(..., description="Operation label (e.g. Simple Query)")
    duration_ms: float = Field(..., ge=0.0, description="Wall-clock duration (ms)")
    latency_ms: float = Field(
        0.0, ge=0.0, description="Latency (ms); equals duration on success, 0 on failure"
    )
    success: bool = Field(..., description="Operation completed without error")
    error: Optional[str] = Field(None, description="Error message if failed")

    @property
    def key(self) -> tuple[str, str]:
        return (self.backend, self.operation)


class AggregatedMetric(BaseModel):
    """
    Per (backend, operation) summary derived from BenchmarkResult entries.

    Not stored anywhere; rebuilt every time a report is produced.
    """

    backend: str
    operation: str
    count: int = Field(..., ge=1, description="Results in the group")
    success_count: int = Field(..., ge=0, description="Successful results")
    avg_duration_ms: float = Field(
        ..., description="Mean duration over all results, failures included"
    )
    errors: List[str] = Field(
        default_factory=list, description="Error messages of failed results"
    )

    @property
    def success_rate(self) -> float:
        """Success rate as a percentage (0-100)."""
        return self.success_count / self.count * 100

    @property
    def label(self) -> str:
        return f"{self.backend}-{self.operation}"
