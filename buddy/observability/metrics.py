"""
Performance metrics.

In-process store of operation timings. Each metric name keeps its most recent
samples; summaries report count, mean, min, max and the 50th/95th/99th
percentiles. A sample above its metric's slow threshold is logged as a warning.

Metric names in use:
- api.request: one sample per HTTP request (RequestLoggingMiddleware)
- llm.embedding: query embedding during a chat turn
- rag.search: similarity search during a chat turn
- llm.chat: blocking chat completion

Dependencies: logging (stdlib)
System role: Latency tracking behind the admin analytics endpoint
"""

import logging
import math
import threading
import time
from collections import deque
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DEFAULT_MAX_SAMPLES = 1000
DEFAULT_RETENTION_SECONDS = 24 * 60 * 60.0
DEFAULT_SLOW_MS = 3000.0
SLOW_THRESHOLDS_MS = {
    "api.request": 5000.0,
    "db.query": 1000.0,
    "llm.chat": 10000.0,
    "llm.embedding": 5000.0,
    "rag.search": 2000.0,
}


@dataclass(frozen=True)
class MetricSample:
    """One timed operation."""

    name: str
    duration_ms: float
    timestamp: float
    tags: dict[str, str] = field(default_factory=dict)


def percentile(sorted_values: list[float], fraction: float) -> float:
    """Nearest-rank percentile of an ascending, non-empty list."""
    index = math.ceil(len(sorted_values) * fraction) - 1
    return sorted_values[max(0, index)]


class MetricsStore:
    """
    Bounded per-metric timing samples.

    Attributes:
        max_samples: Samples kept per metric name; the oldest is dropped first
        retention_seconds: Age after which prune() discards samples
    """

    def __init__(
        self,
        max_samples: int = DEFAULT_MAX_SAMPLES,
        retention_seconds: float = DEFAULT_RETENTION_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.max_samples = max_samples
        self.retention_seconds = retention_seconds
        self._clock = clock
        self._samples: dict[str, deque[MetricSample]] = {}
        self._lock = threading.Lock()

    def record(
        self,
        name: str,
        duration_ms: float,
        tags: dict[str, str] | None = None,
        timestamp: float | None = None,
    ) -> MetricSample:
        """
        Store a sample, warning when it exceeds the metric's slow threshold.

        Args:
            name: Metric name, e.g. "rag.search"
            duration_ms: Measured duration
            tags: Free-form labels (method, path, model)
            timestamp: Start time in epoch seconds (defaults to now)

        Returns:
            MetricSample: The stored sample
        """
        sample = MetricSample(
            name=name,
            duration_ms=round(duration_ms, 2),
            timestamp=self._clock() if timestamp is None else timestamp,
            tags=dict(tags or {}),
        )
        with self._lock:
            samples = self._samples.get(name)
            if samples is None:
                samples = self._samples[name] = deque(maxlen=self.max_samples)
            samples.append(sample)

        threshold = SLOW_THRESHOLDS_MS.get(name, DEFAULT_SLOW_MS)
        if sample.duration_ms > threshold:
            logger.warning(
                f"{__name__}:record - Slow operation detected: {name}",
                extra={
                    "duration_ms": sample.duration_ms,
                    "threshold_ms": threshold,
                    "tags": sample.tags,
                },
            )
        return sample

    @contextmanager
    def timer(self, name: str, **tags: str) -> Iterator[None]:
        """Time the enclosed block and record it, also when it raises."""
        started_at = self._clock()
        start = time.perf_counter()
        try:
            yield
        finally:
            self.record(name, (time.perf_counter() - start) * 1000, tags, timestamp=started_at)

    def get_samples(self, name: str, since: float | None = None) -> list[MetricSample]:
        with self._lock:
            samples = list(self._samples.get(name, ()))
        if since is not None:
            samples = [s for s in samples if s.timestamp >= since]
        return samples

    def metric_names(self) -> list[str]:
        with self._lock:
            return sorted(self._samples)

    def summary(self, name: str, since: float | None = None) -> dict[str, float] | None:
        """
        Aggregate the samples of one metric.

        Args:
            name: Metric name
            since: Only samples started at or after this epoch time

        Returns:
            Count, avg, min, max, p50, p95 and p99 in milliseconds, or None
            when no sample matches
        """
        durations = sorted(s.duration_ms for s in self.get_samples(name, since))
        if not durations:
            return None
        return {
            "count": len(durations),
            "avg": round(sum(durations) / len(durations), 2),
            "min": durations[0],
            "max": durations[-1],
            "p50": percentile(durations, 0.5),
            "p95": percentile(durations, 0.95),
            "p99": percentile(durations, 0.99),
        }

    def summaries(self, since: float | None = None) -> dict[str, dict[str, float] | None]:
        return {name: self.summary(name, since) for name in self.metric_names()}

    def prune(self, older_than: float | None = None) -> int:
        """
        Drop samples started before a cutoff.

        Args:
            older_than: Epoch cutoff (defaults to now minus retention_seconds)

        Returns:
            int: Number of samples removed
        """
        cutoff = self._clock() - self.retention_seconds if older_than is None else older_than
        removed = 0
        with self._lock:
            for name, samples in self._samples.items():
                kept = [s for s in samples if s.timestamp >= cutoff]
                removed += len(samples) - len(kept)
                self._samples[name] = deque(kept, maxlen=self.max_samples)
        if removed:
            logger.info(f"{__name__}:prune - Dropped {removed} metric samples")
        return removed

    def clear(self) -> None:
        with self._lock:
            self._samples.clear()
