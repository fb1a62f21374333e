# sqsbench/services/latency.py
"""
Latency accounting shared by all consumer workers of one run.

A sample is recorded only after its message has been deleted from the
queue, so `count` is also the acknowledged-message count.
"""
import threading
from typing import List

from pydantic import BaseModel

from sqsbench.core.exceptions import NoSamplesError

NS_PER_MS = 1_000_000


class LatencySummary(BaseModel):
    """Statistical latency summary in milliseconds."""
    count: int
    mean_ms: float
    p50_ms: float
    p95_ms: float
    p99_ms: float
    min_ms: float
    max_ms: float

    @classmethod
    def from_samples(cls, samples: List[int]) -> "LatencySummary":
        """
        Args:
            samples: latency values in milliseconds

        Raises:
            NoSamplesError: `samples` is empty
        """
        if not samples:
            raise NoSamplesError()

        sorted_samples = sorted(samples)
        n = len(sorted_samples)

        def percentile(p: float) -> float:
            """Linear interpolation between closest ranks."""
            if n == 1:
                return float(sorted_samples[0])
            idx = (n - 1) * p / 100
            lower = int(idx)
            upper = min(lower + 1, n - 1)
            frac = idx - lower
            return sorted_samples[lower] * (1 - frac) + sorted_samples[upper] * frac

        return cls(
            count=n,
            mean_ms=sum(sorted_samples) / n,
            p50_ms=percentile(50),
            p95_ms=percentile(95),
            p99_ms=percentile(99),
            min_ms=float(sorted_samples[0]),
            max_ms=float(sorted_samples[-1]),
        )


class LatencyAggregator:
    """
    Running sum and count of latencies, guarded by one lock.

    Args:
        keep_samples: also retain every sample (as whole milliseconds) for
            export; batch modes turn this on.
    """

    def __init__(self, keep_samples: bool = False):
        self.keep_samples = keep_samples
        self._lock = threading.Lock()
        self._count = 0
        self._total_ns = 0
        self._samples_ms: List[int] = []

    def record(self, sample_ns: int) -> int:
        """Add one sample and return the count including it."""
        if sample_ns < 0:
            raise ValueError(f"latency sample must be >= 0, got {sample_ns}")
        with self._lock:
            self._count += 1
            self._total_ns += sample_ns
            if self.keep_samples:
                self._samples_ms.append(sample_ns // NS_PER_MS)
            return self._count

    @property
    def count(self) -> int:
        with self._lock:
            return self._count

    @property
    def total_ns(self) -> int:
        with self._lock:
            return self._total_ns

    def mean_ns(self) -> float:
        """
        Raises:
            NoSamplesError: nothing has been recorded yet
        """
        with self._lock:
            count, total = self._count, self._total_ns
        if count == 0:
            raise NoSamplesError()
        return total / count

    def samples_ms(self) -> List[int]:
        """Snapshot copy of the retained samples, in record order."""
        with self._lock:
            return list(self._samples_ms)

    def summary(self) -> LatencySummary:
        return LatencySummary.from_samples(self.samples_ms())

