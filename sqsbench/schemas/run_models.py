# sqsbench/schemas/run_models.py
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from sqsbench.services.latency import LatencyAggregator


class RunMode(str, Enum):
    """Run modes selected through the MODE environment variable"""
    BULK_ENQUEUE = "e"
    TIME_BOUND_ENQUEUE = "tbe"
    BULK_DEQUEUE = "d"
    BULK_BATCH_DEQUEUE = "bd"
    TIME_BOUND_BATCH_DEQUEUE = "tbbd"
    ROUND_TRIP = "sync"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["RunMode"]:
        """Return the matching mode, or None for an absent/unknown value."""
        if not value:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class RunSummary(BaseModel):
    """
    Outcome of one pool run.

    `processed` is messages sent (producer modes) or acknowledged
    (consumer modes). In time-bound modes it is a best-effort snapshot
    taken while workers may still be running.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    mode: RunMode
    processed: int
    failed: int = 0
    elapsed_secs: float
    latency: Optional[LatencyAggregator] = None
