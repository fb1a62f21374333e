# sqsbench/services/tagger.py
import threading
import time
from typing import Optional

from sqsbench.schemas.sqs_models import OutboundMessage


class MessageTagger:
    """
    Stamps outgoing payloads with a sequence index and a nanosecond
    wall-clock enqueue time. The payload itself is never touched.

    `next_index()` is a thread-safe counter for callers that do not claim
    indices themselves (open-loop producers, the round-trip mode).
    """

    def __init__(self, payload: str, start: int = 0):
        self.payload = payload
        self._start = start
        self._next = start
        self._lock = threading.Lock()

    def next_index(self) -> int:
        with self._lock:
            index = self._next
            self._next += 1
        return index

    @property
    def issued(self) -> int:
        """Number of indices handed out so far."""
        with self._lock:
            return self._next - self._start

    def tag(self, index: Optional[int] = None) -> OutboundMessage:
        """Build an outbound message; the timestamp is taken as late as possible."""
        if index is None:
            index = self.next_index()
        return OutboundMessage(
            body=self.payload,
            index=index,
            enqueue_time_ns=time.time_ns(),
        )
