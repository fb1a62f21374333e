# sqsbench/services/producer_pool.py
"""
Producer Pool

Enqueues tagged benchmark messages from a fixed set of worker threads,
either until a target count is reached (bounded) or at a fixed pace per
worker until a deadline (open loop).
"""
import threading
import time
from typing import List

from sqsbench.core.exceptions import QueueOperationError
from sqsbench.core.logger import logger
from sqsbench.integrations.sqs_client import SQSGateway
from sqsbench.schemas.run_models import RunMode, RunSummary
from sqsbench.services.counters import SharedCounter
from sqsbench.services.tagger import MessageTagger


class ProducerPool:
    """
    Args:
        gateway: shared queue gateway
        queue_url: target queue
        tagger: stamps index and enqueue time onto the payload
        workers: number of concurrent sender threads

    A pool drives a single run; build a new one for the next run.
    """

    def __init__(self, gateway: SQSGateway, queue_url: str, tagger: MessageTagger, workers: int):
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self.gateway = gateway
        self.queue_url = queue_url
        self.tagger = tagger
        self.workers = workers
        self.sent = SharedCounter()
        self.failed = SharedCounter()
        self._stop = threading.Event()

    def _send(self, index: int) -> None:
        """Send one message. A failure is logged and the index is dropped, never retried."""
        try:
            self.gateway.send(self.queue_url, self.tagger.tag(index))
            self.sent.increment()
        except QueueOperationError as e:
            self.failed.increment()
            logger.warning(f"Enqueue Error for index {index}: {e}")

    # ------------------------------------------------------------------
    # Bounded
    # ------------------------------------------------------------------

    def run_bounded(self, target: int) -> RunSummary:
        """
        Send exactly `target` indices (1..target) across all workers and
        block until every worker has stopped.

        Indices are claimed from one shared counter, so no index is sent
        twice. A failed send is not retried and the counter is not
        rewound: `sent == target - failed`.
        """
        claimed = SharedCounter()

        def worker() -> None:
            while True:
                index = claimed.increment()
                if index > target:
                    return
                self._send(index)

        logger.info("Starting bulk enqueue of %s messages with %s workers", target, self.workers)
        start = time.monotonic()
        threads: List[threading.Thread] = [
            threading.Thread(target=worker, name=f"producer-{i}")
            for i in range(self.workers)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        return RunSummary(
            mode=RunMode.BULK_ENQUEUE,
            processed=self.sent.value,
            failed=self.failed.value,
            elapsed_secs=time.monotonic() - start,
        )

    # ------------------------------------------------------------------
    # Time bound (open loop)
    # ------------------------------------------------------------------

    def run_timed(self, duration: float, pace: float) -> RunSummary:
        """
        Every worker sends one message, waits `pace` seconds and repeats,
        independently of the others, until `duration` elapses.

        Workers are daemon threads and are not joined: at the deadline the
        stop signal is raised and the counts are snapshotted while sends
        may still be in flight. The returned count is a lower bound on
        what actually reached the queue.
        """
        def worker() -> None:
            while not self._stop.is_set():
                self._send(self.tagger.next_index())
                self._stop.wait(pace)

        logger.info(
            "Starting time bound enqueue for %ss with %s workers, one message every %ss each",
            duration, self.workers, pace
        )
        start = time.monotonic()
        for i in range(self.workers):
            threading.Thread(target=worker, name=f"open-loop-producer-{i}", daemon=True).start()

        time.sleep(max(duration - (time.monotonic() - start), 0))
        self._stop.set()

        return RunSummary(
            mode=RunMode.TIME_BOUND_ENQUEUE,
            processed=self.sent.value,
            failed=self.failed.value,
            elapsed_secs=time.monotonic() - start,
        )
