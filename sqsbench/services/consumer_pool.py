# sqsbench/services/consumer_pool.py
"""
Consumer Pool

Receives benchmark messages from a fixed set of worker threads, measures
enqueue-to-receive latency, deletes what it measured and accumulates the
samples in a shared LatencyAggregator.

Three drive modes:
- run_single: one message per receive, stop at a target count
- run_batch: up to 10 messages per receive, stop at a target count
- run_batch_timed: up to 10 messages per receive, stop at a deadline

Stopping is best effort: workers check a shared stop signal between
receives, so the acknowledged count can overshoot the target by whatever
was already in flight.
"""
import random
import threading
import time
from typing import Dict, List, Optional

from sqsbench.core.exceptions import FatalAcknowledgeError, QueueOperationError
from sqsbench.core.logger import logger
from sqsbench.integrations.sqs_client import MAX_BATCH_SIZE, SQSGateway
from sqsbench.schemas.run_models import RunMode, RunSummary
from sqsbench.schemas.sqs_models import InboundMessage
from sqsbench.services.counters import SharedCounter
from sqsbench.services.latency import LatencyAggregator


class ConsumerPool:
    """
    Args:
        gateway: shared queue gateway
        queue_url: queue to drain
        workers: number of concurrent receiver threads
        visibility_timeout: seconds a received message stays hidden
        batch_size: messages per batch receive, clamped to 1..10
        empty_backoff: max seconds of jittered sleep after an empty
            receive; 0 keeps the busy-poll behaviour

    A pool drives a single run; build a new one for the next run.
    """

    def __init__(
        self,
        gateway: SQSGateway,
        queue_url: str,
        workers: int,
        visibility_timeout: int = 1,
        batch_size: int = MAX_BATCH_SIZE,
        empty_backoff: float = 0.0,
    ):
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self.gateway = gateway
        self.queue_url = queue_url
        self.workers = workers
        self.visibility_timeout = visibility_timeout
        self.batch_size = max(1, min(batch_size, MAX_BATCH_SIZE))
        self.empty_backoff = empty_backoff
        self.failed = SharedCounter()
        self._stop = threading.Event()
        self._fatal: Optional[FatalAcknowledgeError] = None

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _measure(self, message: InboundMessage) -> int:
        now_ns = time.time_ns()
        if now_ns < message.enqueue_time_ns:
            logger.debug(
                "Clock skew: message %s enqueued %sns in the future",
                message.message_id, message.enqueue_time_ns - now_ns
            )
        return message.latency_ns(now_ns)

    def _backoff(self) -> None:
        if self.empty_backoff > 0:
            time.sleep(random.uniform(0, self.empty_backoff))

    def _start(self, worker, name: str, daemon: bool = False) -> List[threading.Thread]:
        threads = [
            threading.Thread(target=worker, name=f"{name}-{i}", daemon=daemon)
            for i in range(self.workers)
        ]
        for thread in threads:
            thread.start()
        return threads

    # ------------------------------------------------------------------
    # Single message, bounded
    # ------------------------------------------------------------------

    def run_single(self, target: int) -> RunSummary:
        """
        Receive, measure and delete one message at a time until `target`
        messages have been acknowledged. Blocks until all workers stop.

        A sample is recorded only after its delete succeeded, so the
        aggregator count is the acknowledged count.
        """
        aggregator = LatencyAggregator()

        def worker() -> None:
            while not self._stop.is_set():
                try:
                    message = self.gateway.receive_one(self.queue_url, self.visibility_timeout)
                except QueueOperationError as e:
                    logger.warning(f"Dequeue Error: {e}")
                    continue
                if message is None:
                    self._backoff()
                    continue

                latency = self._measure(message)
                try:
                    self.gateway.acknowledge(self.queue_url, message.receipt_handle)
                except QueueOperationError as e:
                    self.failed.increment()
                    logger.warning(f"Delete Error: {e}")
                    continue

                if aggregator.record(latency) >= target:
                    self._stop.set()

        logger.info("Starting dequeue of %s messages with %s workers", target, self.workers)
        start = time.monotonic()
        for thread in self._start(worker, "consumer"):
            thread.join()

        return RunSummary(
            mode=RunMode.BULK_DEQUEUE,
            processed=aggregator.count,
            failed=self.failed.value,
            elapsed_secs=time.monotonic() - start,
            latency=aggregator,
        )

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    def _consume_batch(self, aggregator: LatencyAggregator, fatal_on_ack_error: bool) -> bool:
        """
        One receive / measure / batch-delete cycle.

        Returns:
            False when the worker must stop because the batch delete call
            failed and `fatal_on_ack_error` is set.
        """
        try:
            messages = self.gateway.receive_batch(
                self.queue_url, self.batch_size, self.visibility_timeout
            )
        except QueueOperationError as e:
            logger.warning(f"Dequeue Error: {e}")
            return True
        if not messages:
            self._backoff()
            return True

        latencies: Dict[str, int] = {}
        handles: Dict[str, str] = {}
        for position, message in enumerate(messages):
            entry_id = str(position)
            latencies[entry_id] = self._measure(message)
            handles[entry_id] = message.receipt_handle

        try:
            result = self.gateway.acknowledge_batch(self.queue_url, handles)
        except QueueOperationError as e:
            self.failed.increment(len(handles))
            if fatal_on_ack_error:
                logger.error(f"Batch Delete Error: {e}")
                self._fatal = FatalAcknowledgeError(str(e))
                self._stop.set()
                return False
            logger.warning(f"Batch Delete Error: {e}")
            return True

        for failure in result.failed:
            self.failed.increment()
            logger.warning(
                "Batch Delete entry %s failed: %s %s", failure.id, failure.code, failure.message
            )
        for entry_id in result.succeeded:
            if entry_id in latencies:
                aggregator.record(latencies[entry_id])
        return True

    def run_batch(self, target: int) -> RunSummary:
        """
        Batch-receive until `target` messages have been acknowledged.

        Each worker finishes and deletes its in-flight batch before checking
        the target, so the final count may overshoot it.

        Raises:
            FatalAcknowledgeError: a batch delete call failed; the run is
                not a trustworthy measurement.
        """
        aggregator = LatencyAggregator(keep_samples=True)

        def worker() -> None:
            while not self._stop.is_set():
                if not self._consume_batch(aggregator, fatal_on_ack_error=True):
                    return
                if aggregator.count >= target:
                    self._stop.set()

        logger.info("Starting batch dequeue of %s messages with %s workers", target, self.workers)
        start = time.monotonic()
        for thread in self._start(worker, "batch-consumer"):
            thread.join()

        if self._fatal is not None:
            raise self._fatal

        return RunSummary(
            mode=RunMode.BULK_BATCH_DEQUEUE,
            processed=aggregator.count,
            failed=self.failed.value,
            elapsed_secs=time.monotonic() - start,
            latency=aggregator,
        )

    def run_batch_timed(self, duration: float, grace: float) -> RunSummary:
        """
        Batch-receive until `duration + grace` seconds have passed.

        Workers never stop on their own and batch delete failures are only
        logged. At the deadline the stop signal is raised and the result is
        returned without joining: the aggregator may still receive samples
        from batches that were in flight, so read it through its snapshot
        accessors.
        """
        aggregator = LatencyAggregator(keep_samples=True)

        def worker() -> None:
            while not self._stop.is_set():
                self._consume_batch(aggregator, fatal_on_ack_error=False)

        logger.info(
            "Starting time bound batch dequeue for %ss (+%ss grace) with %s workers",
            duration, grace, self.workers
        )
        start = time.monotonic()
        self._start(worker, "timed-batch-consumer", daemon=True)

        time.sleep(max(duration + grace - (time.monotonic() - start), 0))
        self._stop.set()

        return RunSummary(
            mode=RunMode.TIME_BOUND_BATCH_DEQUEUE,
            processed=aggregator.count,
            failed=self.failed.value,
            elapsed_secs=time.monotonic() - start,
            latency=aggregator,
        )
