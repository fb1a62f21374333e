# sqsbench/services/round_trip.py
import time

from sqsbench.core.exceptions import QueueOperationError
from sqsbench.core.logger import logger
from sqsbench.integrations.sqs_client import SQSGateway
from sqsbench.schemas.run_models import RunMode, RunSummary
from sqsbench.services.latency import LatencyAggregator
from sqsbench.services.tagger import MessageTagger


def run_round_trip(
    gateway: SQSGateway,
    queue_url: str,
    tagger: MessageTagger,
    count: int,
    visibility_timeout: int = 1,
) -> RunSummary:
    """
    Enqueue one message, poll until a message comes back, delete it and
    record its latency; repeat until `count` round trips are measured.

    Single threaded, so it measures the unloaded queue. The message that
    comes back is not necessarily the one just sent if the queue had a
    backlog.
    """
    aggregator = LatencyAggregator()
    failed = 0
    start = time.monotonic()
    logger.info("Starting %s synchronous round trips", count)

    while aggregator.count < count:
        try:
            gateway.send(queue_url, tagger.tag())
        except QueueOperationError as e:
            failed += 1
            logger.warning(f"Enqueue Error: {e}")
            continue

        message = None
        while message is None:
            try:
                message = gateway.receive_one(queue_url, visibility_timeout)
            except QueueOperationError as e:
                logger.warning(f"Dequeue Error: {e}")

        latency = message.latency_ns(time.time_ns())
        try:
            gateway.acknowledge(queue_url, message.receipt_handle)
        except QueueOperationError as e:
            failed += 1
            logger.warning(f"Delete Error: {e}")
            continue
        aggregator.record(latency)

    return RunSummary(
        mode=RunMode.ROUND_TRIP,
        processed=aggregator.count,
        failed=failed,
        elapsed_secs=time.monotonic() - start,
        latency=aggregator,
    )
