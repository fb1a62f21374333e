# sqsbench/main.py
"""
Entry point: pick a run mode, make sure the benchmark queue exists, drive
one pool until it stops, then report.

    export MODE=e      # bulk enqueue of MESSAGE_COUNT messages
    export MODE=tbe    # open-loop enqueue for RUNTIME_DURATION_SECS
    export MODE=d      # single-message dequeue of MESSAGE_COUNT messages
    export MODE=bd     # batch dequeue of MESSAGE_COUNT messages
    export MODE=tbbd   # batch dequeue for RUNTIME_DURATION_SECS
    export MODE=sync   # SYNC_ROUND_TRIPS enqueue/dequeue round trips
    python -m sqsbench
"""
import sys
from enum import IntEnum
from typing import List, Optional

from sqsbench.core.aws_client import get_sqs_client, validate_aws_credentials
from sqsbench.core.config import Settings, settings
from sqsbench.core.exceptions import FatalAcknowledgeError, NoSamplesError, QueueSetupError
from sqsbench.core.logger import logger
from sqsbench.integrations.sqs_client import SQSGateway
from sqsbench.models.payload import build_payload
from sqsbench.schemas.run_models import RunMode, RunSummary
from sqsbench.services.consumer_pool import ConsumerPool
from sqsbench.services.producer_pool import ProducerPool
from sqsbench.services.round_trip import run_round_trip
from sqsbench.services.tagger import MessageTagger
from sqsbench.utils.report import report, write_samples


class ExitCode(IntEnum):
    SUCCESS = 0
    FAILURE = 1
    INVALID_MODE = 2
    NO_SAMPLES = 3


def _consumer_pool(gateway: SQSGateway, queue_url: str, config: Settings) -> ConsumerPool:
    return ConsumerPool(
        gateway,
        queue_url,
        workers=config.DEQUEUE_PARALLELISM,
        visibility_timeout=config.VISIBILITY_TIMEOUT_SECS,
        batch_size=config.BATCH_SIZE,
        empty_backoff=config.EMPTY_RECEIVE_BACKOFF_MS / 1000,
    )


def run(mode: RunMode, gateway: SQSGateway, queue_url: str, config: Settings = settings) -> RunSummary:
    """
    Drive the pool for `mode` to completion. Batch modes also write their
    latency artifact before returning.

    Raises:
        FatalAcknowledgeError: bounded batch dequeue lost a batch delete
        OSError: the latency artifact could not be written
    """
    if mode is RunMode.BULK_ENQUEUE:
        tagger = MessageTagger(build_payload())
        pool = ProducerPool(gateway, queue_url, tagger, config.ENQUEUE_PARALLELISM)
        return pool.run_bounded(config.MESSAGE_COUNT)

    if mode is RunMode.TIME_BOUND_ENQUEUE:
        tagger = MessageTagger(build_payload())
        pool = ProducerPool(gateway, queue_url, tagger, config.ENQUEUING_WORKERS)
        return pool.run_timed(config.RUNTIME_DURATION_SECS, config.ENQUEUE_PACE_MS / 1000)

    if mode is RunMode.BULK_DEQUEUE:
        return _consumer_pool(gateway, queue_url, config).run_single(config.MESSAGE_COUNT)

    if mode is RunMode.BULK_BATCH_DEQUEUE:
        summary = _consumer_pool(gateway, queue_url, config).run_batch(config.MESSAGE_COUNT)
        write_samples(config.LATENCIES_PATH, summary.latency.samples_ms())
        return summary

    if mode is RunMode.TIME_BOUND_BATCH_DEQUEUE:
        summary = _consumer_pool(gateway, queue_url, config).run_batch_timed(
            config.RUNTIME_DURATION_SECS, config.DRAIN_GRACE_SECS
        )
        write_samples(config.TIME_BOUND_LATENCIES_PATH, summary.latency.samples_ms())
        return summary

    if mode is RunMode.ROUND_TRIP:
        return run_round_trip(
            gateway,
            queue_url,
            MessageTagger(build_payload(), start=1),
            config.SYNC_ROUND_TRIPS,
            visibility_timeout=config.VISIBILITY_TIMEOUT_SECS,
        )

    raise ValueError(f"Unhandled run mode: {mode}")


def main(argv: Optional[List[str]] = None, gateway: Optional[SQSGateway] = None) -> int:
    """
    Args:
        argv: optional positional mode, overriding the MODE setting
        gateway: pre-built gateway; built from settings when omitted

    Returns:
        Process exit code (see ExitCode).
    """
    raw_mode = argv[0] if argv else settings.MODE
    mode = RunMode.parse(raw_mode)
    if mode is None:
        valid = ", ".join(m.value for m in RunMode)
        print(f"Invalid mode {raw_mode!r}, expected one of: {valid}. Exiting")
        logger.error("Invalid run mode: %r", raw_mode)
        return ExitCode.INVALID_MODE

    logger.info("Starting %s (%s)", mode.name.lower().replace("_", " "), mode.value)

    if gateway is None:
        validate_aws_credentials()
        gateway = SQSGateway(get_sqs_client(), wait_time_seconds=settings.RECEIVE_WAIT_TIME_SECS)

    try:
        queue_url = gateway.ensure_queue(settings.SQS_QUEUE_NAME)
    except QueueSetupError as e:
        logger.error(f"Queue setup failed: {e}")
        return ExitCode.FAILURE

    try:
        summary = run(mode, gateway, queue_url, config=settings)
    except FatalAcknowledgeError as e:
        logger.error(f"Aborting run, batch delete failed: {e}")
        return ExitCode.FAILURE
    except OSError as e:
        logger.error(f"Could not write latency file: {e}")
        return ExitCode.FAILURE

    try:
        report(summary)
    except NoSamplesError:
        print("No samples collected, mean latency is undefined")
        return ExitCode.NO_SAMPLES

    return ExitCode.SUCCESS


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
