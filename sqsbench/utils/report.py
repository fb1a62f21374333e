# sqsbench/utils/report.py
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Union

from sqsbench.core.exceptions import NoSamplesError
from sqsbench.core.logger import logger
from sqsbench.schemas.run_models import RunSummary
from sqsbench.services.latency import NS_PER_MS


def write_samples(path: Union[str, Path], samples: Iterable[int]) -> int:
    """
    Write one decimal latency per line, in the given order, and flush.

    OSError is not caught: producing this file is the point of a batch run.

    Returns:
        Number of lines written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    written = 0
    with open(path, "w") as f:
        for sample in samples:
            f.write(f"{int(sample)}\n")
            written += 1
        f.flush()
    logger.info("Wrote %s latency samples to %s", written, path)
    return written


def read_samples(path: Union[str, Path]) -> List[int]:
    with open(path) as f:
        return [int(line) for line in f if line.strip()]


def report(summary: RunSummary) -> str:
    """
    Print the one-line console report for a run and log its details.

    Producer runs report the sent count. Consumer runs report the mean
    latency.

    Raises:
        NoSamplesError: a consumer run acknowledged no messages, so there is
            no mean to report.
    """
    log_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event": "run_complete",
        "mode": summary.mode.value,
        "processed": summary.processed,
        "failed": summary.failed,
        "elapsed_secs": round(summary.elapsed_secs, 3),
    }

    if summary.latency is None:
        line = f"Sent {summary.processed} messages ({summary.failed} failed) in {summary.elapsed_secs:.2f}s"
        print(line)
        logger.info(json.dumps(log_data))
        return line

    try:
        mean_ns = summary.latency.mean_ns()
    except NoSamplesError:
        log_data["event"] = "run_no_samples"
        logger.error(json.dumps(log_data))
        raise

    count = summary.latency.count
    line = f"Average latency for {count} items is {mean_ns:.0f} ns ({mean_ns / NS_PER_MS:.3f} ms)"
    print(line)

    log_data["mean_ns"] = round(mean_ns)
    if summary.latency.keep_samples:
        log_data["latency_ms"] = summary.latency.summary().model_dump()
    logger.info(json.dumps(log_data))
    return line
