"""
Shared pytest fixtures and configuration for all tests.
"""
import threading
import time
from typing import Dict, List, Optional, Set

import pytest

from sqsbench.core.exceptions import QueueOperationError, QueueSetupError
from sqsbench.schemas.sqs_models import BatchAckFailure, BatchAckResult, InboundMessage, OutboundMessage

QUEUE_URL = "https://sqs.eu-west-2.amazonaws.com/000000000000/benchmark-queue"


def pytest_configure(config):
    """Configure pytest with custom markers for all tests."""
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


class FakeGateway:
    """
    In-memory, thread-safe stand-in for SQSGateway.

    Received messages move to an in-flight map and never become visible
    again; there is no visibility timeout.
    """

    def __init__(
        self,
        fail_send_indices: Optional[Set[int]] = None,
        fail_delete_handles: Optional[Set[str]] = None,
        fail_batch_call: bool = False,
        fail_setup: bool = False,
    ):
        self.fail_send_indices = fail_send_indices or set()
        self.fail_delete_handles = fail_delete_handles or set()
        self.fail_batch_call = fail_batch_call
        self.fail_setup = fail_setup
        self._lock = threading.Lock()
        self._available: List[InboundMessage] = []
        self._in_flight: Dict[str, InboundMessage] = {}
        self._next_id = 0
        self.sent: List[OutboundMessage] = []
        self.deleted: List[str] = []
        self.batch_sizes: List[int] = []
        self.ensure_calls = 0

    # -- setup -------------------------------------------------------------

    def ensure_queue(self, name: str) -> str:
        self.ensure_calls += 1
        if self.fail_setup:
            raise QueueSetupError(f"could not create queue {name}")
        return QUEUE_URL

    def list_queues(self) -> List[str]:
        return [QUEUE_URL]

    def delete_queue(self, queue_url: str) -> None:
        with self._lock:
            self._available.clear()

    # -- helpers -----------------------------------------------------------

    def preload(self, count: int, age_ns: int = 5_000_000) -> None:
        """Put `count` messages on the queue, each enqueued `age_ns` ago."""
        enqueue_time = time.time_ns() - age_ns
        with self._lock:
            for i in range(count):
                self._available.append(self._make(i + 1, enqueue_time))

    def _make(self, index: int, enqueue_time_ns: int) -> InboundMessage:
        self._next_id += 1
        return InboundMessage(
            message_id=f"msg-{self._next_id}",
            body="{}",
            receipt_handle=f"handle-{self._next_id}",
            enqueue_time_ns=enqueue_time_ns,
            index=index,
        )

    # -- hot path ----------------------------------------------------------

    def send(self, queue_url: str, message: OutboundMessage) -> str:
        if message.index in self.fail_send_indices:
            raise QueueOperationError("SendMessage", RuntimeError("throttled"))
        with self._lock:
            self.sent.append(message)
            inbound = self._make(message.index, message.enqueue_time_ns)
            self._available.append(inbound)
            return inbound.message_id

    def receive_one(self, queue_url: str, visibility_timeout: int) -> Optional[InboundMessage]:
        batch = self.receive_batch(queue_url, 1, visibility_timeout)
        return batch[0] if batch else None

    def receive_batch(self, queue_url: str, max_count: int = 10, visibility_timeout: int = 1) -> List[InboundMessage]:
        with self._lock:
            batch = self._available[:min(max_count, 10)]
            del self._available[:len(batch)]
            for message in batch:
                self._in_flight[message.receipt_handle] = message
            if batch:
                self.batch_sizes.append(len(batch))
        return batch

    def acknowledge(self, queue_url: str, receipt_handle: str) -> None:
        if receipt_handle in self.fail_delete_handles:
            raise QueueOperationError("DeleteMessage", RuntimeError("receipt handle expired"))
        with self._lock:
            self._in_flight.pop(receipt_handle, None)
            self.deleted.append(receipt_handle)

    def acknowledge_batch(self, queue_url: str, receipt_handles: Dict[str, str]) -> BatchAckResult:
        if self.fail_batch_call:
            raise QueueOperationError("DeleteMessageBatch", RuntimeError("service unavailable"))
        result = BatchAckResult()
        for entry_id, handle in receipt_handles.items():
            if handle in self.fail_delete_handles:
                result.failed.append(BatchAckFailure(id=entry_id, code="ReceiptHandleIsInvalid", sender_fault=True))
                continue
            with self._lock:
                self._in_flight.pop(handle, None)
                self.deleted.append(handle)
            result.succeeded.append(entry_id)
        return result

    @property
    def backlog(self) -> int:
        with self._lock:
            return len(self._available)


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def queue_url():
    return QUEUE_URL


@pytest.fixture
def gateway_factory():
    """Build a FakeGateway with failure injection options."""
    return FakeGateway
