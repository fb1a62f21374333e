# sqsbench/core/exceptions.py
"""
Error taxonomy for the harness.

Setup and artifact errors end the run. Operation errors are logged by the
pools and the affected message is dropped; nothing is retried.
"""
from typing import Optional


class SqsBenchError(Exception):
    """Base class for harness errors."""


class QueueSetupError(SqsBenchError):
    """The benchmark queue could not be looked up or created."""


class QueueOperationError(SqsBenchError):
    """A single send / receive / delete call against the queue failed."""

    def __init__(self, operation: str, cause: Exception):
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} failed: {cause}")


class FatalAcknowledgeError(SqsBenchError):
    """A batch delete failed during a bounded run, so the measurement is unusable."""


class MalformedMessageError(SqsBenchError):
    """A received message carries no usable EnqueueTime attribute."""

    def __init__(self, message: str, receipt_handle: Optional[str] = None):
        self.receipt_handle = receipt_handle
        super().__init__(message)


class NoSamplesError(SqsBenchError):
    """A mean was requested before any latency sample was recorded."""

    def __init__(self, message: str = "no samples collected"):
        super().__init__(message)
