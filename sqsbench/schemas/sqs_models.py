# sqsbench/schemas/sqs_models.py
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from sqsbench.core.exceptions import MalformedMessageError

ENQUEUE_TIME_ATTRIBUTE = "EnqueueTime"
INDEX_ATTRIBUTE = "Index"


class OutboundMessage(BaseModel):
    """Payload plus the tags needed to measure it on the way back."""
    body: str
    index: int = Field(..., ge=0)
    enqueue_time_ns: int = Field(..., ge=0)

    def to_message_attributes(self) -> Dict[str, Dict[str, str]]:
        return {
            ENQUEUE_TIME_ATTRIBUTE: {"DataType": "Number", "StringValue": str(self.enqueue_time_ns)},
            INDEX_ATTRIBUTE: {"DataType": "Number", "StringValue": str(self.index)},
        }


class InboundMessage(BaseModel):
    message_id: str
    body: str
    receipt_handle: str
    enqueue_time_ns: int
    index: Optional[int] = None

    @classmethod
    def from_sqs(cls, entry: Dict[str, Any]) -> "InboundMessage":
        """
        Build from one element of a ReceiveMessage `Messages` list.

        Raises:
            MalformedMessageError: EnqueueTime is missing or not an integer.
                The receipt handle is attached so the caller can still delete it.
        """
        attributes = entry.get("MessageAttributes") or {}
        raw_time = (attributes.get(ENQUEUE_TIME_ATTRIBUTE) or {}).get("StringValue")
        raw_index = (attributes.get(INDEX_ATTRIBUTE) or {}).get("StringValue")
        try:
            enqueue_time_ns = int(raw_time)
        except (TypeError, ValueError):
            raise MalformedMessageError(
                f"message {entry.get('MessageId')} has no usable {ENQUEUE_TIME_ATTRIBUTE}: {raw_time!r}",
                receipt_handle=entry.get("ReceiptHandle"),
            )

        index = int(raw_index) if raw_index and raw_index.isdigit() else None
        return cls(
            message_id=entry.get("MessageId", ""),
            body=entry.get("Body", ""),
            receipt_handle=entry["ReceiptHandle"],
            enqueue_time_ns=enqueue_time_ns,
            index=index,
        )

    def latency_ns(self, now_ns: int) -> int:
        """Receive time minus enqueue time, clamped at 0 for clock skew."""
        return max(now_ns - self.enqueue_time_ns, 0)


class BatchAckFailure(BaseModel):
    id: str
    code: str = ""
    message: str = ""
    sender_fault: bool = False


class BatchAckResult(BaseModel):
    """Per-entry outcome of one DeleteMessageBatch call."""
    succeeded: List[str] = []
    failed: List[BatchAckFailure] = []

    @classmethod
    def from_sqs(cls, response: Dict[str, Any]) -> "BatchAckResult":
        return cls(
            succeeded=[entry["Id"] for entry in response.get("Successful", [])],
            failed=[
                BatchAckFailure(
                    id=entry["Id"],
                    code=entry.get("Code", ""),
                    message=entry.get("Message", ""),
                    sender_fault=entry.get("SenderFault", False),
                )
                for entry in response.get("Failed", [])
            ],
        )
