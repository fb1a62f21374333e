# sqsbench/integrations/sqs_client.py
"""
Queue Gateway

Thin adapter over a boto3 SQS client. Holds the client handle and nothing
else, so one instance is shared read-only by every worker thread.

Failures of individual calls surface as QueueOperationError; what to do
with them (drop, or abort the run) is the caller's decision.
"""
from typing import Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from sqsbench.core.exceptions import MalformedMessageError, QueueOperationError, QueueSetupError
from sqsbench.core.logger import logger
from sqsbench.schemas.sqs_models import BatchAckResult, InboundMessage, OutboundMessage

MAX_BATCH_SIZE = 10

_MISSING_QUEUE_CODES = {
    "QueueDoesNotExist",
    "AWS.SimpleQueueService.NonExistentQueue",
}


class SQSGateway:
    """
    Send / receive / delete operations against one SQS endpoint.

    Args:
        client: boto3 SQS client (see core.aws_client.get_sqs_client)
        wait_time_seconds: ReceiveMessage WaitTimeSeconds, 0 for short polling
    """

    def __init__(self, client, wait_time_seconds: int = 0):
        self._client = client
        self.wait_time_seconds = wait_time_seconds

    # ------------------------------------------------------------------
    # Setup / administration
    # ------------------------------------------------------------------

    def ensure_queue(self, name: str) -> str:
        """
        Return the URL of queue `name`, creating it only if it does not exist.

        Raises:
            QueueSetupError: lookup failed for a reason other than a missing
                queue, or the queue could not be created.
        """
        try:
            url = self._client.get_queue_url(QueueName=name)["QueueUrl"]
            logger.info("Queue already exists: %s", url)
            return url
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") not in _MISSING_QUEUE_CODES:
                logger.error(f"Queue lookup error: {e}")
                raise QueueSetupError(f"could not look up queue {name}: {e}") from e
        except BotoCoreError as e:
            logger.error(f"Queue lookup error: {e}")
            raise QueueSetupError(f"could not look up queue {name}: {e}") from e

        try:
            url = self._client.create_queue(QueueName=name)["QueueUrl"]
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Create Error: {e}")
            raise QueueSetupError(f"could not create queue {name}: {e}") from e
        logger.info("Successfully created new queue: %s", url)
        return url

    def delete_queue(self, queue_url: str) -> None:
        try:
            self._client.delete_queue(QueueUrl=queue_url)
        except (ClientError, BotoCoreError) as e:
            raise QueueOperationError("DeleteQueue", e) from e
        logger.info("Queue deleted successfully: %s", queue_url)

    def list_queues(self) -> List[str]:
        """All queue URLs visible to the current credentials, following pagination."""
        urls: List[str] = []
        params: Dict[str, str] = {}
        try:
            while True:
                response = self._client.list_queues(**params)
                urls.extend(response.get("QueueUrls", []))
                next_token = response.get("NextToken")
                if not next_token:
                    break
                params["NextToken"] = next_token
        except (ClientError, BotoCoreError) as e:
            raise QueueOperationError("ListQueues", e) from e
        return urls

    # ------------------------------------------------------------------
    # Hot path
    # ------------------------------------------------------------------

    def send(self, queue_url: str, message: OutboundMessage) -> str:
        """Send one tagged message and return its MessageId."""
        try:
            response = self._client.send_message(
                QueueUrl=queue_url,
                MessageBody=message.body,
                MessageAttributes=message.to_message_attributes(),
            )
        except (ClientError, BotoCoreError) as e:
            raise QueueOperationError("SendMessage", e) from e
        msg_id = response.get("MessageId", "")
        logger.debug("Enqueued index=%s msg_id=%s", message.index, msg_id)
        return msg_id

    def receive_one(self, queue_url: str, visibility_timeout: int) -> Optional[InboundMessage]:
        """
        Short-poll for at most one message.

        Returns:
            The message, or None when the queue had nothing to hand out.
        """
        messages = self._receive(queue_url, 1, visibility_timeout)
        return messages[0] if messages else None

    def receive_batch(
        self,
        queue_url: str,
        max_count: int = MAX_BATCH_SIZE,
        visibility_timeout: int = 1,
    ) -> List[InboundMessage]:
        """Receive up to `max_count` (at most 10) messages."""
        max_count = max(1, min(max_count, MAX_BATCH_SIZE))
        return self._receive(queue_url, max_count, visibility_timeout)[:max_count]

    def acknowledge(self, queue_url: str, receipt_handle: str) -> None:
        try:
            self._client.delete_message(QueueUrl=queue_url, ReceiptHandle=receipt_handle)
        except (ClientError, BotoCoreError) as e:
            raise QueueOperationError("DeleteMessage", e) from e

    def acknowledge_batch(self, queue_url: str, receipt_handles: Dict[str, str]) -> BatchAckResult:
        """
        Delete several messages in one call.

        Args:
            receipt_handles: entry id -> receipt handle, at most 10 entries

        Returns:
            BatchAckResult listing which entry ids were deleted and which failed.

        Raises:
            QueueOperationError: the call itself failed (no entry was deleted).
        """
        if not receipt_handles:
            return BatchAckResult()

        entries = [
            {"Id": entry_id, "ReceiptHandle": handle}
            for entry_id, handle in receipt_handles.items()
        ]
        try:
            response = self._client.delete_message_batch(QueueUrl=queue_url, Entries=entries)
        except (ClientError, BotoCoreError) as e:
            raise QueueOperationError("DeleteMessageBatch", e) from e
        return BatchAckResult.from_sqs(response)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _receive(self, queue_url: str, max_count: int, visibility_timeout: int) -> List[InboundMessage]:
        try:
            response = self._client.receive_message(
                QueueUrl=queue_url,
                AttributeNames=["SentTimestamp"],
                MessageAttributeNames=["All"],
                MaxNumberOfMessages=max_count,
                VisibilityTimeout=visibility_timeout,
                WaitTimeSeconds=self.wait_time_seconds,
            )
        except (ClientError, BotoCoreError) as e:
            raise QueueOperationError("ReceiveMessage", e) from e

        messages: List[InboundMessage] = []
        for entry in response.get("Messages", []):
            try:
                messages.append(InboundMessage.from_sqs(entry))
            except MalformedMessageError as e:
                self._discard(queue_url, e)
        return messages

    def _discard(self, queue_url: str, error: MalformedMessageError) -> None:
        """Untagged messages can never be measured; delete them so they stop coming back."""
        logger.warning(f"Discarding unmeasurable message: {error}")
        if not error.receipt_handle:
            return
        try:
            self.acknowledge(queue_url, error.receipt_handle)
        except QueueOperationError as e:
            logger.warning(f"Could not discard unmeasurable message: {e}")
