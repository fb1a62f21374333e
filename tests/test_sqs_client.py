"""
Tests for the SQS queue gateway, run against a real boto3 client with
botocore's Stubber so no request leaves the process.
"""

import boto3
import pytest
from botocore.stub import ANY, Stubber

from sqsbench.core.exceptions import QueueOperationError, QueueSetupError
from sqsbench.integrations.sqs_client import SQSGateway
from sqsbench.schemas.sqs_models import OutboundMessage

QUEUE_URL = "https://sqs.eu-west-2.amazonaws.com/000000000000/benchmark-queue"


@pytest.fixture
def sqs():
    client = boto3.client(
        "sqs",
        region_name="eu-west-2",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )
    with Stubber(client) as stubber:
        yield client, stubber
        stubber.assert_no_pending_responses()


def _entry(i, enqueue_time="1000", index=None):
    attributes = {"EnqueueTime": {"DataType": "Number", "StringValue": enqueue_time}}
    if index is not None:
        attributes["Index"] = {"DataType": "Number", "StringValue": str(index)}
    return {
        "MessageId": f"id-{i}",
        "ReceiptHandle": f"rh-{i}",
        "Body": "{}",
        "MessageAttributes": attributes,
    }


class TestEnsureQueue:
    """Tests for idempotent queue lookup / creation."""

    def test_existing_queue_is_not_created(self, sqs):
        client, stubber = sqs
        stubber.add_response("get_queue_url", {"QueueUrl": QUEUE_URL}, {"QueueName": "benchmark-queue"})

        assert SQSGateway(client).ensure_queue("benchmark-queue") == QUEUE_URL

    def test_missing_queue_is_created(self, sqs):
        client, stubber = sqs
        stubber.add_client_error(
            "get_queue_url", service_error_code="QueueDoesNotExist", http_status_code=400
        )
        stubber.add_response("create_queue", {"QueueUrl": QUEUE_URL}, {"QueueName": "benchmark-queue"})

        assert SQSGateway(client).ensure_queue("benchmark-queue") == QUEUE_URL

    def test_legacy_missing_queue_code_is_created(self, sqs):
        client, stubber = sqs
        stubber.add_client_error(
            "get_queue_url",
            service_error_code="AWS.SimpleQueueService.NonExistentQueue",
            http_status_code=400,
        )
        stubber.add_response("create_queue", {"QueueUrl": QUEUE_URL})

        assert SQSGateway(client).ensure_queue("benchmark-queue") == QUEUE_URL

    def test_create_failure_is_fatal(self, sqs):
        client, stubber = sqs
        stubber.add_client_error(
            "get_queue_url", service_error_code="QueueDoesNotExist", http_status_code=400
        )
        stubber.add_client_error("create_queue", service_error_code="AccessDenied", http_status_code=403)

        with pytest.raises(QueueSetupError):
            SQSGateway(client).ensure_queue("benchmark-queue")

    def test_lookup_failure_other_than_missing_is_fatal(self, sqs):
        client, stubber = sqs
        stubber.add_client_error("get_queue_url", service_error_code="AccessDenied", http_status_code=403)

        with pytest.raises(QueueSetupError):
            SQSGateway(client).ensure_queue("benchmark-queue")


class TestSend:
    """Tests for tagged sends."""

    def test_send_attaches_index_and_enqueue_time(self, sqs):
        client, stubber = sqs
        message = OutboundMessage(body="payload", index=7, enqueue_time_ns=1234567890)
        stubber.add_response(
            "send_message",
            {"MessageId": "abc"},
            {
                "QueueUrl": QUEUE_URL,
                "MessageBody": "payload",
                "MessageAttributes": {
                    "EnqueueTime": {"DataType": "Number", "StringValue": "1234567890"},
                    "Index": {"DataType": "Number", "StringValue": "7"},
                },
            },
        )

        assert SQSGateway(client).send(QUEUE_URL, message) == "abc"

    def test_send_failure_raises_operation_error(self, sqs):
        client, stubber = sqs
        stubber.add_client_error("send_message", service_error_code="ThrottlingException", http_status_code=400)

        with pytest.raises(QueueOperationError) as exc:
            SQSGateway(client).send(QUEUE_URL, OutboundMessage(body="x", index=1, enqueue_time_ns=1))
        assert exc.value.operation == "SendMessage"


class TestReceive:
    """Tests for single and batch receives."""

    def test_receive_one_on_empty_queue_returns_none(self, sqs):
        client, stubber = sqs
        stubber.add_response(
            "receive_message",
            {},
            {
                "QueueUrl": QUEUE_URL,
                "AttributeNames": ["SentTimestamp"],
                "MessageAttributeNames": ["All"],
                "MaxNumberOfMessages": 1,
                "VisibilityTimeout": 1,
                "WaitTimeSeconds": 0,
            },
        )

        assert SQSGateway(client).receive_one(QUEUE_URL, visibility_timeout=1) is None

    def test_receive_one_parses_tags(self, sqs):
        client, stubber = sqs
        stubber.add_response("receive_message", {"Messages": [_entry(1, "5000", index=3)]})

        message = SQSGateway(client).receive_one(QUEUE_URL, visibility_timeout=1)

        assert message.receipt_handle == "rh-1"
        assert message.enqueue_time_ns == 5000
        assert message.index == 3

    def test_receive_batch_clamps_request_to_ten(self, sqs):
        client, stubber = sqs
        stubber.add_response(
            "receive_message",
            {"Messages": [_entry(i) for i in range(10)]},
            {
                "QueueUrl": QUEUE_URL,
                "AttributeNames": ["SentTimestamp"],
                "MessageAttributeNames": ["All"],
                "MaxNumberOfMessages": 10,
                "VisibilityTimeout": 1,
                "WaitTimeSeconds": 0,
            },
        )

        messages = SQSGateway(client).receive_batch(QUEUE_URL, max_count=50, visibility_timeout=1)

        assert len(messages) == 10

    def test_receive_batch_never_returns_more_than_ten(self, sqs):
        client, stubber = sqs
        stubber.add_response("receive_message", {"Messages": [_entry(i) for i in range(14)]})

        messages = SQSGateway(client).receive_batch(QUEUE_URL, max_count=10, visibility_timeout=1)

        assert len(messages) == 10

    def test_untagged_message_is_discarded(self, sqs):
        client, stubber = sqs
        untagged = {"MessageId": "id-x", "ReceiptHandle": "rh-x", "Body": "{}"}
        stubber.add_response("receive_message", {"Messages": [untagged, _entry(1)]})
        stubber.add_response("delete_message", {}, {"QueueUrl": QUEUE_URL, "ReceiptHandle": "rh-x"})

        messages = SQSGateway(client).receive_batch(QUEUE_URL, max_count=10, visibility_timeout=1)

        assert [m.receipt_handle for m in messages] == ["rh-1"]

    def test_wait_time_is_forwarded(self, sqs):
        client, stubber = sqs
        stubber.add_response(
            "receive_message",
            {},
            {
                "QueueUrl": QUEUE_URL,
                "AttributeNames": ANY,
                "MessageAttributeNames": ANY,
                "MaxNumberOfMessages": 1,
                "VisibilityTimeout": 1,
                "WaitTimeSeconds": 5,
            },
        )

        assert SQSGateway(client, wait_time_seconds=5).receive_one(QUEUE_URL, 1) is None

    def test_receive_failure_raises_operation_error(self, sqs):
        client, stubber = sqs
        stubber.add_client_error("receive_message", service_error_code="OverLimit", http_status_code=400)

        with pytest.raises(QueueOperationError):
            SQSGateway(client).receive_one(QUEUE_URL, visibility_timeout=1)


class TestAcknowledge:
    """Tests for single and batch deletes."""

    def test_acknowledge_deletes_by_receipt_handle(self, sqs):
        client, stubber = sqs
        stubber.add_response("delete_message", {}, {"QueueUrl": QUEUE_URL, "ReceiptHandle": "rh-1"})

        SQSGateway(client).acknowledge(QUEUE_URL, "rh-1")

    def test_batch_surfaces_partial_failures(self, sqs):
        client, stubber = sqs
        stubber.add_response(
            "delete_message_batch",
            {
                "Successful": [{"Id": "0"}],
                "Failed": [
                    {"Id": "1", "SenderFault": True, "Code": "ReceiptHandleIsInvalid", "Message": "bad"}
                ],
            },
            {
                "QueueUrl": QUEUE_URL,
                "Entries": [
                    {"Id": "0", "ReceiptHandle": "rh-0"},
                    {"Id": "1", "ReceiptHandle": "rh-1"},
                ],
            },
        )

        result = SQSGateway(client).acknowledge_batch(QUEUE_URL, {"0": "rh-0", "1": "rh-1"})

        assert result.succeeded == ["0"]
        assert len(result.failed) == 1
        assert result.failed[0].id == "1"
        assert result.failed[0].code == "ReceiptHandleIsInvalid"
        assert result.failed[0].sender_fault is True

    def test_batch_call_failure_raises(self, sqs):
        client, stubber = sqs
        stubber.add_client_error(
            "delete_message_batch", service_error_code="InternalError", http_status_code=500
        )

        with pytest.raises(QueueOperationError):
            SQSGateway(client).acknowledge_batch(QUEUE_URL, {"0": "rh-0"})

    def test_empty_batch_makes_no_call(self, sqs):
        client, _ = sqs

        result = SQSGateway(client).acknowledge_batch(QUEUE_URL, {})

        assert result.succeeded == []
        assert result.failed == []


class TestAdministration:
    """Tests for queue listing and deletion."""

    def test_list_queues_follows_pagination(self, sqs):
        client, stubber = sqs
        stubber.add_response("list_queues", {"QueueUrls": ["url-a"], "NextToken": "t1"})
        stubber.add_response("list_queues", {"QueueUrls": ["url-b"]}, {"NextToken": "t1"})

        assert SQSGateway(client).list_queues() == ["url-a", "url-b"]

    def test_delete_queue_failure_raises(self, sqs):
        client, stubber = sqs
        stubber.add_client_error("delete_queue", service_error_code="AccessDenied", http_status_code=403)

        with pytest.raises(QueueOperationError):
            SQSGateway(client).delete_queue(QUEUE_URL)
