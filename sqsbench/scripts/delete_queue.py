# sqsbench/scripts/delete_queue.py
from dotenv import load_dotenv
load_dotenv()

import sys

from sqsbench.core.aws_client import get_sqs_client
from sqsbench.core.config import settings
from sqsbench.core.exceptions import QueueOperationError
from sqsbench.core.logger import logger
from sqsbench.integrations.sqs_client import SQSGateway


def delete_benchmark_queue(gateway: SQSGateway, name: str = settings.SQS_QUEUE_NAME) -> int:
    """
    Delete the benchmark queue so the next run starts from an empty one.
    A missing queue is not an error.
    """
    try:
        urls = [url for url in gateway.list_queues() if url.rstrip("/").endswith(f"/{name}")]
        if not urls:
            print(f"No queue named {name} in {settings.AWS_REGION}")
            return 0
        gateway.delete_queue(urls[0])
    except QueueOperationError as e:
        logger.error(f"Delete Error: {e}")
        return 1
    print(f"Queue deleted successfully: {urls[0]}")
    return 0


if __name__ == "__main__":
    sys.exit(delete_benchmark_queue(SQSGateway(get_sqs_client(max_workers=1))))
