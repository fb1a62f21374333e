# sqsbench/scripts/list_queues.py
from dotenv import load_dotenv
load_dotenv()

import sys

from sqsbench.core.aws_client import get_sqs_client
from sqsbench.core.config import settings
from sqsbench.core.exceptions import QueueOperationError
from sqsbench.core.logger import logger
from sqsbench.integrations.sqs_client import SQSGateway


def list_queues(gateway: SQSGateway) -> int:
    """Print every queue URL in the configured region, numbered from 0."""
    try:
        urls = gateway.list_queues()
    except QueueOperationError as e:
        logger.error(f"List Error: {e}")
        return 1

    print(f"List of SQS Queues in {settings.AWS_REGION}")
    for i, url in enumerate(urls):
        print(f"{i}: {url}")
    return 0


if __name__ == "__main__":
    sys.exit(list_queues(SQSGateway(get_sqs_client(max_workers=1))))
