# sqsbench/core/aws_client.py
"""
AWS client factory for the harness.

One SQS client is built per run in the main thread and shared by every
worker thread; boto3 clients are thread-safe, sessions are not.
"""
import os
from typing import Optional

import boto3
from botocore.config import Config

from sqsbench.core.config import settings
from sqsbench.core.logger import logger


def _client_config(max_workers: int) -> Config:
    """
    Botocore retries are disabled: a failed call is dropped by the caller.
    The connection pool must be at least as large as the worker count,
    otherwise workers queue up inside urllib3 and skew the latency numbers.
    """
    return Config(
        region_name=settings.AWS_REGION,
        retries={"max_attempts": 0},
        max_pool_connections=max(max_workers, 10),
    )


def get_sqs_client(max_workers: Optional[int] = None):
    """Get SQS client with proper credentials."""
    try:
        # Get credentials from settings (which loads from .env) or environment
        aws_access_key_id = settings.AWS_ACCESS_KEY_ID or os.getenv("AWS_ACCESS_KEY_ID")
        aws_secret_access_key = settings.AWS_SECRET_ACCESS_KEY or os.getenv("AWS_SECRET_ACCESS_KEY")
        aws_session_token = settings.AWS_SESSION_TOKEN or os.getenv("AWS_SESSION_TOKEN")

        if aws_access_key_id and aws_secret_access_key:
            session = boto3.Session(
                aws_access_key_id=aws_access_key_id,
                aws_secret_access_key=aws_secret_access_key,
                aws_session_token=aws_session_token,  # Optional for temporary credentials
                region_name=settings.AWS_REGION,
            )
        else:
            # Fall back to the shared credentials file / AWS_PROFILE
            session = boto3.Session(
                profile_name=settings.AWS_PROFILE,
                region_name=settings.AWS_REGION,
            )

        client = session.client(
            "sqs",
            endpoint_url=settings.SQS_ENDPOINT_URL,
            config=_client_config(max_workers or settings.max_workers),
        )
        logger.info("SQS client initialized for region %s", settings.AWS_REGION)
        return client
    except Exception as e:
        logger.error(f"Failed to initialize SQS client: {str(e)}")
        raise


def validate_aws_credentials() -> bool:
    """Validate that AWS credentials are properly configured."""
    # Check both settings and environment variables
    aws_access_key_id = settings.AWS_ACCESS_KEY_ID or os.getenv("AWS_ACCESS_KEY_ID")
    aws_secret_access_key = settings.AWS_SECRET_ACCESS_KEY or os.getenv("AWS_SECRET_ACCESS_KEY")

    if aws_access_key_id and aws_secret_access_key:
        logger.info("AWS credentials found in settings/environment")
        return True

    if settings.AWS_PROFILE or os.getenv("AWS_SHARED_CREDENTIALS_FILE") or os.getenv("AWS_PROFILE"):
        logger.info("Using AWS shared credentials file / profile")
        return True

    logger.warning("Missing AWS credentials in both settings and environment variables")
    logger.info("AWS credentials not found. Set AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY in the .env file, "
                "export AWS_SHARED_CREDENTIALS_FILE, or configure AWS CLI with 'aws configure'")
    return False
