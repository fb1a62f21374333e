# core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional


class Settings(BaseSettings):
    """
    Centralized harness configuration.
    Defaults reproduce the reference benchmark run against eu-west-2.
    """

    # ------------------------------------------------------------
    # Project / Runtime
    # ------------------------------------------------------------
    PROJECT_NAME: str = "sqsbench"
    DEBUG: bool = False

    """
    Run mode selector (e, tbe, d, bd, tbbd, sync).
    Validated by the dispatcher, not here, so an invalid value exits cleanly.
    """
    MODE: Optional[str] = None

    # ------------------------------------------------------------
    # AWS Core
    # ------------------------------------------------------------
    AWS_REGION: str = "eu-west-2"
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    AWS_SESSION_TOKEN: Optional[str] = None
    AWS_PROFILE: Optional[str] = None

    # ------------------------------------------------------------
    # Messaging (SQS)
    # ------------------------------------------------------------
    SQS_QUEUE_NAME: str = "benchmark-queue"
    SQS_ENDPOINT_URL: Optional[str] = Field(
        default=None,
        description="Override endpoint, e.g. a local SQS emulator"
    )
    VISIBILITY_TIMEOUT_SECS: int = Field(
        default=1,
        ge=0,
        description="Seconds a received message stays hidden from other consumers"
    )
    RECEIVE_WAIT_TIME_SECS: int = Field(
        default=0,
        ge=0,
        le=20,
        description="0 = short polling"
    )
    BATCH_SIZE: int = Field(
        default=10,
        ge=1,
        le=10,
        description="Messages per batch receive (SQS maximum is 10)"
    )

    # ------------------------------------------------------------
    # Workload shape
    # ------------------------------------------------------------
    MESSAGE_COUNT: int = Field(default=10000, ge=1)
    ENQUEUE_PARALLELISM: int = Field(default=10, ge=1)
    DEQUEUE_PARALLELISM: int = Field(default=10, ge=1)
    SYNC_ROUND_TRIPS: int = Field(default=100, ge=1)

    # ------------------------------------------------------------
    # Time bound runs
    # ------------------------------------------------------------
    RUNTIME_DURATION_SECS: float = Field(default=60, gt=0)
    ENQUEUING_WORKERS: int = Field(default=300, ge=1)
    ENQUEUE_PACE_MS: int = Field(
        default=975,
        ge=0,
        description="Sleep between sends of one open-loop worker"
    )
    DRAIN_GRACE_SECS: float = Field(
        default=30,
        ge=0,
        description="Extra time given to in-flight batches before the final snapshot"
    )
    EMPTY_RECEIVE_BACKOFF_MS: int = Field(
        default=0,
        ge=0,
        description="Max jittered sleep after an empty receive (0 = busy-poll)"
    )

    # ------------------------------------------------------------
    # Output artifacts
    # ------------------------------------------------------------
    LATENCIES_PATH: str = "/tmp/sqs_latencies.txt"
    TIME_BOUND_LATENCIES_PATH: str = "/tmp/sqs_time_bound_latencies.txt"

    @property
    def max_workers(self) -> int:
        return max(self.ENQUEUE_PARALLELISM, self.DEQUEUE_PARALLELISM, self.ENQUEUING_WORKERS)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
