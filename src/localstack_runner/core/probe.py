"""End-to-end check that LocalStack actually serves requests.

Creates and deletes a throwaway SQS queue through a boto3 client pointed at
the stack's endpoint. Best effort: any failure means "not functional".
"""

from __future__ import annotations

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from localstack_runner import config

log = structlog.get_logger(__name__)


class FunctionalProbe:
    """Round-trips a create/delete of an SQS queue against `endpoint_url`."""

    def __init__(
        self,
        endpoint_url: str,
        region: str | None = None,
        queue_name: str | None = None,
    ) -> None:
        self._endpoint_url = endpoint_url
        self._region = region or config.PROBE_REGION
        self._queue_name = queue_name or config.PROBE_QUEUE_NAME

    def _sqs_client(self):
        session = boto3.Session(
            aws_access_key_id=config.PROBE_ACCESS_KEY,
            aws_secret_access_key=config.PROBE_SECRET_KEY,
            aws_session_token=config.PROBE_SESSION_TOKEN,
            region_name=self._region,
        )
        cfg = Config(retries={"max_attempts": 2})
        return session.client("sqs", endpoint_url=self._endpoint_url, config=cfg)

    def is_functional(self) -> bool:
        if not self._endpoint_url:
            return False
        try:
            sqs = self._sqs_client()
        except (BotoCoreError, ValueError) as exc:
            log.warning("probe_client_failed", error=str(exc))
            return False

        try:
            queue_url = sqs.create_queue(QueueName=self._queue_name).get("QueueUrl")
        except (BotoCoreError, ClientError) as exc:
            log.warning("probe_create_failed", endpoint=self._endpoint_url, error=str(exc))
            return False
        if not queue_url:
            return False

        try:
            sqs.delete_queue(QueueUrl=queue_url)
        except (BotoCoreError, ClientError) as exc:
            log.debug("probe_cleanup_failed", queue_url=queue_url, error=str(exc))

        log.info("probe_ok", endpoint=self._endpoint_url)
        return True
