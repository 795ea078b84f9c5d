"""
Object store access for templates and validation schemas.

This module provides functionality for:
- Fetching a whole object from a bucket as bytes
- Running that fetch off the event loop with a hard upper bound on its duration

Objects live in Google Cloud Storage and are read through its S3-compatible
XML API (https://storage.googleapis.com) with a boto3 S3 client. HMAC keys are
taken from GCS_HMAC_ACCESS_KEY / GCS_HMAC_SECRET; when they are absent boto3's
regular credential chain applies. Every call reflects the current stored
content: nothing is cached and nothing is retried.
"""

from __future__ import annotations

import logging
from functools import lru_cache, partial
from typing import Any

import anyio
import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .configuration import ServiceSettings, get_settings
from .errors import StorageError

logger = logging.getLogger(__name__)

PROJECT_HEADER = "x-goog-project-id"


def _add_project_header(project_id: str, request: Any, **kwargs: Any) -> None:
    request.headers[PROJECT_HEADER] = project_id


class ObjectStore:
    """
    Thin wrapper over an S3 client that reads whole objects.

    The wrapper is stateless per call, so one instance is shared by all
    in-flight requests.
    """

    def __init__(self, client: Any):
        self._client = client

    @classmethod
    def from_settings(cls, settings: ServiceSettings) -> "ObjectStore":
        """
        Build a store for the configured GCS endpoint.

        Args:
            settings: Service settings holding endpoint, credentials and timeout

        Returns:
            ObjectStore backed by a boto3 S3 client

        Note:
            Retries are disabled (a single attempt per fetch) and connect/read
            timeouts follow STORAGE_TIMEOUT_SECONDS. Checksum negotiation is
            limited to what the operation requires, since the GCS XML API does
            not implement the newer S3 checksum headers.
        """
        client = boto3.client(
            "s3",
            endpoint_url=settings.storage_endpoint,
            region_name=settings.storage_region,
            aws_access_key_id=settings.hmac_access_key,
            aws_secret_access_key=settings.hmac_secret,
            config=Config(
                connect_timeout=settings.storage_timeout_seconds,
                read_timeout=settings.storage_timeout_seconds,
                retries={"total_max_attempts": 1, "mode": "standard"},
                s3={"addressing_style": "path"},
                request_checksum_calculation="when_required",
                response_checksum_validation="when_required",
            ),
        )
        if settings.project_id:
            client.meta.events.register("before-sign.s3", partial(_add_project_header, settings.project_id))
        logger.info(f"Object store client ready for {settings.storage_endpoint}")
        return cls(client)

    def fetch(self, bucket: str, object_name: str) -> bytes:
        """
        Download an object and return its full contents.

        Args:
            bucket: Bucket holding the object
            object_name: Object key within the bucket

        Returns:
            The object body as bytes

        Raises:
            StorageError: If the bucket or object does not exist, the
                credentials are rejected, or the transfer fails
        """
        logger.debug(f"Fetching gs://{bucket}/{object_name}")
        try:
            response = self._client.get_object(Bucket=bucket, Key=object_name)
            body = response["Body"]
            try:
                data = body.read()
            finally:
                body.close()
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            raise StorageError(bucket, object_name, f"{code}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(bucket, object_name, str(e)) from e

        logger.debug(f"Fetched gs://{bucket}/{object_name} ({len(data)} bytes)")
        return data


async def fetch_object(store: ObjectStore, bucket: str, object_name: str, *, phase: str, timeout: float) -> bytes:
    """
    Fetch an object from a worker thread, bounded by ``timeout`` seconds.

    Args:
        store: Store to read from
        bucket: Bucket holding the object
        object_name: Object key within the bucket
        phase: Pipeline phase reported to the caller on failure
        timeout: Upper bound on the whole fetch, in seconds

    Raises:
        StorageError: Tagged with ``phase`` when the fetch fails or times out

    Note:
        On timeout the request is released immediately; the worker thread is
        abandoned and finishes on its own, bounded by the client's socket
        timeouts.
    """
    try:
        with anyio.fail_after(timeout):
            return await anyio.to_thread.run_sync(store.fetch, bucket, object_name, abandon_on_cancel=True)
    except TimeoutError as e:
        logger.error(f"Timed out after {timeout}s fetching gs://{bucket}/{object_name}")
        raise StorageError(bucket, object_name, f"timed out after {timeout}s", phase=phase) from e
    except StorageError as e:
        logger.error(f"Storage failure while {phase}: {e}")
        raise StorageError(e.bucket, e.object_name, e.reason, phase=phase) from e


@lru_cache(maxsize=1)
def get_object_store() -> ObjectStore:
    return ObjectStore.from_settings(get_settings())
