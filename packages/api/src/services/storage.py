# This project was developed with assistance from AI tools.
"""S3-compatible object storage for email attachments.

Uses boto3 synchronous client run in a thread-pool executor for async
compatibility. The module exposes a singleton initialised at app startup
via ``init_storage_service()``.
"""

import asyncio
import logging
import os
import time
from functools import partial

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError

from ..core.config import Settings

logger = logging.getLogger(__name__)


class StorageService:
    """Thin wrapper around a boto3 S3 client."""

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        bucket: str,
        region: str = "us-east-1",
        public_url: str | None = None,
    ):
        self._bucket = bucket
        self._public_url = (public_url or endpoint).rstrip("/")
        self._client = boto3.client(
            "s3",
            endpoint_url=endpoint,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
            config=BotoConfig(
                signature_version="s3v4",
                s3={
                    "addressing_style": "path",
                    "use_accelerate_endpoint": False,
                },
            ),
        )
        self._ensure_bucket()

    def _ensure_bucket(self) -> None:
        """Create the bucket if it doesn't already exist (dev convenience)."""
        try:
            self._client.head_bucket(Bucket=self._bucket)
        except ClientError:
            logger.info("Creating S3 bucket: %s", self._bucket)
            self._client.create_bucket(Bucket=self._bucket)

    async def upload_file(
        self,
        file_data: bytes,
        object_key: str,
        content_type: str,
    ) -> str:
        """Upload bytes to S3 and return the object key."""
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            None,
            partial(
                self._client.put_object,
                Bucket=self._bucket,
                Key=object_key,
                Body=file_data,
                ContentType=content_type,
            ),
        )
        return object_key

    async def store_attachment(
        self,
        deal_id: int,
        file_name: str,
        data: bytes,
        mime_type: str,
    ) -> str:
        """Upload an email attachment for a deal and return its durable URL."""
        object_key = self.build_object_key(deal_id, file_name)
        await self.upload_file(data, object_key, mime_type)
        return self.public_url(object_key)

    def public_url(self, object_key: str) -> str:
        """Path-style URL for an object in the documents bucket."""
        return f"{self._public_url}/{self._bucket}/{object_key}"

    @staticmethod
    def build_object_key(deal_id: int, filename: str, timestamp_ms: int | None = None) -> str:
        """Build the S3 object key: deals/{deal_id}/{epoch_ms}-{filename}.

        The timestamp keeps same-named attachments from different emails apart.
        Strips path components from filename to prevent path traversal attacks.
        """
        if timestamp_ms is None:
            timestamp_ms = int(time.time() * 1000)
        safe_name = os.path.basename(filename) or "attachment"
        return f"deals/{deal_id}/{timestamp_ms}-{safe_name}"


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

_service: StorageService | None = None


def init_storage_service(cfg: Settings) -> StorageService:
    """Initialise the singleton (called once from app lifespan)."""
    global _service  # noqa: PLW0603
    _service = StorageService(
        endpoint=cfg.S3_ENDPOINT,
        access_key=cfg.S3_ACCESS_KEY,
        secret_key=cfg.S3_SECRET_KEY,
        bucket=cfg.S3_BUCKET,
        region=cfg.S3_REGION,
        public_url=cfg.S3_PUBLIC_URL,
    )
    logger.info("StorageService initialised (bucket=%s)", cfg.S3_BUCKET)
    return _service


def get_storage_service() -> StorageService:
    """Return the initialised StorageService singleton."""
    if _service is None:
        raise RuntimeError("StorageService not initialised -- call init_storage_service() first")
    return _service
