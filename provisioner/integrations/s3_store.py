"""
S3-compatible artifact cache store.
"""

import asyncio
import logging
from pathlib import Path

import boto3
from boto3.exceptions import Boto3Error
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import CacheStoreError
from ..models.tool import StorageConfig

# Providers that support virtual-hosted bucket addressing; everything else
# (MinIO, Ceph, OSS/COS gateways) gets path-style requests.
VIRTUAL_HOST_PROVIDERS = {"aws", "s3"}


class S3CacheStore:
    """Fetches and stores tool artifacts in an S3-compatible bucket."""

    def __init__(self, storage: StorageConfig, client=None):
        """
        Initialize the cache store.

        Args:
            storage: Storage connection details
            client: Optional pre-built boto3 S3 client

        Raises:
            CacheStoreError: when the storage is not configured or the client
                cannot be built
        """
        self.logger = logging.getLogger(__name__)
        self.storage = storage

        if client is not None:
            self._client = client
            return

        if not storage.endpoint:
            raise CacheStoreError("cache storage endpoint is not configured")

        scheme = "http" if storage.insecure else "https"
        endpoint = storage.endpoint
        if "://" not in endpoint:
            endpoint = f"{scheme}://{endpoint}"

        addressing = "virtual" if storage.provider.lower() in VIRTUAL_HOST_PROVIDERS else "path"
        try:
            self._client = boto3.client(
                "s3",
                endpoint_url=endpoint,
                aws_access_key_id=storage.ak or None,
                aws_secret_access_key=storage.sk or None,
                region_name=storage.region or None,
                use_ssl=not storage.insecure,
                config=BotoConfig(s3={"addressing_style": addressing}),
            )
        except (BotoCoreError, ValueError) as e:
            raise CacheStoreError(f"create s3 client for {storage.endpoint} failed: {e}") from e

    async def fetch(self, bucket: str, key: str, local_path: Path) -> None:
        """Download ``key`` from ``bucket`` into ``local_path``."""
        try:
            await asyncio.to_thread(self._client.download_file, bucket, key, str(local_path))
        except (BotoCoreError, ClientError, Boto3Error) as e:
            raise CacheStoreError(f"fetch s3://{bucket}/{key} failed: {e}") from e
        self.logger.debug(f"Fetched s3://{bucket}/{key} to {local_path}")

    async def store(self, bucket: str, local_path: Path, key: str) -> None:
        """Upload ``local_path`` to ``bucket`` under ``key``."""
        try:
            await asyncio.to_thread(self._client.upload_file, str(local_path), bucket, key)
        except (BotoCoreError, ClientError, Boto3Error) as e:
            raise CacheStoreError(f"store s3://{bucket}/{key} failed: {e}") from e
        self.logger.debug(f"Stored {local_path} to s3://{bucket}/{key}")
