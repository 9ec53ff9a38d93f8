"""S3-compatible object storage client for project buckets."""

import asyncio
import json
import logging
from typing import AsyncIterator, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from deployer.config.settings import StorageConfig
from deployer.utils.exceptions import StorageError

logger = logging.getLogger(__name__)

_MISSING_BUCKET_CODES = {"404", "NoSuchBucket", "NotFound"}
_EXISTING_BUCKET_CODES = {"BucketAlreadyOwnedByYou", "BucketAlreadyExists"}


def _error_code(exc: Exception) -> str:
    if isinstance(exc, ClientError):
        return str(exc.response.get("Error", {}).get("Code", ""))
    return ""


def public_read_policy(bucket: str) -> str:
    """Bucket policy granting anonymous GetObject on every key."""
    return json.dumps({
        "Version": "2012-10-17",
        "Statement": [{
            "Effect": "Allow",
            "Principal": {"AWS": ["*"]},
            "Action": ["s3:GetObject"],
            "Resource": [f"arn:aws:s3:::{bucket}/*"],
        }],
    })


def create_s3_client():
    """Build a boto3 S3 client from StorageConfig."""
    return boto3.client(
        "s3",
        endpoint_url=StorageConfig.get_endpoint_url(),
        aws_access_key_id=StorageConfig.ACCESS_KEY or None,
        aws_secret_access_key=StorageConfig.SECRET_KEY or None,
        region_name=StorageConfig.REGION,
        config=BotoConfig(
            signature_version="s3v4",
            s3={"addressing_style": "path"},
            connect_timeout=StorageConfig.CONNECT_TIMEOUT,
            read_timeout=StorageConfig.READ_TIMEOUT,
            # Retry policy belongs to the caller
            retries={"total_max_attempts": 1, "mode": "standard"},
        ),
    )


class ObjectStore:
    """
    Async facade over a blocking boto3 S3 client.

    Every call runs in a worker thread. Client and transport errors are
    raised as ``StorageError``.
    """

    def __init__(self, client=None, page_size: int = 1000):
        self._client = client
        self._page_size = page_size

    @property
    def client(self):
        if self._client is None:
            self._client = create_s3_client()
        return self._client

    async def _call(self, operation: str, key: Optional[str] = None, **kwargs):
        method = getattr(self.client, operation)
        try:
            return await asyncio.to_thread(method, **kwargs)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(
                f"{operation} failed for {kwargs.get('Bucket')}/{key or ''}: {e}",
                operation=operation,
                key=key,
            ) from e

    async def bucket_exists(self, bucket: str) -> bool:
        try:
            await self._call("head_bucket", Bucket=bucket)
        except StorageError as e:
            if _error_code(e.__cause__) in _MISSING_BUCKET_CODES:
                return False
            raise
        return True

    async def ensure_bucket(self, bucket: str) -> bool:
        """
        Create the bucket if needed and make it publicly readable.

        Returns True when the bucket was created by this call. A bucket that
        already exists is not an error; a policy that fails to apply is
        logged and left for the operator.
        """
        if await self.bucket_exists(bucket):
            return False

        try:
            await self._call("create_bucket", Bucket=bucket)
        except StorageError as e:
            if _error_code(e.__cause__) in _EXISTING_BUCKET_CODES:
                return False
            raise

        logger.info(f"Created bucket {bucket}")
        try:
            await self._call("put_bucket_policy", Bucket=bucket, Policy=public_read_policy(bucket))
        except StorageError as e:
            logger.warning(f"Failed to set public-read policy on bucket {bucket}: {e}")
        return True

    async def put_object(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        await self._call(
            "put_object",
            key=key,
            Bucket=bucket,
            Key=key,
            Body=data,
            ContentLength=len(data),
            ContentType=content_type,
        )

    async def get_object(self, bucket: str, key: str) -> bytes:
        response = await self._call("get_object", key=key, Bucket=bucket, Key=key)
        return await asyncio.to_thread(response["Body"].read)

    async def copy_object(self, bucket: str, source_key: str, dest_key: str) -> None:
        await self._call(
            "copy_object",
            key=dest_key,
            Bucket=bucket,
            Key=dest_key,
            CopySource={"Bucket": bucket, "Key": source_key},
            MetadataDirective="COPY",
        )

    async def delete_object(self, bucket: str, key: str) -> None:
        await self._call("delete_object", key=key, Bucket=bucket, Key=key)

    async def iter_keys(self, bucket: str, prefix: str = "") -> AsyncIterator[str]:
        """
        Yield every key under ``prefix``, one listing page at a time.

        A missing bucket yields nothing. A listing error mid-scan raises; the
        scan can only be restarted from the beginning.
        """
        token = None
        while True:
            kwargs = {"Bucket": bucket, "Prefix": prefix, "MaxKeys": self._page_size}
            if token:
                kwargs["ContinuationToken"] = token
            try:
                page = await self._call("list_objects_v2", key=prefix, **kwargs)
            except StorageError as e:
                if _error_code(e.__cause__) in _MISSING_BUCKET_CODES:
                    return
                raise

            for obj in page.get("Contents", []):
                yield obj["Key"]

            if not page.get("IsTruncated"):
                return
            token = page.get("NextContinuationToken")
