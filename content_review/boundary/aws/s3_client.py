"""
S3-backed blob store.

Stores uploaded content, job records and prompts. boto3 is synchronous,
so each call runs in a worker thread.

Dependencies: boto3, botocore
System role: BlobStore implementation for the job store and worker
"""

import asyncio
import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from content_review.boundary.aws.interfaces import BlobLocation, BlobObject
from content_review.core.errors import classify_exception
from content_review.core.exceptions import BlobNotFoundError, BlobStoreError
from content_review.models.errors import ErrorCode

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


def _error_code(error: BaseException) -> ErrorCode:
    """Classify an S3 failure; unmapped errors count as the service being unavailable."""
    code = classify_exception(error)
    if code in (ErrorCode.PROCESSING_ERROR, ErrorCode.UNKNOWN_PROVIDER_ERROR):
        return ErrorCode.SERVICE_UNAVAILABLE
    return code


class S3BlobStore:
    """Blob store over a single S3 bucket."""

    def __init__(self, s3_client: Any, bucket: str) -> None:
        """
        Initialize S3 blob store.

        Args:
            s3_client: Boto3 S3 client
            bucket: S3 bucket name

        Raises:
            ValueError: If s3_client or bucket not provided
        """
        if not s3_client:
            raise ValueError("s3_client is required")
        if not bucket:
            raise ValueError("bucket is required")
        self._s3 = s3_client
        self._bucket = bucket

    @property
    def bucket(self) -> str:
        return self._bucket

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> BlobLocation:
        """
        Write an object.

        Args:
            key: Object key
            data: Object body
            content_type: MIME type stored with the object
            metadata: Optional user metadata

        Returns:
            BlobLocation: Key and s3:// location

        Raises:
            BlobStoreError: If the upload fails
        """
        params: dict[str, Any] = {
            "Bucket": self._bucket,
            "Key": key,
            "Body": data,
            "ContentType": content_type,
        }
        if metadata:
            params["Metadata"] = metadata
        try:
            await asyncio.to_thread(self._s3.put_object, **params)
        except (ClientError, BotoCoreError) as e:
            logger.error("%s:put - %s: %s", __name__, type(e).__name__, e, extra={"key": key})
            raise BlobStoreError(
                f"Failed to write object: {type(e).__name__}", key=key, code=_error_code(e)
            ) from e
        return BlobLocation(key=key, location=f"s3://{self._bucket}/{key}")

    async def get(self, key: str) -> bytes:
        """
        Read an object body.

        Raises:
            BlobNotFoundError: Object does not exist
            BlobStoreError: Any other S3 failure
        """
        try:
            response = await asyncio.to_thread(self._s3.get_object, Bucket=self._bucket, Key=key)
            return await asyncio.to_thread(response["Body"].read)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code in NOT_FOUND_CODES:
                raise BlobNotFoundError(f"Object not found: {key}", key=key) from e
            logger.error("%s:get - ClientError %s", __name__, code, extra={"key": key})
            raise BlobStoreError(f"Failed to read object: {code}", key=key, code=_error_code(e)) from e
        except BotoCoreError as e:
            logger.error("%s:get - %s: %s", __name__, type(e).__name__, e, extra={"key": key})
            raise BlobStoreError(
                f"Failed to read object: {type(e).__name__}", key=key, code=_error_code(e)
            ) from e

    async def delete(self, key: str) -> None:
        """Delete an object (S3 treats missing keys as success)."""
        try:
            await asyncio.to_thread(self._s3.delete_object, Bucket=self._bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            logger.error("%s:delete - %s: %s", __name__, type(e).__name__, e, extra={"key": key})
            raise BlobStoreError(
                f"Failed to delete object: {type(e).__name__}", key=key, code=_error_code(e)
            ) from e

    async def list_objects(self, prefix: str) -> list[BlobObject]:
        """
        List every object under a prefix, following continuation tokens.

        Returns:
            list[BlobObject]: Unordered listing with LastModified stamps
        """
        return await asyncio.to_thread(self._list_sync, prefix)

    def _list_sync(self, prefix: str) -> list[BlobObject]:
        objects: list[BlobObject] = []
        try:
            paginator = self._s3.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self._bucket, Prefix=prefix):
                for item in page.get("Contents", []):
                    objects.append(
                        BlobObject(
                            key=item["Key"],
                            last_modified=item["LastModified"],
                            size=item.get("Size", 0),
                        )
                    )
        except (ClientError, BotoCoreError) as e:
            logger.error("%s:list_objects - %s: %s", __name__, type(e).__name__, e, extra={"prefix": prefix})
            raise BlobStoreError(
                f"Failed to list objects: {type(e).__name__}",
                details={"prefix": prefix},
                code=_error_code(e),
            ) from e
        return objects
