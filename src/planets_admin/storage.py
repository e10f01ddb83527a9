"""S3-compatible object storage used for uploaded files.

Works against any endpoint boto3 can talk to; production points it at a
Cloudflare R2 bucket.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterator

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from planets_admin.config import Settings
from planets_admin.errors import StorageError

logger = logging.getLogger(__name__)

MISSING_KEY_CODES = {"NoSuchKey", "404", "NotFound"}

CHUNK_SIZE = 64 * 1024


@dataclass
class StoredObject:
    """An object read back from the bucket.

    ``stream`` is the botocore streaming body; it is read lazily.
    """

    key: str
    stream: Any
    content_type: str | None

    def iter_chunks(self, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
        """Yield the object body in chunks, closing the stream afterwards."""
        try:
            yield from self.stream.iter_chunks(chunk_size)
        finally:
            self.stream.close()


class ObjectStorage:
    """Thin wrapper around a boto3 S3 client bound to one bucket."""

    def __init__(self, client: Any, bucket: str):
        self.client = client
        self.bucket = bucket

    @classmethod
    def from_settings(cls, settings: Settings) -> "ObjectStorage":
        settings.require_storage()
        client = boto3.client(
            "s3",
            endpoint_url=settings.r2_endpoint.strip().rstrip("/"),
            aws_access_key_id=settings.r2_access_key_id,
            aws_secret_access_key=settings.r2_secret_access_key,
            region_name=settings.r2_region,
        )
        return cls(client, settings.r2_bucket_name)

    def put_object(self, key: str, body: bytes, content_type: str) -> None:
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=body, ContentType=content_type)
        except (BotoCoreError, ClientError) as e:
            logger.error("Failed to upload %s: %s", key, e)
            raise StorageError(f"Failed to upload {key}") from e
        logger.info("Uploaded %s (%d bytes)", key, len(body))

    def delete_object(self, key: str) -> bool:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            logger.warning("Failed to delete %s: %s", key, e)
            return False
        except BotoCoreError as e:
            logger.error("Failed to delete %s: %s", key, e)
            raise StorageError(f"Failed to delete {key}") from e
        logger.info("Deleted %s", key)
        return True

    def list_objects(self, prefix: str = "") -> list[dict]:
        """All objects under ``prefix``, following pagination."""
        objects = []
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                objects.extend(page.get("Contents", []))
        except (BotoCoreError, ClientError) as e:
            logger.error("Failed to list objects under %r: %s", prefix, e)
            raise StorageError("Failed to list objects") from e
        return objects

    def get_object(self, key: str) -> StoredObject | None:
        """Read an object, or None when the key does not exist."""
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in MISSING_KEY_CODES:
                return None
            logger.error("Failed to read %s: %s", key, e)
            raise StorageError(f"Failed to read {key}") from e
        except BotoCoreError as e:
            logger.error("Failed to read %s: %s", key, e)
            raise StorageError(f"Failed to read {key}") from e
        return StoredObject(key=key, stream=response["Body"], content_type=response.get("ContentType"))
