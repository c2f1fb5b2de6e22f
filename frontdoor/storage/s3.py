"""S3-compatible object storage (AWS S3, MinIO, ...)."""

import posixpath
from typing import Any, BinaryIO, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from frontdoor.storage.base import ObjectNotFoundError, ObjectStorage, StorageError

# Error codes S3 and S3-compatible servers use for a missing key
_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def _is_not_found(error: ClientError) -> bool:
    return str(error.response.get("Error", {}).get("Code", "")) in _NOT_FOUND_CODES


def _quote_filename(name: str) -> str:
    return name.replace("\\", "\\\\").replace('"', '\\"')


class S3Storage(ObjectStorage):
    """Objects stored in an S3 bucket under an optional base path."""

    def __init__(
        self,
        bucket: str,
        base_path: str = "",
        url_expiry: int = 300,
        client: Optional[Any] = None,
        **client_kwargs: Any,
    ):
        """
        Args:
            bucket: Bucket holding the objects
            base_path: Key prefix inside the bucket
            url_expiry: Lifetime of signed URLs in seconds
            client: Pre-built boto3 S3 client; built from client_kwargs when omitted
            client_kwargs: Passed to ``boto3.client("s3", ...)``
        """
        self.bucket = bucket
        self.base_path = base_path.strip("/")
        self.url_expiry = url_expiry
        self.client = client or boto3.client("s3", **client_kwargs)

    def _object_key(self, key: str) -> str:
        key = key.lstrip("/")
        if self.base_path:
            return posixpath.join(self.base_path, key)
        return key

    def open(self, key: str) -> BinaryIO:
        object_key = self._object_key(key)
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=object_key)
        except ClientError as e:
            if _is_not_found(e):
                raise ObjectNotFoundError(key) from e
            raise StorageError(f"get_object {self.bucket}/{object_key} failed: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"get_object {self.bucket}/{object_key} failed: {e}") from e
        return response["Body"]

    def url(self, key: str, name: str) -> str:
        object_key = self._object_key(key)
        try:
            # Presigning never talks to S3, so check existence first
            self.client.head_object(Bucket=self.bucket, Key=object_key)
            return self.client.generate_presigned_url(
                "get_object",
                Params={
                    "Bucket": self.bucket,
                    "Key": object_key,
                    "ResponseContentDisposition": f'attachment; filename="{_quote_filename(name)}"',
                },
                ExpiresIn=self.url_expiry,
            )
        except ClientError as e:
            if _is_not_found(e):
                raise ObjectNotFoundError(key) from e
            raise StorageError(f"signing {self.bucket}/{object_key} failed: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"signing {self.bucket}/{object_key} failed: {e}") from e
