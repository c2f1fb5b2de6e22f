"""Object storage backends served by the storage middleware."""

import logging

from frontdoor.core.config import StorageSettings
from frontdoor.storage.base import (
    ObjectNotFoundError,
    ObjectStorage,
    StorageError,
    URLNotSupportedError,
)
from frontdoor.storage.local import LocalStorage
from frontdoor.storage.s3 import S3Storage

logger = logging.getLogger(__name__)


def new_storage(storage_settings: StorageSettings) -> ObjectStorage:
    """
    Build the object store described by a storage settings block.

    Args:
        storage_settings: Storage configuration

    Returns:
        A LocalStorage or S3Storage instance
    """
    if storage_settings.type == "s3":
        client_kwargs = {
            "endpoint_url": storage_settings.endpoint_url,
            "region_name": storage_settings.region,
            "aws_access_key_id": storage_settings.access_key_id,
            "aws_secret_access_key": storage_settings.secret_access_key,
        }
        logger.info(
            "Using S3 storage: bucket=%s base_path=%s",
            storage_settings.bucket,
            storage_settings.base_path,
        )
        return S3Storage(
            bucket=storage_settings.bucket,
            base_path=storage_settings.base_path,
            url_expiry=storage_settings.url_expiry,
            **{k: v for k, v in client_kwargs.items() if v is not None},
        )

    logger.info("Using local storage: %s", storage_settings.path)
    return LocalStorage(storage_settings.path)


__all__ = [
    "LocalStorage",
    "ObjectNotFoundError",
    "ObjectStorage",
    "S3Storage",
    "StorageError",
    "URLNotSupportedError",
    "new_storage",
]
