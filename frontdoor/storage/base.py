"""Abstract base class for object storage backends.

This module defines the interface contract the storage-serving middleware
consumes. Backends are content-addressed stores: each object is identified
by a key and read back as a binary stream.
"""

from abc import ABC, abstractmethod
from typing import BinaryIO


class StorageError(Exception):
    """Base class for object storage failures."""


class ObjectNotFoundError(StorageError, FileNotFoundError):
    """The requested key does not exist in the store."""

    def __init__(self, key: str):
        super().__init__(f"object does not exist: {key}")
        self.key = key


class URLNotSupportedError(StorageError):
    """The store has no addressable URLs for its objects."""


class ObjectStorage(ABC):
    """Abstract base class for object storage backends.

    Implementations must be safe to call concurrently: the dispatch pipeline
    shares one instance across all requests and performs no locking.

    Example usage:
        store = new_storage(settings.avatar_storage)
        with store.open("ab/cd/avatar.png") as stream:
            data = stream.read()
    """

    @abstractmethod
    def open(self, key: str) -> BinaryIO:
        """Open an object for reading.

        Args:
            key: Object key relative to the store root.

        Returns:
            A readable binary stream. The caller owns it and must close it.

        Raises:
            ObjectNotFoundError: If the key does not exist.
            StorageError: For any other backend failure.
        """
        pass

    @abstractmethod
    def url(self, key: str, name: str) -> str:
        """Build a time-limited URL clients can fetch the object from.

        Args:
            key: Object key relative to the store root.
            name: File name offered to the client when it saves the object.

        Returns:
            An absolute URL.

        Raises:
            ObjectNotFoundError: If the key does not exist.
            URLNotSupportedError: If the store cannot sign URLs.
            StorageError: For any other backend failure.
        """
        pass
