"""Filesystem-backed object storage."""

from pathlib import Path
from typing import BinaryIO, Union

from frontdoor.storage.base import ObjectNotFoundError, ObjectStorage, URLNotSupportedError


class LocalStorage(ObjectStorage):
    """Objects stored as plain files under a root directory.

    Local files have no addressable URL, so this store can only be served in
    proxy mode.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).resolve()

    def _resolve(self, key: str) -> Path:
        # Keys must stay inside the root; anything escaping it does not exist
        candidate = (self.root / key.lstrip("/")).resolve()
        if candidate == self.root or self.root not in candidate.parents:
            raise ObjectNotFoundError(key)
        return candidate

    def open(self, key: str) -> BinaryIO:
        path = self._resolve(key)
        try:
            return path.open("rb")
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as e:
            raise ObjectNotFoundError(key) from e

    def url(self, key: str, name: str) -> str:
        raise URLNotSupportedError(f"local storage at {self.root} cannot sign URLs")
