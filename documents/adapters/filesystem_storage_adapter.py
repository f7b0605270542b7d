"""Filesystem implementation of the blob store.

Stores raw document bytes below a root directory, one file per key.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict

from core.contracts.documents import IBlobStore

logger = logging.getLogger(__name__)


class FilesystemBlobStore(IBlobStore):
    """Local filesystem blob store."""

    def __init__(self, root_path: str | Path):
        self._root = Path(root_path)
        self._root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        target = (self._root / key).resolve()
        if self._root.resolve() not in target.parents:
            raise ValueError(f"Blob key escapes storage root: {key!r}")
        return target

    def fetch(self, key: str) -> bytes:
        return self._path(key).read_bytes()

    def store(self, key: str, data: bytes) -> str:
        target = self._path(key)
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = target.with_suffix(target.suffix + ".tmp")
        tmp.write_bytes(data)
        tmp.replace(target)
        logger.debug("stored %d bytes under %s", len(data), key)
        return key


class InMemoryBlobStore(IBlobStore):
    def __init__(self) -> None:
        self._blobs: Dict[str, bytes] = {}

    def fetch(self, key: str) -> bytes:
        try:
            return self._blobs[key]
        except KeyError:
            raise FileNotFoundError(key) from None

    def store(self, key: str, data: bytes) -> str:
        self._blobs[key] = bytes(data)
        return key
