"""Blob storage for project file contents.

Project files are addressed by a relative path of the form
``<project_id>/<stored name>``. The record store only keeps the path;
the bytes live behind a BlobStore.
"""

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable

from ..exceptions import NotFoundError, ServiceError

logger = logging.getLogger(__name__)


class BlobStore(ABC):
    """Minimal object storage interface: upload, download, remove."""

    @abstractmethod
    def upload(self, path: str, data: bytes) -> str:
        """Store ``data`` at ``path`` and return the stored path."""

    @abstractmethod
    def download(self, path: str) -> bytes:
        """Return the bytes stored at ``path``."""

    @abstractmethod
    def remove(self, paths: Iterable[str]) -> None:
        """Remove every path in ``paths``. Missing paths are ignored."""


class LocalBlobStore(BlobStore):
    """BlobStore backed by a directory on the local filesystem."""

    def __init__(self, root: str):
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        logger.info(f"LocalBlobStore rooted at {self.root}")

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if target == self.root or self.root not in target.parents:
            raise ServiceError(f"Invalid storage path: {path}")
        return target

    def upload(self, path: str, data: bytes) -> str:
        target = self._resolve(path)
        if target.exists():
            raise ServiceError(f"The resource already exists: {path}")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise ServiceError(f"Upload failed for {path}: {e}") from e
        logger.debug(f"Stored {len(data)} bytes at {path}")
        return path

    def download(self, path: str) -> bytes:
        target = self._resolve(path)
        if not target.is_file():
            raise NotFoundError(f"Object not found: {path}")
        try:
            return target.read_bytes()
        except OSError as e:
            raise ServiceError(f"Download failed for {path}: {e}") from e

    def remove(self, paths: Iterable[str]) -> None:
        for path in paths:
            target = self._resolve(path)
            try:
                if target.exists():
                    os.remove(target)
                    logger.debug(f"Removed {path}")
                # Drop the per-project directory once it is empty
                parent = target.parent
                if parent != self.root and parent.is_dir() and not any(parent.iterdir()):
                    parent.rmdir()
            except OSError as e:
                raise ServiceError(f"Remove failed for {path}: {e}") from e
