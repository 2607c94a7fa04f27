"""Local File Storage — writes uploaded images below the upload directory.

Invariants:
    - Keys are relative, '/'-separated and never escape the root (no '..', no absolute paths)
    - put() returns the public URL (url_prefix + key) and the key
    - Filesystem failures map to StorageError

Design Decisions:
    - Blocking file write runs in a worker thread (asyncio.to_thread) to keep the loop free
    - Files served by the API's StaticFiles mount at url_prefix
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from app.core.errors import StorageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredObject:
    url: str
    key: str


class LocalFileStorage:
    """Filesystem-backed object storage."""

    def __init__(self, root: str, url_prefix: str = "/uploads"):
        self.root = Path(root).resolve()
        self.url_prefix = url_prefix.rstrip("/")

    def _path_for(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root not in path.parents:
            raise StorageError(f"Invalid storage key: {key}")
        return path

    async def put(self, key: str, data: bytes) -> StoredObject:
        path = self._path_for(key)
        try:
            await asyncio.to_thread(self._write, path, data)
        except OSError as e:
            logger.error(f"Failed to store {key}: {e}")
            raise StorageError("Failed to store uploaded file")
        return StoredObject(url=f"{self.url_prefix}/{key}", key=key)

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
