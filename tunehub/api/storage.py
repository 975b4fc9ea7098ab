"""
Blob storage for uploaded audio and cover images.

`BlobStorage` is the adapter interface used by the upload and media routes;
`LocalBlobStorage` keeps blobs on disk under MEDIA_ROOT. Keys are relative
POSIX paths such as `audio/<uuid>_<name>.mp3`.
"""

from __future__ import annotations

import logging
import re
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Tuple

from fastapi import Request

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class StoredBlob:
    key: str
    url: str
    size_bytes: int
    content_type: str


# PUBLIC_INTERFACE
def sanitize_filename(name: str, fallback: str = "upload") -> str:
    """Reduce a client-supplied filename to letters, digits, dot, dash and underscore."""
    name = name.strip().replace("\\", "_").replace("/", "_")
    name = re.sub(r"[^A-Za-z0-9._-]+", "_", name)
    return name.strip("._") or fallback


# PUBLIC_INTERFACE
def parse_range_header(range_header: str, size: int) -> Optional[Tuple[int, int]]:
    """
    Parse a single HTTP Range header ("bytes=start-end") against a blob size.

    Returns:
        (start, end) inclusive byte offsets if satisfiable, else None.
    """
    if not range_header or not range_header.startswith("bytes="):
        return None

    byte_range = range_header[len("bytes=") :].strip()
    # Only a single range is supported.
    if "," in byte_range:
        return None

    start_s, _, end_s = byte_range.partition("-")
    start_s = start_s.strip()
    end_s = end_s.strip()

    try:
        if not start_s and not end_s:
            return None

        if not start_s:
            # suffix range: last N bytes
            suffix_len = int(end_s)
            if suffix_len <= 0:
                return None
            return max(size - suffix_len, 0), size - 1

        start = int(start_s)
        end = int(end_s) if end_s else size - 1
        if start < 0 or end < start or start >= size:
            return None
        return start, min(end, size - 1)
    except ValueError:
        return None


class BlobStorage(ABC):
    """Where uploaded files live. Implementations must reject keys escaping their namespace."""

    @abstractmethod
    def save(self, folder: str, filename: str, data: bytes, content_type: str) -> StoredBlob:
        """Store `data` under a new unique key inside `folder`."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove a blob; returns False when it did not exist."""

    @abstractmethod
    def size(self, key: str) -> Optional[int]:
        """Size in bytes, or None for an unknown key."""

    @abstractmethod
    def open_range(self, key: str, start: int, end: int) -> Iterator[bytes]:
        """Yield the bytes of [start, end] inclusive."""

    @abstractmethod
    def url_for(self, key: str) -> str:
        """Public URL clients use to fetch the blob."""


class LocalBlobStorage(BlobStorage):
    """Blobs stored as plain files below a root directory."""

    def __init__(self, root: str, base_url: str = "/media"):
        self.root = Path(root).resolve()
        self.base_url = base_url.rstrip("/")

    def _path(self, key: str) -> Optional[Path]:
        if not key or key.startswith("/"):
            return None
        # Normalize (removes .. etc) then ensure the result is still under root.
        candidate = (self.root / key).resolve()
        try:
            candidate.relative_to(self.root)
        except ValueError:
            logger.warning("blob_key_rejected: key=%r root=%s", key, self.root)
            return None
        return candidate

    def save(self, folder: str, filename: str, data: bytes, content_type: str) -> StoredBlob:
        key = f"{folder}/{uuid.uuid4()}_{sanitize_filename(filename)}"
        path = self._path(key)
        assert path is not None  # generated keys are always relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info("blob_saved: key=%s size_bytes=%s content_type=%s", key, len(data), content_type)
        return StoredBlob(key=key, url=self.url_for(key), size_bytes=len(data), content_type=content_type)

    def delete(self, key: str) -> bool:
        path = self._path(key)
        if path is None or not path.is_file():
            return False
        path.unlink()
        logger.info("blob_deleted: key=%s", key)
        return True

    def size(self, key: str) -> Optional[int]:
        path = self._path(key)
        if path is None or not path.is_file():
            return None
        return path.stat().st_size

    def open_range(self, key: str, start: int, end: int) -> Iterator[bytes]:
        path = self._path(key)
        if path is None:
            return
        with path.open("rb") as f:
            f.seek(start)
            remaining = end - start + 1
            while remaining > 0:
                chunk = f.read(min(_CHUNK_SIZE, remaining))
                if not chunk:
                    break
                remaining -= len(chunk)
                yield chunk

    def url_for(self, key: str) -> str:
        return f"{self.base_url}/{key}"


# PUBLIC_INTERFACE
def get_storage(request: Request) -> BlobStorage:
    """FastAPI dependency returning the application's blob storage."""
    return request.app.state.storage
