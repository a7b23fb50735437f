"""
Blob storage for member images.

Files live on the local filesystem under ``settings.media_root`` and are
served by the app under ``settings.media_url_prefix``.
"""

import logging
import time
from pathlib import Path

from backend.app.core.config import settings
from backend.app.core.exceptions import InvalidImageError, StorageError

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


def validate_image(content_type: str | None, size: int) -> None:
    """
    Check an upload before anything is written.

    Raises:
        InvalidImageError: On an unsupported content type or an oversized file
    """
    if content_type not in settings.allowed_image_types_list:
        raise InvalidImageError(
            f"unsupported type {content_type}; JPEG, PNG, WebP のみアップロードできます"
        )
    if size > settings.max_image_size_bytes:
        limit_mb = settings.max_image_size_bytes / (1024 * 1024)
        raise InvalidImageError(f"ファイルサイズは{limit_mb:g}MB以下にしてください")


def member_image_path(member_id: str, slot: str, content_type: str, timestamp_ms: int | None = None) -> str:
    """Storage path of a member image: members/{id}/{slot}_{ms}.{ext}"""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    ext = _EXTENSIONS.get(content_type, "jpg")
    return f"members/{member_id}/{slot}_{timestamp_ms}.{ext}"


class BlobStorage:
    """Local-filesystem blob store addressed by relative paths."""

    def __init__(self, root: str | Path | None = None, url_prefix: str | None = None):
        self.root = Path(root or settings.media_root).resolve()
        self.url_prefix = (url_prefix or settings.media_url_prefix).rstrip("/")

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if not target.is_relative_to(self.root):
            raise StorageError("resolve", ValueError(f"path escapes storage root: {path}"))
        return target

    def put(self, path: str, data: bytes) -> str:
        """
        Store bytes and return their public URL.

        Raises:
            StorageError: If the path is invalid or the write fails
        """
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise StorageError("put", e) from e

        logger.info(f"[STORAGE] Stored {path} ({len(data)} bytes)")
        return f"{self.url_prefix}/{path}"

    def delete(self, public_url: str) -> bool:
        """
        Delete a stored blob by its public URL.

        Returns:
            False if the URL is not one of ours or the file is already gone

        Raises:
            StorageError: If the path is invalid or removal fails
        """
        prefix = f"{self.url_prefix}/"
        if not public_url.startswith(prefix):
            return False

        target = self._resolve(public_url[len(prefix):])
        if not target.exists():
            return False

        try:
            target.unlink()
        except OSError as e:
            raise StorageError("delete", e) from e

        logger.info(f"[STORAGE] Deleted {public_url}")
        return True


def get_blob_storage() -> BlobStorage:
    """Blob storage built from the current settings."""
    return BlobStorage()
