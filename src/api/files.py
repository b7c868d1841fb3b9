"""Per-user file store on top of Django's default storage (local disk or S3)."""

import logging
from pathlib import PurePosixPath

from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage

logger = logging.getLogger(__name__)


class FileTooLarge(Exception):
    """Download exceeds FILE_DOWNLOAD_MAX_BYTES."""


def user_path(user_id, path: str) -> str:
    """
    Resolve a client path inside the user's own folder.

    Raises:
        ValueError: If the path is empty or tries to leave the folder
    """
    parts = [p for p in PurePosixPath(path.strip()).parts if p not in ("/", ".")]
    if not parts or ".." in parts:
        raise ValueError(f"Invalid path: {path!r}")
    return str(PurePosixPath("users", str(user_id), *parts))


def upload(user_id, path: str, data) -> tuple[str, str]:
    """
    Store data at path, replacing any existing file.

    Args:
        data: bytes or a Django File

    Returns:
        (storage_path, url)
    """
    storage_path = user_path(user_id, path)
    if default_storage.exists(storage_path):
        default_storage.delete(storage_path)
    if isinstance(data, bytes):
        data = ContentFile(data)
    saved = default_storage.save(storage_path, data)
    logger.info(f"Stored {saved} for user {user_id}")
    return saved, default_storage.url(saved)


def download(user_id, path: str) -> bytes:
    """
    Raises:
        FileNotFoundError: If nothing is stored at path
        FileTooLarge: If the file exceeds the download cap
    """
    storage_path = user_path(user_id, path)
    if not default_storage.exists(storage_path):
        raise FileNotFoundError(storage_path)

    max_bytes = getattr(settings, "FILE_DOWNLOAD_MAX_BYTES", 50 * 1024 * 1024)
    if default_storage.size(storage_path) > max_bytes:
        raise FileTooLarge(f"{storage_path} exceeds {max_bytes} bytes")

    with default_storage.open(storage_path, "rb") as f:
        return f.read()


def delete(user_id, path: str) -> bool:
    """Returns False when there was nothing to delete."""
    storage_path = user_path(user_id, path)
    if not default_storage.exists(storage_path):
        return False
    default_storage.delete(storage_path)
    return True
