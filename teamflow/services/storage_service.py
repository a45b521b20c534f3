"""
Stockage des fichiers de preuve - SDK Cloudinary.

On ne garde côté base que l'URL et le public_id renvoyés.
"""

import io
import logging
from typing import Optional

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader

from teamflow.core.config import settings

logger = logging.getLogger(__name__)

RESULT_FIELDS = ("public_id", "secure_url", "url", "bytes", "resource_type")


class StorageError(Exception):
    pass


class StorageNotConfiguredError(StorageError):
    pass


def is_storage_configured() -> bool:
    return bool(settings.CLOUDINARY_CLOUD_NAME and settings.CLOUDINARY_API_KEY and settings.CLOUDINARY_API_SECRET)


def upload_file(
    content: bytes,
    filename: str,
    folder: Optional[str] = None,
    resource_type: str = "auto",
) -> dict:
    if not is_storage_configured():
        raise StorageNotConfiguredError("File storage is not configured")

    # identifiants passés à chaque appel, pas de config globale du SDK
    try:
        result = cloudinary.uploader.upload(
            io.BytesIO(content),
            filename=filename,
            folder=folder or settings.CLOUDINARY_FOLDER,
            resource_type=resource_type,
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            timeout=settings.STORAGE_TIMEOUT,
        )
    except cloudinary.exceptions.Error as e:
        logger.error(f"Upload failed for {filename}: {e}")
        raise StorageError("Upload failed") from e

    missing = [key for key in ("public_id", "secure_url") if key not in result]
    if missing:
        raise StorageError(f"Upload failed: storage response missing {', '.join(missing)}")

    return {key: result.get(key) for key in RESULT_FIELDS}
