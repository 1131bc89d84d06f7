"""
Local storage for uploaded course thumbnails.

Files are written under ``MEDIA_DIR/thumbnails`` and served by the static
mount at ``MEDIA_URL``.
"""

from pathlib import Path
from typing import Optional
import logging
import uuid

from fastapi import HTTPException, UploadFile, status

from coursemart.core.config import settings


logger = logging.getLogger(__name__)

THUMBNAIL_SUBDIR = "thumbnails"


def thumbnail_dir() -> Path:
    path = Path(settings.MEDIA_DIR) / THUMBNAIL_SUBDIR
    path.mkdir(parents=True, exist_ok=True)
    return path


async def save_thumbnail(image: UploadFile, owner_id: str) -> str:
    """
    Validate and store an uploaded image, returning its public URL.
    """
    suffix = Path(image.filename or "").suffix.lower()
    allowed = {f".{ext.lower().lstrip('.')}" for ext in settings.ALLOWED_IMAGE_EXTENSIONS}
    if suffix not in allowed:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Only {sorted(allowed)} are allowed"
        )

    content = await image.read()
    if not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Thumbnail not attached"
        )
    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File too large (max {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB)"
        )

    filename = f"{owner_id}_{uuid.uuid4().hex}{suffix}"
    (thumbnail_dir() / filename).write_bytes(content)

    return f"{settings.MEDIA_URL.rstrip('/')}/{THUMBNAIL_SUBDIR}/{filename}"


def thumbnail_path(url: str) -> Optional[Path]:
    """Map a stored thumbnail URL back to its file, None for foreign URLs."""
    prefix = f"{settings.MEDIA_URL.rstrip('/')}/{THUMBNAIL_SUBDIR}/"
    if not url or not url.startswith(prefix):
        return None

    name = Path(url[len(prefix):]).name
    return Path(settings.MEDIA_DIR) / THUMBNAIL_SUBDIR / name


def remove_thumbnail(url: str) -> None:
    path = thumbnail_path(url)
    if path is None:
        return

    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning(f"Could not remove thumbnail {path}: {exc}")
