"""
Upload storage

Files land in UPLOAD_DIR under a random name and are served back by the
/uploads static mount.
"""

import os
import uuid
from pathlib import Path
from typing import Optional

import aiofiles
from fastapi import UploadFile

from app.core.config import settings
from app.core.exceptions import InvalidFileTypeError, FileTooLargeError, ValidationError
from app.core.logging_config import logger

CHUNK_SIZE = 1024 * 1024
PUBLIC_PREFIX = "/uploads"
IMAGE_EXTENSIONS = ["png", "jpg", "jpeg", "gif", "webp"]


def get_upload_dir() -> Path:
    path = Path(settings.UPLOAD_DIR)
    path.mkdir(parents=True, exist_ok=True)
    return path


def file_extension(filename: Optional[str]) -> str:
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].lower()


async def save_upload(file: UploadFile, allowed_extensions: Optional[list] = None) -> str:
    """
    Validate and store an upload. Returns its public URL.

    Raises InvalidFileTypeError for a disallowed extension and
    FileTooLargeError once more than MAX_UPLOAD_SIZE bytes have been read.
    """
    allowed = allowed_extensions or settings.ALLOWED_UPLOAD_EXTENSIONS
    ext = file_extension(file.filename)
    if not ext or ext not in allowed:
        raise InvalidFileTypeError(ext or "unknown", allowed)

    stored_name = f"{uuid.uuid4().hex}.{ext}"
    destination = get_upload_dir() / stored_name

    size = 0
    try:
        async with aiofiles.open(destination, "wb") as out:
            while True:
                chunk = await file.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > settings.MAX_UPLOAD_SIZE:
                    raise FileTooLargeError(size, settings.MAX_UPLOAD_SIZE)
                await out.write(chunk)
    except FileTooLargeError:
        os.remove(destination)
        raise

    if size == 0:
        os.remove(destination)
        raise ValidationError("Uploaded file is empty", field="file")

    logger.info(
        f"Stored upload {file.filename} as {stored_name} ({size} bytes)",
        extra={"event_type": "upload", "stored_name": stored_name, "size": size}
    )
    return f"{PUBLIC_PREFIX}/{stored_name}"


async def save_image(file: UploadFile) -> str:
    """save_upload restricted to image types (avatars, post images)"""
    allowed = [e for e in settings.ALLOWED_UPLOAD_EXTENSIONS if e in IMAGE_EXTENSIONS] or IMAGE_EXTENSIONS
    return await save_upload(file, allowed)


def delete_upload(url: Optional[str]) -> bool:
    """Remove a previously stored upload by its public URL"""
    if not url or not url.startswith(f"{PUBLIC_PREFIX}/"):
        return False
    name = os.path.basename(url)
    path = get_upload_dir() / name
    if path.exists():
        path.unlink()
        return True
    return False
