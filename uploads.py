# uploads.py
# Stores multipart image uploads on disk and hands back references to them.
import logging
import os
import random
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from config import MAX_UPLOAD_BYTES
from errors import UploadTooLargeError, ValidationError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
PUBLIC_PREFIX = "/uploads"


@dataclass
class UploadedFile:
    path: str  # where the file lives on disk
    url: str  # reference stored on the user record


def _unique_name(original: str) -> str:
    suffix = Path(original).suffix
    return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{suffix}"


async def save_upload(
    upload: Optional[UploadFile],
    directory,
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> Optional[UploadedFile]:
    """
    Write `upload` into `directory`. Returns None when the field was left empty.

    Only image/* content types are accepted, and anything over `max_bytes`
    is rejected and removed.
    """
    if upload is None or not upload.filename:
        return None
    if not (upload.content_type or "").startswith("image/"):
        logger.info("Rejected upload %s with type %s", upload.filename, upload.content_type)
        raise ValidationError("Only images allowed!")

    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    name = _unique_name(upload.filename)
    target = directory / name

    written = 0
    with open(target, "wb") as out:
        while True:
            chunk = await upload.read(CHUNK_SIZE)
            if not chunk:
                break
            written += len(chunk)
            if written > max_bytes:
                break
            out.write(chunk)

    if written > max_bytes:
        target.unlink(missing_ok=True)
        logger.info("Rejected upload %s: larger than %d bytes", upload.filename, max_bytes)
        raise UploadTooLargeError("File too large (max 10MB).")

    return UploadedFile(path=str(target), url=f"{PUBLIC_PREFIX}/{name}")


def discard_uploads(*files: Optional[UploadedFile]) -> None:
    """Remove stored uploads that will not be referenced by any record."""
    for f in files:
        if f is not None and os.path.exists(f.path):
            os.remove(f.path)
