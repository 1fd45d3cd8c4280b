"""Upload reading helpers.

Security: uploads are read in chunks and rejected as soon as they pass the
size limit, so an oversized body is never held in memory whole.
"""

from typing import TYPE_CHECKING

from app.core.config import settings
from app.core.errors import ValidationError

if TYPE_CHECKING:
    from fastapi import UploadFile

# Chunk size for reading uploads (64 KB)
CHUNK_SIZE_BYTES = 64 * 1024


async def read_upload_with_limit(
    file: "UploadFile",
    max_size: int | None = None,
    *,
    field: str = "avatar",
) -> bytes:
    """Read an uploaded file, enforcing a size limit.

    Args:
        file: UploadFile from FastAPI.
        max_size: Maximum size in bytes (defaults to settings.avatar_max_bytes).
        field: Form field name reported in error details.

    Returns:
        File content as bytes.

    Raises:
        ValidationError: If the file is larger than max_size.
    """
    limit = max_size if max_size is not None else settings.avatar_max_bytes
    buffer = bytearray()

    while chunk := await file.read(CHUNK_SIZE_BYTES):
        buffer.extend(chunk)
        if len(buffer) > limit:
            raise ValidationError(
                message=f"File size must be at most {limit / (1024 * 1024):g}MB",
                details=[{"field": field, "error": "FILE_TOO_LARGE"}],
            )

    return bytes(buffer)
