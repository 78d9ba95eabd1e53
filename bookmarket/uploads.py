# bookmarket/uploads.py
"""Image upload collaborator for book thumbnails."""

import asyncio
import mimetypes
import secrets
import time
from pathlib import Path
from typing import Optional

from loguru import logger

from .errors import UploadError

ALLOWED_MIME_TYPES = ("image/jpeg", "image/png", "image/webp")
MAX_FILE_SIZE = 5 * 1024 * 1024

mimetypes.add_type("image/webp", ".webp")


def detect_mime(filename: str, content_type: Optional[str]) -> Optional[str]:
    """The declared type when allowed, else the type guessed from the extension."""
    if content_type in ALLOWED_MIME_TYPES:
        return content_type
    guessed, _ = mimetypes.guess_type(filename)
    return guessed if guessed in ALLOWED_MIME_TYPES else None


class ImageUploader:
    def __init__(self, directory: Path, url_prefix: str = "/uploads", max_bytes: int = MAX_FILE_SIZE):
        self.directory = Path(directory)
        self.url_prefix = url_prefix.rstrip("/")
        self.max_bytes = max_bytes

    def check(self, filename: str, content_type: Optional[str], data: bytes) -> str:
        if not data:
            raise UploadError("Invalid or empty file provided.")
        if len(data) > self.max_bytes:
            raise UploadError(f"File size exceeds the {self.max_bytes // (1024 * 1024)}MB limit.")
        mime = detect_mime(filename, content_type)
        if mime is None:
            kind = content_type or Path(filename).suffix or "unknown"
            raise UploadError(f"Unsupported file type: {kind}. Only JPEG, PNG, and WebP are allowed.")
        return mime

    def _write(self, name: str, data: bytes) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        (self.directory / name).write_bytes(data)

    async def save(self, filename: str, content_type: Optional[str], data: bytes) -> str:
        """Validate and store an image, returning its public URL."""
        mime = self.check(filename, content_type, data)
        suffix = Path(filename).suffix.lower()
        if mimetypes.guess_type(f"image{suffix}")[0] not in ALLOWED_MIME_TYPES:
            suffix = mimetypes.guess_extension(mime) or ""
        name = f"upload-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{suffix}"
        try:
            await asyncio.to_thread(self._write, name, data)
        except OSError as exc:
            logger.bind(filename=filename).exception("upload.write_failed")
            raise UploadError("Failed to save the image file to the server.") from exc
        logger.bind(url=f"{self.url_prefix}/{name}", size=len(data)).info("upload.saved")
        return f"{self.url_prefix}/{name}"
