from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path

from PIL import Image, UnidentifiedImageError
from supabase import Client

from portfolio.domain.errors import PersistenceError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_MAX_IMAGE_BYTES = 5 * 1024 * 1024
LOCAL_MEDIA_PREFIX = "/media"

# Pillow format name -> (extension, content type)
ALLOWED_FORMATS = {
    "PNG": ("png", "image/png"),
    "JPEG": ("jpg", "image/jpeg"),
    "WEBP": ("webp", "image/webp"),
    "GIF": ("gif", "image/gif"),
}


@dataclass
class StorageResult:
    path: str
    url: str
    width: int
    height: int
    content_type: str
    size: int


class SupabaseStorage:
    """Storage adapter for portfolio images, with a local directory fallback."""

    def __init__(self, client: Client | None) -> None:
        self.client = client
        self.bucket = os.getenv("SUPABASE_STORAGE_BUCKET", "portfolio")
        self.disabled = os.getenv("SUPABASE_DISABLED", "0") == "1"
        self.local_dir = Path(os.getenv("SUPABASE_STORAGE_LOCAL_DIR", ".local_storage"))
        self.max_bytes = int(os.getenv("MAX_IMAGE_BYTES", str(DEFAULT_MAX_IMAGE_BYTES)))
        if self.is_local:
            self.local_dir.mkdir(parents=True, exist_ok=True)

    @property
    def is_local(self) -> bool:
        return self.disabled or self.client is None

    def inspect(self, data: bytes) -> tuple[int, int, str, str]:
        """Check that ``data`` is a supported image. Returns width, height, extension, content type."""
        if not data:
            raise ValidationError("Uploaded file is empty")
        if len(data) > self.max_bytes:
            raise ValidationError(f"Image is larger than {self.max_bytes} bytes")
        try:
            with Image.open(BytesIO(data)) as img:
                img.verify()
            # verify() leaves the image unusable; reopen for the size
            with Image.open(BytesIO(data)) as img:
                fmt = img.format
                width, height = img.size
        except Image.DecompressionBombError as exc:
            raise ValidationError(f"Image has too many pixels: {exc}") from exc
        except (UnidentifiedImageError, OSError, SyntaxError) as exc:
            raise ValidationError("Uploaded file is not a valid image") from exc
        if fmt not in ALLOWED_FORMATS:
            raise ValidationError(f"Unsupported image format {fmt}")
        ext, content_type = ALLOWED_FORMATS[fmt]
        return width, height, ext, content_type

    def upload_image(self, folder: str, data: bytes) -> StorageResult:
        width, height, ext, content_type = self.inspect(data)
        storage_path = f"{folder}/{uuid.uuid4()}.{ext}"
        if self.is_local:
            full_path = self.local_dir / storage_path
            full_path.parent.mkdir(parents=True, exist_ok=True)
            full_path.write_bytes(data)
            url = f"{LOCAL_MEDIA_PREFIX}/{storage_path}"
        else:
            try:  # pragma: no cover - network
                bucket = self.client.storage.from_(self.bucket)
                bucket.upload(
                    path=storage_path,
                    file=data,
                    file_options={"content-type": content_type},
                )
                url = bucket.get_public_url(storage_path)
            except Exception as exc:  # pragma: no cover
                raise PersistenceError(f"Storage upload failed: {exc}") from exc
        logger.info("Stored %s image %s (%dx%d, %d bytes)", content_type, storage_path, width, height, len(data))
        return StorageResult(
            path=storage_path, url=url, width=width, height=height, content_type=content_type, size=len(data)
        )

    def delete(self, path: str) -> None:
        """Remove a stored image. Missing files are ignored."""
        if self.is_local:
            full_path = self.local_dir / path
            if full_path.exists():
                full_path.unlink()
            return
        try:  # pragma: no cover - network
            self.client.storage.from_(self.bucket).remove([path])
        except Exception as exc:  # pragma: no cover
            raise PersistenceError(f"Storage delete failed: {exc}") from exc
