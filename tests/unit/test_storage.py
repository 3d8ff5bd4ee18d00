"""
Tests for image validation and the local storage fallback.
"""
from __future__ import annotations

import asyncio
import io
from unittest.mock import AsyncMock, Mock

import pytest
from PIL import Image

from portfolio.application.session_gate import SessionGate
from portfolio.application.use_cases.upload_image import UploadImageUseCase
from portfolio.domain.errors import PersistenceError, ValidationError
from portfolio.infrastructure.database.repositories.content_store import ContentStore
from portfolio.infrastructure.storage.supabase_storage import SupabaseStorage


def png(w: int = 4, h: int = 4) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (w, h), (10, 20, 30)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture()
def storage(tmp_path, monkeypatch) -> SupabaseStorage:
    monkeypatch.setenv("SUPABASE_STORAGE_LOCAL_DIR", str(tmp_path))
    return SupabaseStorage(None)


class TestInspect:
    """Test image inspection with Pillow."""

    def test_reads_size_and_format(self, storage):
        """Test reading size and format from an image."""
        assert storage.inspect(png(8, 6)) == (8, 6, "png", "image/png")

    def test_decompression_bomb_is_rejected_as_invalid_input(self, storage, monkeypatch):
        """Test that images over the pixel limit are invalid input."""
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10)
        with pytest.raises(ValidationError, match="too many pixels"):
            storage.inspect(png(8, 6))

    def test_size_limit(self, storage):
        """Test the upload size limit."""
        storage.max_bytes = 10
        with pytest.raises(ValidationError, match="larger than"):
            storage.inspect(png())

    def test_empty_and_garbage_rejected(self, storage):
        """Test empty and non-image uploads."""
        with pytest.raises(ValidationError):
            storage.inspect(b"")
        with pytest.raises(ValidationError):
            storage.inspect(b"GIF89a not really")


class TestLocalStorage:
    """Test the local storage fallback."""

    def test_upload_then_delete(self, storage, tmp_path):
        """Test uploading then deleting a local file."""
        stored = storage.upload_image("logo", png())
        assert stored.url == f"/media/{stored.path}"
        assert (tmp_path / stored.path).is_file()
        storage.delete(stored.path)
        assert not (tmp_path / stored.path).exists()
        # already gone
        storage.delete(stored.path)

    def test_failed_attach_removes_the_file(self, storage, tmp_path):
        """Test that a failed attach deletes the stored file."""
        profile_saver = Mock()
        profile_saver.write = AsyncMock(side_effect=PersistenceError("profile down"))
        uploader = UploadImageUseCase(
            storage=storage,
            store=ContentStore.from_client(None),
            gate=Mock(spec=SessionGate),
            profile_saver=profile_saver,
            loader=Mock(),
        )
        with pytest.raises(PersistenceError):
            asyncio.run(uploader.execute("logo", png()))
        assert not [p for p in tmp_path.rglob("*") if p.is_file()]
