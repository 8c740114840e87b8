import uuid
from unittest.mock import AsyncMock, patch

import pytest

from storefront.core.exceptions import BadRequestError, NotFoundError
from storefront.models.dto.media import MediaItemUpdate
from storefront.models.orm.media_item import BrandMediaItem
from storefront.services import media_service
from storefront.services.media_service import (
    delete_media,
    update_media,
    upload_media,
    validate_upload,
)
from tests.conftest import result_of

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
WEBP = b"RIFF\x00\x00\x00\x00WEBPVP8 " + b"\x00" * 16


@pytest.fixture(autouse=True)
def media_cache():
    cache = AsyncMock()
    cache.get.return_value = None
    with patch("storefront.services.media_service.media_cache", cache):
        yield cache


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(
        media_service, "media_dir", lambda brand_id: tmp_path / "media" / str(brand_id)
    )
    return tmp_path


class TestValidateUpload:
    def test_accepts_png(self):
        assert validate_upload("Look.PNG", "image/png", PNG) == ".png"

    def test_accepts_webp(self):
        assert validate_upload("look.webp", "image/webp", WEBP) == ".webp"

    def test_rejects_content_type(self):
        with pytest.raises(BadRequestError, match="Invalid file type"):
            validate_upload("look.svg", "image/svg+xml", b"<svg/>")

    def test_rejects_extension(self):
        with pytest.raises(BadRequestError, match="Invalid file extension"):
            validate_upload("look.exe", "image/png", PNG)

    def test_rejects_oversized(self, monkeypatch):
        from storefront.core.config import settings
        monkeypatch.setattr(settings, "max_media_size_mb", 1)
        with pytest.raises(BadRequestError, match="File too large"):
            validate_upload("look.png", "image/png", PNG + b"\x00" * (1024 * 1024))

    def test_rejects_empty(self):
        with pytest.raises(BadRequestError, match="File is empty"):
            validate_upload("look.png", "image/png", b"")

    def test_rejects_mismatched_magic(self):
        with pytest.raises(BadRequestError, match="does not match"):
            validate_upload("look.png", "image/png", b"\xff\xd8\xff" + b"\x00" * 8)

    def test_riff_without_webp_marker(self):
        with pytest.raises(BadRequestError, match="does not match"):
            validate_upload("look.webp", "image/webp", b"RIFF\x00\x00\x00\x00WAVE")


class TestUploadMedia:
    async def test_stores_file_and_row(self, mock_db, upload_dir, media_cache):
        brand_id, user_id = uuid.uuid4(), uuid.uuid4()

        item = await upload_media(
            mock_db, brand_id, user_id,
            filename="summer-lookbook.png", content_type="image/png", content=PNG,
            alt_text="Model in linen",
        )
        assert item.name == "summer-lookbook"
        assert item.url.startswith(f"/uploads/media/{brand_id}/")
        assert item.size == len(PNG)
        stored = list((upload_dir / "media" / str(brand_id)).iterdir())
        assert len(stored) == 1
        assert stored[0].read_bytes() == PNG
        mock_db.add.assert_called_once_with(item)
        media_cache.invalidate.assert_awaited_once_with(brand_id)

    async def test_invalid_upload_writes_nothing(self, mock_db, upload_dir):
        with pytest.raises(BadRequestError):
            await upload_media(
                mock_db, uuid.uuid4(), uuid.uuid4(),
                filename="x.png", content_type="image/png", content=b"nope",
            )
        assert not (upload_dir / "media").exists()
        mock_db.add.assert_not_called()


def _media(brand_id, path="/nonexistent/file.png"):
    return BrandMediaItem(
        id=uuid.uuid4(), brand_id=brand_id, name="look", alt_text=None,
        url="/uploads/media/look.png", file_path=str(path),
        content_type="image/png", size=10, uploaded_by=uuid.uuid4(),
    )


class TestUpdateMedia:
    async def test_updates_alt_text(self, mock_db):
        brand_id = uuid.uuid4()
        item = _media(brand_id)
        mock_db.get.return_value = item

        await update_media(mock_db, brand_id, item.id, MediaItemUpdate(alt_text="Front view"))
        assert item.alt_text == "Front view"

    async def test_other_brand_is_not_found(self, mock_db):
        item = _media(uuid.uuid4())
        mock_db.get.return_value = item
        with pytest.raises(NotFoundError):
            await update_media(mock_db, uuid.uuid4(), item.id, MediaItemUpdate(alt_text="x"))

    async def test_no_changes(self, mock_db):
        brand_id = uuid.uuid4()
        item = _media(brand_id)
        mock_db.get.return_value = item
        with pytest.raises(BadRequestError, match="No changes"):
            await update_media(mock_db, brand_id, item.id, MediaItemUpdate())


class TestDeleteMedia:
    async def test_removes_rows_and_files(self, mock_db, tmp_path):
        brand_id = uuid.uuid4()
        path = tmp_path / "look.png"
        path.write_bytes(PNG)
        item = _media(brand_id, path)
        mock_db.execute.return_value = result_of(scalars=[item])

        assert await delete_media(mock_db, brand_id, [item.id]) == 1
        mock_db.delete.assert_awaited_once_with(item)
        assert not path.exists()

    async def test_nothing_matched(self, mock_db):
        mock_db.execute.return_value = result_of(scalars=[])
        with pytest.raises(NotFoundError):
            await delete_media(mock_db, uuid.uuid4(), [uuid.uuid4()])
