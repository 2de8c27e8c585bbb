from datetime import datetime, timezone

import pytest
from PIL import Image

from tattoo_preview.errors import ExportError, ImageLoadError, UnsupportedImageError
from tattoo_preview.services.image_service import ImageService


@pytest.fixture
def service() -> ImageService:
    return ImageService()


def test_load_png_as_rgba(service, tmp_path):
    path = tmp_path / "arm.png"
    Image.new("RGB", (30, 20), (1, 2, 3)).save(path)

    uploaded = service.load_image(path)

    assert uploaded.pil_image.mode == "RGBA"
    assert uploaded.size == (30, 20)
    assert uploaded.mode == "RGB"
    assert uploaded.size_bytes == path.stat().st_size
    assert uploaded.source_key == service.source_key(path)


def test_exif_orientation_is_applied(service, tmp_path):
    path = tmp_path / "rotated.jpg"
    exif = Image.Exif()
    exif[0x0112] = 6  # повернуть на 90° по часовой
    Image.new("RGB", (40, 10), (200, 100, 50)).save(path, exif=exif)

    assert service.load_image(path).size == (10, 40)


def test_missing_file(service, tmp_path):
    with pytest.raises(ImageLoadError):
        service.load_image(tmp_path / "nope.png")


def test_unsupported_extension(service, tmp_path):
    path = tmp_path / "sketch.gif"
    Image.new("RGB", (4, 4)).save(path)
    with pytest.raises(UnsupportedImageError):
        service.load_image(path)


def test_corrupt_file(service, tmp_path):
    path = tmp_path / "broken.png"
    path.write_bytes(b"not an image at all")
    with pytest.raises(ImageLoadError) as exc_info:
        service.load_image(path)
    assert exc_info.value.cause is not None


def test_oversize_file(service, tmp_path, monkeypatch):
    path = tmp_path / "big.png"
    Image.new("RGB", (64, 64)).save(path)
    monkeypatch.setattr(ImageService, "MAX_FILE_SIZE", 10)
    with pytest.raises(UnsupportedImageError):
        service.load_image(path)


def test_decompression_bomb_is_rejected(service, tmp_path, monkeypatch):
    path = tmp_path / "huge.png"
    Image.new("1", (100, 100)).save(path)
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)

    with pytest.raises(UnsupportedImageError) as exc_info:
        service.load_image(path)
    assert isinstance(exc_info.value.__cause__, Image.DecompressionBombError)


@pytest.mark.parametrize("name", ["a.jpg", "a.JPEG", "a.png", "a.webp", "a.bmp"])
def test_supported_extensions(service, name):
    assert service.is_supported(name)


def test_source_key_changes_when_file_changes(service, tmp_path):
    path = tmp_path / "tattoo.png"
    Image.new("RGB", (4, 4)).save(path)
    before = service.source_key(path)
    Image.new("RGB", (40, 40)).save(path)
    assert service.source_key(path) != before


def test_export_forces_png_and_creates_dirs(service, tmp_path):
    frame = Image.new("RGBA", (8, 6), (10, 20, 30, 128))
    saved = service.export_png(frame, tmp_path / "out" / "preview.jpg")

    assert saved == tmp_path / "out" / "preview.png"
    with Image.open(saved) as reloaded:
        assert reloaded.format == "PNG"
        assert reloaded.getpixel((0, 0)) == (10, 20, 30, 128)


def test_export_failure_raises_export_error(service, tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    with pytest.raises(ExportError):
        service.export_png(Image.new("RGBA", (2, 2)), blocker / "preview.png")


def test_default_export_name_uses_unix_ms():
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert ImageService.default_export_name(now) == "tattoo-preview-1704067200000.png"
