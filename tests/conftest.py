import pytest
from PIL import Image

from tattoo_preview.services.segmentation_service import SkinSegmenter


@pytest.fixture
def base_image() -> Image.Image:
    """Однотонное фото 400×400 (светлая кожа)."""
    return Image.new("RGBA", (400, 400), (220, 180, 150, 255))


@pytest.fixture
def tattoo_image() -> Image.Image:
    """Непрозрачный тёмно-синий эскиз 100×100."""
    return Image.new("RGBA", (100, 100), (20, 40, 160, 255))


@pytest.fixture(autouse=True)
def _reset_segmenter_singleton():
    yield
    SkinSegmenter.reset_instance()
