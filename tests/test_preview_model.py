from pathlib import Path

from PIL import Image

from tattoo_preview.models.image_model import ImageRole, UploadedImage
from tattoo_preview.models.preview_model import PreviewSession


def _uploaded(name: str, key_size: int = 100) -> UploadedImage:
    image = Image.new("RGBA", (10, 10))
    return UploadedImage(
        path=Path(name),
        pil_image=image,
        width=10,
        height=10,
        mode="RGBA",
        size_bytes=key_size,
        source_key=(name, 1, key_size),
    )


def test_new_base_drops_stale_mask():
    session = PreviewSession()
    session.set_base(_uploaded("a.png"))
    session.mask = Image.new("RGBA", (10, 10))
    session.set_base(_uploaded("b.png"))
    assert session.mask is None
    assert session.base_image is session.base.pil_image


def test_same_source_detection_per_role():
    session = PreviewSession()
    tattoo = _uploaded("t.png")
    session.set_tattoo(tattoo, tattoo.pil_image)

    assert session.has_same_source(ImageRole.TATTOO, ("t.png", 1, 100))
    assert not session.has_same_source(ImageRole.TATTOO, ("t.png", 2, 100))
    assert not session.has_same_source(ImageRole.BASE, ("t.png", 1, 100))


def test_empty_session():
    session = PreviewSession()
    assert session.base_image is None
    assert session.tattoo_image is None
