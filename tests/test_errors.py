from pathlib import Path

from tattoo_preview.errors import (
    ConfigurationError,
    ExportError,
    ImageLoadError,
    SegmentationError,
    SegmenterUnavailableError,
    TattooPreviewError,
    UnsupportedImageError,
)


def test_message_includes_context_and_cause():
    cause = ValueError("bad pixel")
    error = TattooPreviewError("Render failed", context={"w": 10, "h": 20}, cause=cause)
    assert str(error) == "Render failed [w=10, h=20] (caused by: bad pixel)"
    assert error.cause is cause


def test_plain_message():
    assert str(TattooPreviewError("oops")) == "oops"


def test_hierarchy():
    for error in (
        ImageLoadError(Path("a.png"), "missing"),
        UnsupportedImageError("a.gif", "format"),
        SegmenterUnavailableError(),
        ExportError("out.png"),
        ConfigurationError("bad"),
    ):
        assert isinstance(error, TattooPreviewError)
    assert issubclass(SegmenterUnavailableError, SegmentationError)


def test_path_in_context():
    error = ImageLoadError(Path("/tmp/a.png"), "missing")
    assert error.context == {"path": Path("/tmp/a.png")}
    assert "a.png" in str(error)
