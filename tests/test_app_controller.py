import numpy as np
import pytest
from PIL import Image

pytest.importorskip("tkinter")
from tkinter import filedialog, messagebox  # noqa: E402

from tattoo_preview.config import AppConfig, ExportConfig, SegmentationConfig  # noqa: E402
from tattoo_preview.controllers.app_controller import AppController  # noqa: E402
from tattoo_preview.models.image_model import ImageRole  # noqa: E402
from tattoo_preview.models.settings_model import TattooSettings  # noqa: E402
from tattoo_preview.services.segmentation_service import (  # noqa: E402
    SELFIE_MULTICLASS_LABELS,
    SkinSegmenter,
)


class Recorder:
    """Заменитель виджета: любой вызов метода записывается."""

    def __init__(self):
        self.calls = []

    def __getattr__(self, name):
        if name.startswith("__"):
            raise AttributeError(name)

        def method(*args, **kwargs):
            self.calls.append((name, args))

        return method

    def called(self, name):
        return [args for call, args in self.calls if call == name]


class FakeWindow:
    """`after`/`after_cancel` окна Tk; задачи выполняются вручную."""

    def __init__(self):
        self.jobs = {}
        self._next = 0

    def after(self, delay_ms, callback):
        self._next += 1
        job_id = f"after#{self._next}"
        self.jobs[job_id] = callback
        return job_id

    def after_cancel(self, job_id):
        self.jobs.pop(job_id, None)

    def run_pending(self):
        jobs, self.jobs = self.jobs, {}
        for callback in jobs.values():
            callback()


class SkinBackend:
    labels = SELFIE_MULTICLASS_LABELS

    def segment(self, rgb):
        return np.full(rgb.shape[:2], SELFIE_MULTICLASS_LABELS.index("body-skin"), dtype=np.uint8)

    def close(self):
        pass


def _save(path, size, color):
    Image.new("RGBA", size, color).save(path)
    return path


@pytest.fixture
def files(tmp_path):
    return {
        "arm": _save(tmp_path / "arm.png", (400, 400), (220, 180, 150, 255)),
        "sketch": _save(tmp_path / "sketch.png", (100, 100), (20, 40, 160, 255)),
        "other_sketch": _save(tmp_path / "rose.png", (80, 120), (160, 20, 40, 255)),
    }


def _make_controller(tmp_path, segmentation_enabled=False):
    config = AppConfig(
        segmentation=SegmentationConfig(enabled=segmentation_enabled, models_dir=tmp_path / "models"),
        export=ExportConfig(output_dir=tmp_path / "out"),
    )
    controller = AppController(
        canvas=Recorder(), sidebar=Recorder(), bottom=Recorder(), window=FakeWindow(), config=config
    )
    controller.bind_events()
    return controller


@pytest.fixture
def controller(tmp_path):
    controller = _make_controller(tmp_path)
    yield controller
    controller.shutdown()


def _open(controller, monkeypatch, role, path):
    monkeypatch.setattr(filedialog, "askopenfilename", lambda **kwargs: str(path))
    controller.sidebar.on_open_image(role)


def _erase_center(controller):
    controller.sidebar.on_eraser_toggle(True)
    controller.canvas.on_erase_start(400, 300)
    controller.canvas.on_erase_end()


def test_bind_events_syncs_switch_and_renders(controller):
    assert controller.sidebar.called("set_remove_background") == [(False,)]
    assert len(controller.canvas.called("set_frame")) == 1


def test_reset_restores_defaults_and_clears_eraser(controller, monkeypatch, files):
    _open(controller, monkeypatch, ImageRole.TATTOO, files["sketch"])
    controller.sidebar.on_setting_change("scale", 1.7)
    controller.sidebar.on_setting_change("black_and_white", True)
    controller.sidebar.on_nudge(1, 0)
    _erase_center(controller)
    assert controller._eraser.mask() is not None

    controller.bottom.on_reset()

    assert controller.session.settings == TattooSettings()
    assert controller._eraser.mask() is None
    assert controller.sidebar.called("set_settings")[-1] == (controller.session.settings,)


def test_same_source_is_not_reloaded(controller, monkeypatch, files):
    _open(controller, monkeypatch, ImageRole.TATTOO, files["sketch"])
    first = controller.session.tattoo

    _open(controller, monkeypatch, ImageRole.TATTOO, files["sketch"])

    assert controller.session.tattoo is first
    assert len(controller.sidebar.called("set_image_info")) == 1


def test_new_sketch_drops_previous_erase_strokes(controller, monkeypatch, files):
    _open(controller, monkeypatch, ImageRole.TATTOO, files["sketch"])
    _erase_center(controller)

    _open(controller, monkeypatch, ImageRole.TATTOO, files["other_sketch"])

    assert controller.session.tattoo.size == (80, 120)
    assert controller._eraser.mask() is None


def test_load_error_is_reported(controller, monkeypatch, tmp_path):
    broken = tmp_path / "broken.png"
    broken.write_bytes(b"not an image")
    shown = []
    monkeypatch.setattr(messagebox, "showerror", lambda title, message, **kwargs: shown.append(title))

    _open(controller, monkeypatch, ImageRole.BASE, broken)

    assert controller.session.base is None
    assert shown == ["Не удалось загрузить изображение"]


def test_mask_result_is_installed_and_redrawn(tmp_path, monkeypatch, files):
    config = SegmentationConfig(models_dir=tmp_path / "models")
    monkeypatch.setattr(SkinSegmenter, "_instance", SkinSegmenter(config, backend_factory=SkinBackend))
    controller = _make_controller(tmp_path, segmentation_enabled=True)
    try:
        _open(controller, monkeypatch, ImageRole.BASE, files["arm"])
        assert controller.bottom.called("set_segmentation_busy") == [(True,)]

        controller._mask_loader.pending.result(timeout=10)
        controller.window.run_pending()

        assert controller.session.mask is not None
        assert controller.session.mask.size == (400, 400)
        assert controller.bottom.called("set_segmentation_busy")[-1] == (False,)
        assert controller.bottom.called("set_status")[-1] == ("Маска кожи готова",)
        assert controller._scheduler.is_pending
        frames = len(controller.canvas.called("set_frame"))
        controller.window.run_pending()
        assert len(controller.canvas.called("set_frame")) == frames + 1
    finally:
        controller.shutdown()


def test_unavailable_segmenter_degrades_to_status(tmp_path, monkeypatch, files):
    def missing_backend():
        raise ImportError("No module named 'mediapipe'")

    config = SegmentationConfig(models_dir=tmp_path / "models")
    monkeypatch.setattr(SkinSegmenter, "_instance", SkinSegmenter(config, backend_factory=missing_backend))
    controller = _make_controller(tmp_path, segmentation_enabled=True)
    try:
        _open(controller, monkeypatch, ImageRole.BASE, files["arm"])
        controller._mask_loader.pending.exception(timeout=10)
        controller.window.run_pending()

        assert controller.session.mask is None
        assert controller.session.base is not None
        assert controller.bottom.called("set_segmentation_busy")[-1] == (False,)
        assert controller.bottom.called("set_status")[-1] == (
            "Сегментация недоступна, предпросмотр без маски кожи",
        )
    finally:
        controller.shutdown()
