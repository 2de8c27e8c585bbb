"""Контроллер приложения: оркестрация UI и сервисов.

SOLID:
- SRP: класс управляет связями между UI и сервисами (без логики обработки изображений).
- DIP: сервисы передаются полями датакласса; конкретные реализации подставляются по умолчанию.
Clean Code:
- Обработчики компактны; тяжёлая логика вынесена в сервисы.
- Любое изменение состояния заканчивается `RenderScheduler.schedule()`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from tkinter import TclError, filedialog, messagebox
from typing import TYPE_CHECKING, Any, Optional

from PIL import Image

from tattoo_preview.config import AppConfig
from tattoo_preview.controllers.drag_tracker import DragTracker
from tattoo_preview.controllers.mask_loader import MaskLoader, MaskResult
from tattoo_preview.controllers.render_scheduler import RenderScheduler
from tattoo_preview.errors import SegmenterUnavailableError, TattooPreviewError
from tattoo_preview.models.image_model import ImageRole, UploadedImage
from tattoo_preview.models.preview_model import PreviewSession
from tattoo_preview.services.compositor import Compositor
from tattoo_preview.services.eraser_service import EraserService
from tattoo_preview.services.image_service import ImageService
from tattoo_preview.services.process_service import ProcessService
from tattoo_preview.services.segmentation_service import SkinSegmenter

if TYPE_CHECKING:
    import customtkinter as ctk

    from tattoo_preview.ui.bottom_bar import BottomBar
    from tattoo_preview.ui.preview_canvas import PreviewCanvas
    from tattoo_preview.ui.sidebar import Sidebar

logger = logging.getLogger(__name__)

_ROLE_TITLES = {
    ImageRole.BASE: "Выберите фото участка тела",
    ImageRole.TATTOO: "Выберите эскиз татуировки",
}


@dataclass
class AppController:
    """Связывает элементы UI с прикладной логикой.

    Ответственности:
    - Загрузка фото и эскиза через `ImageService`, удаление фона через `ProcessService`.
    - Параметры эскиза, перетаскивание, ластик, сброс и экспорт.
    - Фоновая сегментация кожи и установка маски только для актуального фото.
    """
    canvas: "PreviewCanvas"
    sidebar: "Sidebar"
    bottom: "BottomBar"
    window: "ctk.CTk"
    config: AppConfig = field(default_factory=AppConfig)

    session: PreviewSession = field(default_factory=PreviewSession)
    _image_service: ImageService = field(default_factory=ImageService)
    _process_service: ProcessService = field(default_factory=ProcessService)
    _drag: DragTracker = field(default_factory=DragTracker)
    _compositor: Optional[Compositor] = None
    _eraser: Optional[EraserService] = None
    _scheduler: Optional[RenderScheduler] = None
    _mask_loader: Optional[MaskLoader] = None
    _mask_poll_id: Optional[Any] = None
    _eraser_mode: bool = False
    _last_frame: Optional[Image.Image] = None

    def __post_init__(self) -> None:
        canvas_size = self.config.canvas.size
        self._compositor = Compositor(canvas_size, self._process_service)
        self._eraser = EraserService(canvas_size)
        self._scheduler = RenderScheduler(
            self.window.after, self.window.after_cancel, self._render, self.config.canvas.render_delay_ms
        )
        segmenter = SkinSegmenter.get_instance(self.config.segmentation)
        self._mask_loader = MaskLoader(segmenter.generate_mask)

    def bind_events(self) -> None:
        """Регистрирует обработчики событий между UI-компонентами.

        Компоненты UI ничего не знают друг о друге, общаются через контроллер.
        """
        self.sidebar.on_open_image = self._handle_open_image
        self.sidebar.on_setting_change = self._handle_setting_change
        self.sidebar.on_remove_background_change = self._handle_remove_background
        self.sidebar.on_nudge = self._handle_nudge
        self.sidebar.on_center = self._handle_center
        self.sidebar.on_eraser_toggle = self._handle_eraser_toggle
        self.sidebar.on_eraser_setting_change = self._handle_eraser_setting
        self.sidebar.on_eraser_undo = self._handle_eraser_undo
        self.sidebar.on_eraser_clear = self._handle_eraser_clear

        self.canvas.on_drag_start = self._handle_drag_start
        self.canvas.on_drag_move = self._handle_drag_move
        self.canvas.on_drag_end = self._handle_drag_end
        self.canvas.on_erase_start = self._handle_erase_start
        self.canvas.on_erase_move = self._handle_erase_move
        self.canvas.on_erase_end = self._handle_erase_end

        self.bottom.on_reset = self._handle_reset
        self.bottom.on_export = self._handle_export

        self.sidebar.set_remove_background(self.session.remove_background)
        self._scheduler.flush()

    def shutdown(self) -> None:
        """Останавливает таймеры и фоновый поток перед закрытием окна."""
        self._scheduler.cancel()
        if self._mask_poll_id is not None:
            try:
                self.window.after_cancel(self._mask_poll_id)
            except TclError:
                pass
            self._mask_poll_id = None
        self._mask_loader.shutdown()
        SkinSegmenter.reset_instance()

    # ---- Images ----
    def _handle_open_image(self, role: ImageRole) -> None:
        try:
            file_path = filedialog.askopenfilename(
                title=_ROLE_TITLES[role],
                filetypes=(
                    ("Images", " ".join(f"*.{ext}" for ext in self._image_service.SUPPORTED_EXTENSIONS)),
                    ("All files", "*.*"),
                ),
            )
        except TclError:
            # Silent fail if dialog cannot open
            return

        if not file_path:
            return

        try:
            if self.session.has_same_source(role, self._image_service.source_key(file_path)):
                logger.debug("Same %s source selected again, skipping reload", role.value)
                return
            uploaded = self._image_service.load_image(file_path)
        except (TattooPreviewError, OSError) as exc:
            self._report_error("Не удалось загрузить изображение", exc)
            return

        if role is ImageRole.BASE:
            self._install_base(uploaded)
        else:
            self._install_tattoo(uploaded)
        self.sidebar.set_image_info(role, uploaded)
        self._scheduler.schedule()

    def _install_base(self, uploaded: UploadedImage) -> None:
        self.session.set_base(uploaded)
        self.bottom.set_export_enabled(True)
        if not self.config.segmentation.enabled:
            self.bottom.set_status(f"Фото: {uploaded.path.name}")
            return
        self._mask_loader.submit(uploaded.pil_image)
        self.bottom.set_segmentation_busy(True)
        self.bottom.set_status("Определяем участки кожи…")
        self._schedule_mask_poll()

    def _install_tattoo(self, uploaded: UploadedImage) -> None:
        self.session.set_tattoo(uploaded, self._prepare_tattoo(uploaded.pil_image))
        self._compositor.invalidate_cache()
        self._eraser.clear()  # штрихи относятся к прежнему эскизу
        self.canvas.set_grab_enabled(True)
        self.sidebar.set_tattoo_controls_enabled(True)
        self.bottom.set_export_enabled(True)
        self.bottom.set_status(f"Эскиз: {uploaded.path.name}. Перетащите его мышью")

    def _prepare_tattoo(self, image: Image.Image) -> Image.Image:
        if not self.session.remove_background:
            return image
        cleaned = self._process_service.remove_background(image)
        return self._process_service.crop_to_content(cleaned)

    def _handle_remove_background(self, enabled: bool) -> None:
        self.session.remove_background = enabled
        if self.session.tattoo is None:
            return
        self.session.tattoo_image = self._prepare_tattoo(self.session.tattoo.pil_image)
        self._compositor.invalidate_cache()
        self._scheduler.schedule()

    # ---- Skin mask ----
    def _schedule_mask_poll(self) -> None:
        if self._mask_poll_id is None:
            self._mask_poll_id = self.window.after(self.config.segmentation.poll_interval_ms, self._poll_mask)

    def _poll_mask(self) -> None:
        self._mask_poll_id = None
        result = self._mask_loader.poll()
        if result is None:
            if self._mask_loader.pending is not None:
                self._schedule_mask_poll()
            return
        self._handle_mask_result(result)

    def _handle_mask_result(self, result: MaskResult) -> None:
        self.bottom.set_segmentation_busy(False)
        if result.ok:
            self.session.mask = result.mask
            self.bottom.set_status("Маска кожи готова")
            self._scheduler.schedule()
            return
        if isinstance(result.error, SegmenterUnavailableError):
            self.bottom.set_status("Сегментация недоступна, предпросмотр без маски кожи")
        else:
            logger.error("Skin mask failed: %s", result.error)
            self.bottom.set_status("Не удалось построить маску кожи, предпросмотр без маски")

    # ---- Settings ----
    def _handle_setting_change(self, name: str, value: object) -> None:
        self.session.settings.update(**{name: value})
        self._scheduler.schedule()

    def _handle_nudge(self, dx: int, dy: int) -> None:
        if self.session.tattoo is None:
            return
        self.session.settings.nudge(dx, dy)
        self._scheduler.schedule()

    def _handle_center(self) -> None:
        self.session.settings.update(offset_x=0.0, offset_y=0.0)
        self._scheduler.schedule()

    def _handle_reset(self) -> None:
        self.session.settings.reset()
        self._eraser.clear()
        self.sidebar.set_settings(self.session.settings)
        self.bottom.set_status("Параметры сброшены")
        self._scheduler.schedule()

    # ---- Drag ----
    def _handle_drag_start(self, x: float, y: float) -> None:
        if self.session.tattoo is None:
            return
        settings = self.session.settings
        self._drag.begin(x, y, settings.offset_x, settings.offset_y)

    def _handle_drag_move(self, x: float, y: float, width: float, height: float) -> None:
        offset = self._drag.move(x, y, width, height)
        if offset is None:
            return
        self.session.settings.update(offset_x=offset[0], offset_y=offset[1])
        self._scheduler.schedule()

    def _handle_drag_end(self) -> None:
        self._drag.end()

    # ---- Eraser ----
    def _handle_eraser_toggle(self, enabled: bool) -> None:
        self._eraser_mode = enabled and self.session.tattoo is not None
        self.sidebar.set_eraser_mode(self._eraser_mode)
        self.canvas.set_eraser_mode(self._eraser_mode)

    def _handle_eraser_setting(self, name: str, value: float) -> None:
        self._eraser.update_settings(**{name: value})

    def _handle_erase_start(self, x: float, y: float) -> None:
        if not self._eraser_mode:
            return
        self._eraser.begin_stroke(x, y)
        self._scheduler.schedule()

    def _handle_erase_move(self, x: float, y: float) -> None:
        if not self._eraser_mode:
            return
        self._eraser.continue_stroke(x, y)
        self._scheduler.schedule()

    def _handle_erase_end(self) -> None:
        self._eraser.end_stroke()

    def _handle_eraser_undo(self) -> None:
        if self._eraser.undo():
            self._scheduler.schedule()

    def _handle_eraser_clear(self) -> None:
        self._eraser.clear()
        self._scheduler.schedule()

    # ---- Export ----
    def _handle_export(self) -> None:
        if self.session.base is None and self.session.tattoo is None:
            return
        try:
            file_path = filedialog.asksaveasfilename(
                title="Сохранить предпросмотр",
                defaultextension=".png",
                initialdir=str(self.config.export.output_dir),
                initialfile=self._image_service.default_export_name(),
                filetypes=(("PNG", "*.png"),),
            )
        except TclError:
            return

        if not file_path:
            return

        self._scheduler.flush()
        try:
            saved = self._image_service.export_png(self._last_frame, file_path)
        except TattooPreviewError as exc:
            self._report_error("Не удалось сохранить изображение", exc)
            return
        self.bottom.set_status(f"Сохранено: {saved}")

    # ---- Helpers ----
    def _render(self) -> None:
        """Перестраивает кадр из текущего состояния сессии."""
        frame = self._compositor.render(
            self.session.base_image,
            self.session.tattoo_image,
            self.session.settings.clamped(),
            mask=self.session.mask,
            erase_mask=self._eraser.mask(),
        )
        self._last_frame = frame
        self.canvas.set_frame(frame)

    def _report_error(self, title: str, exc: Exception) -> None:
        logger.error("%s: %s", title, exc)
        self.bottom.set_status(f"{title}: {exc}")
        try:
            messagebox.showerror(title, str(exc), parent=self.window)
        except TclError:
            pass
