"""Боковая панель: загрузка изображений, информация, параметры эскиза и ластика.

Принципы:
- SRP: управляет только UI параметров, не содержит логики рисования.
- ISP: события наружу через `on_*`, синхронизация состояния через `set_*`.
"""
from __future__ import annotations

from typing import Callable, Dict, Optional

import customtkinter as ctk

from tattoo_preview.models.image_model import ImageRole, UploadedImage
from tattoo_preview.models.settings_model import ERASER_RANGES, SETTINGS_RANGES, EraserSettings, TattooSettings

_SETTING_LABELS = {
    "opacity": "Непрозрачность",
    "scale": "Масштаб",
    "rotation": "Поворот",
    "contrast": "Контраст",
}

_ERASER_LABELS = {
    "size": "Размер кисти",
    "hardness": "Жёсткость",
    "opacity": "Непрозрачность",
    "flow": "Нажим",
}


def _format_value(name: str, value: float) -> str:
    if name in ("opacity", "hardness", "flow"):
        return f"{int(round(value * 100))}%"
    if name == "scale":
        return f"{value:.1f}x"
    if name == "rotation":
        return f"{int(round(value))}°"
    if name == "size":
        return f"{int(round(value))} px"
    return f"{value:.1f}"


def _human_size(size_bytes: Optional[int]) -> str:
    if size_bytes is None:
        return "—"
    if size_bytes < 1024:
        return f"{size_bytes} B"
    if size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    return f"{size_bytes / (1024 * 1024):.1f} MB"


def _steps(bounds) -> int:
    lo, hi, step = bounds
    return max(1, int(round((hi - lo) / step)))


class Sidebar(ctk.CTkScrollableFrame):
    """Панель инструментов с блоками: изображения, эскиз, положение, ластик."""
    def __init__(self, master: ctk.CTk, **kwargs) -> None:
        super().__init__(master, width=280, **kwargs)

        self.grid_columnconfigure(0, weight=1)

        # Callbacks
        self.on_open_image: Optional[Callable[[ImageRole], None]] = None
        self.on_setting_change: Optional[Callable[[str, object], None]] = None
        self.on_remove_background_change: Optional[Callable[[bool], None]] = None
        self.on_nudge: Optional[Callable[[int, int], None]] = None
        self.on_center: Optional[Callable[[], None]] = None
        self.on_eraser_toggle: Optional[Callable[[bool], None]] = None
        self.on_eraser_setting_change: Optional[Callable[[str, float], None]] = None
        self.on_eraser_undo: Optional[Callable[[], None]] = None
        self.on_eraser_clear: Optional[Callable[[], None]] = None

        # синхронизация из контроллера не должна порождать события обратно
        self._syncing = False
        row = 0

        # Images
        self._images_title = ctk.CTkLabel(self, text="Изображения", font=ctk.CTkFont(size=16, weight="bold"))
        self._images_title.grid(row=row, column=0, padx=8, pady=(8, 4), sticky="w")
        row += 1

        self._open_base_btn = ctk.CTkButton(
            self, text="Фото участка тела…", command=lambda: self._emit_open(ImageRole.BASE)
        )
        self._open_base_btn.grid(row=row, column=0, padx=8, pady=(0, 2), sticky="ew")
        row += 1
        self._base_info = ctk.StringVar(value="Фото не загружено")
        ctk.CTkLabel(self, textvariable=self._base_info, wraplength=250, anchor="w", justify="left").grid(
            row=row, column=0, padx=8, pady=(0, 8), sticky="ew"
        )
        row += 1

        self._open_tattoo_btn = ctk.CTkButton(
            self, text="Эскиз татуировки…", command=lambda: self._emit_open(ImageRole.TATTOO)
        )
        self._open_tattoo_btn.grid(row=row, column=0, padx=8, pady=(0, 2), sticky="ew")
        row += 1
        self._tattoo_info = ctk.StringVar(value="Эскиз не загружен")
        ctk.CTkLabel(self, textvariable=self._tattoo_info, wraplength=250, anchor="w", justify="left").grid(
            row=row, column=0, padx=8, pady=(0, 4), sticky="ew"
        )
        row += 1

        self._remove_bg_var = ctk.BooleanVar(value=False)
        self._remove_bg_switch = ctk.CTkSwitch(
            self, text="Удалить фон эскиза", variable=self._remove_bg_var, command=self._on_remove_bg
        )
        self._remove_bg_switch.grid(row=row, column=0, padx=8, pady=(0, 10), sticky="w")
        row += 1

        # Tattoo settings
        self._settings_title = ctk.CTkLabel(self, text="Эскиз", font=ctk.CTkFont(size=16, weight="bold"))
        self._settings_title.grid(row=row, column=0, padx=8, pady=(8, 4), sticky="w")
        row += 1

        self._sliders: Dict[str, ctk.CTkSlider] = {}
        self._slider_values: Dict[str, ctk.StringVar] = {}
        for name, bounds in SETTINGS_RANGES.items():
            row = self._add_slider(row, name, _SETTING_LABELS[name], bounds, self._sliders, self._slider_values,
                                   lambda value, n=name: self._on_setting_slider(n, value))

        self._bw_var = ctk.BooleanVar(value=False)
        self._bw_switch = ctk.CTkSwitch(
            self, text="Чёрно-белый", variable=self._bw_var,
            command=lambda: self._emit_setting("black_and_white", bool(self._bw_var.get())),
        )
        self._bw_switch.grid(row=row, column=0, padx=8, pady=(4, 2), sticky="w")
        row += 1

        self._multiply_var = ctk.BooleanVar(value=True)
        self._multiply_switch = ctk.CTkSwitch(
            self, text="Эффект multiply", variable=self._multiply_var,
            command=lambda: self._emit_setting("multiply_effect", bool(self._multiply_var.get())),
        )
        self._multiply_switch.grid(row=row, column=0, padx=8, pady=(2, 10), sticky="w")
        row += 1

        # Position
        self._position_title = ctk.CTkLabel(self, text="Положение", font=ctk.CTkFont(size=16, weight="bold"))
        self._position_title.grid(row=row, column=0, padx=8, pady=(8, 4), sticky="w")
        row += 1

        nudge = ctk.CTkFrame(self, fg_color="transparent")
        nudge.grid(row=row, column=0, padx=8, pady=(0, 10))
        row += 1
        for text, dx, dy, r, c in (("↑", 0, -1, 0, 1), ("←", -1, 0, 1, 0), ("→", 1, 0, 1, 2), ("↓", 0, 1, 2, 1)):
            ctk.CTkButton(nudge, text=text, width=40, command=lambda x=dx, y=dy: self._emit_nudge(x, y)).grid(
                row=r, column=c, padx=2, pady=2
            )
        ctk.CTkButton(nudge, text="●", width=40, command=self._emit_center).grid(row=1, column=1, padx=2, pady=2)

        # Eraser
        self._eraser_title = ctk.CTkLabel(self, text="Ластик", font=ctk.CTkFont(size=16, weight="bold"))
        self._eraser_title.grid(row=row, column=0, padx=8, pady=(8, 4), sticky="w")
        row += 1

        self._eraser_var = ctk.BooleanVar(value=False)
        self._eraser_switch = ctk.CTkSwitch(
            self, text="Режим ластика", variable=self._eraser_var, command=self._on_eraser_toggle
        )
        self._eraser_switch.grid(row=row, column=0, padx=8, pady=(0, 4), sticky="w")
        row += 1

        self._eraser_sliders: Dict[str, ctk.CTkSlider] = {}
        self._eraser_values: Dict[str, ctk.StringVar] = {}
        for name, bounds in ERASER_RANGES.items():
            row = self._add_slider(row, name, _ERASER_LABELS[name], bounds, self._eraser_sliders, self._eraser_values,
                                   lambda value, n=name: self._on_eraser_slider(n, value))

        eraser_buttons = ctk.CTkFrame(self, fg_color="transparent")
        eraser_buttons.grid(row=row, column=0, padx=8, pady=(4, 8), sticky="ew")
        eraser_buttons.grid_columnconfigure((0, 1), weight=1)
        self._undo_btn = ctk.CTkButton(eraser_buttons, text="Отменить", command=self._emit_eraser_undo)
        self._undo_btn.grid(row=0, column=0, padx=(0, 4), sticky="ew")
        self._clear_btn = ctk.CTkButton(eraser_buttons, text="Очистить", command=self._emit_eraser_clear)
        self._clear_btn.grid(row=0, column=1, padx=(4, 0), sticky="ew")

        self.set_settings(TattooSettings())
        self.set_eraser_settings(EraserSettings())
        self.set_tattoo_controls_enabled(False)

    # ---- Public API ----
    def set_image_info(self, role: ImageRole, image: Optional[UploadedImage]) -> None:
        """Обновляет блок информации об изображении."""
        target = self._base_info if role is ImageRole.BASE else self._tattoo_info
        if image is None:
            target.set("Фото не загружено" if role is ImageRole.BASE else "Эскиз не загружен")
            return
        target.set(f"{image.path.name}\n{image.width}×{image.height}, {image.mode}, {_human_size(image.size_bytes)}")

    def set_settings(self, settings: TattooSettings) -> None:
        """Синхронизирует слайдеры и переключатели с параметрами (без событий)."""
        self._syncing = True
        try:
            for name, slider in self._sliders.items():
                value = float(getattr(settings, name))
                slider.set(value)
                self._slider_values[name].set(_format_value(name, value))
            self._bw_var.set(settings.black_and_white)
            self._multiply_var.set(settings.multiply_effect)
        finally:
            self._syncing = False

    def set_eraser_settings(self, settings: EraserSettings) -> None:
        self._syncing = True
        try:
            for name, slider in self._eraser_sliders.items():
                value = float(getattr(settings, name))
                slider.set(value)
                self._eraser_values[name].set(_format_value(name, value))
        finally:
            self._syncing = False

    def set_eraser_mode(self, enabled: bool) -> None:
        self._eraser_var.set(enabled)

    def set_remove_background(self, enabled: bool) -> None:
        self._remove_bg_var.set(enabled)

    def set_tattoo_controls_enabled(self, enabled: bool) -> None:
        """Параметры эскиза и ластик доступны только при загруженном эскизе."""
        state = "normal" if enabled else "disabled"
        for slider in list(self._sliders.values()) + list(self._eraser_sliders.values()):
            slider.configure(state=state)
        for widget in (self._bw_switch, self._multiply_switch, self._eraser_switch, self._undo_btn, self._clear_btn):
            widget.configure(state=state)

    # ---- Helpers ----
    def _add_slider(self, row, name, title, bounds, sliders, values, command) -> int:
        lo, hi, _step = bounds
        header = ctk.CTkFrame(self, fg_color="transparent")
        header.grid(row=row, column=0, padx=8, pady=(2, 0), sticky="ew")
        header.grid_columnconfigure(0, weight=1)
        ctk.CTkLabel(header, text=title, anchor="w").grid(row=0, column=0, sticky="w")
        values[name] = ctk.StringVar(value="")
        ctk.CTkLabel(header, textvariable=values[name], width=56, anchor="e").grid(row=0, column=1, sticky="e")

        slider = ctk.CTkSlider(self, from_=lo, to=hi, number_of_steps=_steps(bounds), command=command)
        slider.grid(row=row + 1, column=0, padx=8, pady=(0, 6), sticky="ew")
        sliders[name] = slider
        return row + 2

    # ---- Events ----
    def _emit_open(self, role: ImageRole) -> None:
        if self.on_open_image:
            self.on_open_image(role)

    def _emit_setting(self, name: str, value: object) -> None:
        if not self._syncing and self.on_setting_change:
            self.on_setting_change(name, value)

    def _on_setting_slider(self, name: str, value: float) -> None:
        self._slider_values[name].set(_format_value(name, value))
        self._emit_setting(name, float(value))

    def _on_remove_bg(self) -> None:
        if self.on_remove_background_change:
            self.on_remove_background_change(bool(self._remove_bg_var.get()))

    def _emit_nudge(self, dx: int, dy: int) -> None:
        if self.on_nudge:
            self.on_nudge(dx, dy)

    def _emit_center(self) -> None:
        if self.on_center:
            self.on_center()

    def _on_eraser_toggle(self) -> None:
        if self.on_eraser_toggle:
            self.on_eraser_toggle(bool(self._eraser_var.get()))

    def _on_eraser_slider(self, name: str, value: float) -> None:
        self._eraser_values[name].set(_format_value(name, value))
        if not self._syncing and self.on_eraser_setting_change:
            self.on_eraser_setting_change(name, float(value))

    def _emit_eraser_undo(self) -> None:
        if self.on_eraser_undo:
            self.on_eraser_undo()

    def _emit_eraser_clear(self) -> None:
        if self.on_eraser_clear:
            self.on_eraser_clear()
