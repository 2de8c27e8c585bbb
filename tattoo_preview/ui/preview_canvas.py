"""Виджет предпросмотра: показ готового кадра и перевод мыши в события контроллера.

Принципы:
- SRP: только отображение кадра и интеракции; кадр строит `Compositor`.
- Координаты событий перетаскивания: экранные пиксели виджета вместе с размером
  отображаемого кадра; события ластика уже в пикселях холста композиции.
"""
from __future__ import annotations

from typing import Callable, Optional, Tuple

import customtkinter as ctk
import tkinter as tk
from PIL import Image, ImageTk


class PreviewCanvas(ctk.CTkFrame):
    """Канва с кадром, вписанным в доступную область по центру."""
    def __init__(self, master: ctk.CTk | tk.Misc, **kwargs) -> None:
        super().__init__(master, **kwargs)
        self.grid_rowconfigure(0, weight=1)
        self.grid_columnconfigure(0, weight=1)

        self._canvas = tk.Canvas(self, highlightthickness=0, bg=self._get_canvas_bg())
        self._canvas.grid(row=0, column=0, sticky="nsew")

        self._frame_image: Optional[Image.Image] = None
        self._tk_image: Optional[ImageTk.PhotoImage] = None
        self._display_scale: float = 1.0
        self._image_top_left: Tuple[int, int] = (0, 0)

        self._grab_enabled: bool = False
        self._eraser_mode: bool = False
        self._pressed: bool = False

        self.on_drag_start: Optional[Callable[[float, float], None]] = None
        self.on_drag_move: Optional[Callable[[float, float, float, float], None]] = None
        self.on_drag_end: Optional[Callable[[], None]] = None
        self.on_erase_start: Optional[Callable[[float, float], None]] = None
        self.on_erase_move: Optional[Callable[[float, float], None]] = None
        self.on_erase_end: Optional[Callable[[], None]] = None

        self._canvas.bind("<Configure>", self._on_canvas_resize)
        self._canvas.bind("<ButtonPress-1>", self._on_press)
        self._canvas.bind("<B1-Motion>", self._on_motion)
        self._canvas.bind("<ButtonRelease-1>", self._on_release)
        self._canvas.bind("<Leave>", self._on_leave)

    # ---- Public API ----
    def set_frame(self, image: Image.Image) -> None:
        """Показывает новый кадр композиции."""
        self._frame_image = image
        self._render()

    def set_grab_enabled(self, enabled: bool) -> None:
        """Разрешает перетаскивание (эскиз загружен)."""
        self._grab_enabled = enabled
        self._update_cursor()

    def set_eraser_mode(self, enabled: bool) -> None:
        self._eraser_mode = enabled
        self._update_cursor()

    def displayed_size(self) -> Tuple[float, float]:
        """Размер кадра на экране, px."""
        if self._frame_image is None:
            return 0.0, 0.0
        w, h = self._frame_image.size
        return w * self._display_scale, h * self._display_scale

    # ---- Internals ----
    def _on_canvas_resize(self, _event: tk.Event) -> None:
        self._render()

    def _render(self) -> None:
        self._canvas.delete("all")
        if self._frame_image is None:
            return

        canvas_w = max(1, int(self._canvas.winfo_width()))
        canvas_h = max(1, int(self._canvas.winfo_height()))
        img_w, img_h = self._frame_image.size
        self._display_scale = min(canvas_w / img_w, canvas_h / img_h)

        scaled_w = max(1, int(img_w * self._display_scale))
        scaled_h = max(1, int(img_h * self._display_scale))
        shown = self._frame_image
        if (scaled_w, scaled_h) != shown.size:
            shown = shown.resize((scaled_w, scaled_h), Image.Resampling.LANCZOS)

        self._image_top_left = ((canvas_w - scaled_w) // 2, (canvas_h - scaled_h) // 2)
        ox, oy = self._image_top_left
        self._tk_image = ImageTk.PhotoImage(shown)
        self._canvas.create_image(ox, oy, image=self._tk_image, anchor="nw")

    def _to_frame_coords(self, cx: int, cy: int) -> Tuple[float, float]:
        ox, oy = self._image_top_left
        scale = self._display_scale or 1.0
        return (cx - ox) / scale, (cy - oy) / scale

    def _on_press(self, event: tk.Event) -> None:
        if self._frame_image is None:
            return
        self._canvas.focus_set()
        if self._eraser_mode:
            self._pressed = True
            if self.on_erase_start:
                self.on_erase_start(*self._to_frame_coords(event.x, event.y))
            return
        if not self._grab_enabled:
            return
        self._pressed = True
        self._canvas.configure(cursor="fleur")
        if self.on_drag_start:
            self.on_drag_start(event.x, event.y)

    def _on_motion(self, event: tk.Event) -> None:
        if not self._pressed:
            return
        if self._eraser_mode:
            if self.on_erase_move:
                self.on_erase_move(*self._to_frame_coords(event.x, event.y))
            return
        if self.on_drag_move:
            width, height = self.displayed_size()
            self.on_drag_move(event.x, event.y, width, height)

    def _on_release(self, _event: tk.Event) -> None:
        if not self._pressed:
            return
        self._pressed = False
        if self._eraser_mode:
            if self.on_erase_end:
                self.on_erase_end()
        elif self.on_drag_end:
            self.on_drag_end()
        self._update_cursor()

    def _on_leave(self, event: tk.Event) -> None:
        # кнопка может быть отпущена за пределами канвы
        if self._pressed and not (int(event.state) & 0x0100):
            self._on_release(event)

    def _update_cursor(self) -> None:
        if self._eraser_mode:
            cursor = "circle"
        elif self._grab_enabled:
            cursor = "hand2"
        else:
            cursor = ""
        self._canvas.configure(cursor=cursor)

    def _get_canvas_bg(self) -> str:
        return "#1f1f1f" if ctk.get_appearance_mode().lower() == "dark" else "#f2f2f2"
