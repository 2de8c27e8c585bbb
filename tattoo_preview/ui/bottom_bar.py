from __future__ import annotations

from typing import Callable, Optional

import customtkinter as ctk


class BottomBar(ctk.CTkFrame):
    def __init__(self, master: ctk.CTk, **kwargs) -> None:
        super().__init__(master, height=56, **kwargs)

        # callbacks
        self.on_reset: Optional[Callable[[], None]] = None
        self.on_export: Optional[Callable[[], None]] = None

        # layout
        self.grid_rowconfigure(0, weight=1)
        self.grid_columnconfigure(0, weight=1)  # status stretches

        self._status = ctk.StringVar(value="Загрузите фото участка тела и эскиз")
        self._status_label = ctk.CTkLabel(self, textvariable=self._status, anchor="w")
        self._status_label.grid(row=0, column=0, padx=(10, 6), pady=8, sticky="ew")

        # индикатор сегментации (скрыт, пока маска не строится)
        self._progress = ctk.CTkProgressBar(self, mode="indeterminate", width=120)
        self._progress.grid(row=0, column=1, padx=6, pady=8)
        self._progress.grid_remove()

        self._reset_btn = ctk.CTkButton(self, text="Сбросить", width=110, command=self._on_reset_click)
        self._reset_btn.grid(row=0, column=2, padx=6, pady=8)

        self._export_btn = ctk.CTkButton(self, text="Экспорт PNG…", width=130, command=self._on_export_click)
        self._export_btn.grid(row=0, column=3, padx=(6, 10), pady=8)
        self._export_btn.configure(state="disabled")

    # public API (sync from controller)
    def set_status(self, text: str) -> None:
        self._status.set(text)

    def set_segmentation_busy(self, busy: bool) -> None:
        if busy:
            self._progress.grid()
            self._progress.start()
        else:
            self._progress.stop()
            self._progress.grid_remove()

    def set_export_enabled(self, enabled: bool) -> None:
        self._export_btn.configure(state="normal" if enabled else "disabled")

    # events
    def _on_reset_click(self) -> None:
        if self.on_reset:
            self.on_reset()

    def _on_export_click(self) -> None:
        if self.on_export:
            self.on_export()
