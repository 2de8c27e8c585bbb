from typing import Optional

import customtkinter as ctk

from tattoo_preview.config import AppConfig
from tattoo_preview.controllers.app_controller import AppController
from tattoo_preview.ui.bottom_bar import BottomBar
from tattoo_preview.ui.preview_canvas import PreviewCanvas
from tattoo_preview.ui.sidebar import Sidebar


class TattooPreviewApp(ctk.CTk):
    def __init__(self, config: Optional[AppConfig] = None) -> None:
        super().__init__()
        ctk.set_appearance_mode("system")
        ctk.set_default_color_theme("blue")

        self._config = config or AppConfig()

        self.title("Tattoo Preview")
        self.minsize(1100, 700)

        # root layout: left preview, right sidebar
        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(0, weight=1)
        self.grid_rowconfigure(1, weight=0)

        self._canvas = PreviewCanvas(self)
        self._canvas.grid(row=0, column=0, sticky="nsew", padx=(12, 6), pady=(12, 6))

        self._sidebar = Sidebar(self)
        self._sidebar.grid(row=0, column=1, sticky="ns", padx=(6, 12), pady=(12, 6))

        self._bottom = BottomBar(self)
        self._bottom.grid(row=1, column=0, columnspan=2, sticky="ew", padx=12, pady=(0, 12))

        self._controller = AppController(
            canvas=self._canvas, sidebar=self._sidebar, bottom=self._bottom, window=self, config=self._config
        )
        self._controller.bind_events()
        self.protocol("WM_DELETE_WINDOW", self._on_close)

    def _on_close(self) -> None:
        self._controller.shutdown()
        self.destroy()
