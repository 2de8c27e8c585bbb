"""Перетаскивание эскиза: снимок смещения в начале + полная дельта от точки старта.

Дельта считается не инкрементально, а от начальной точки, поэтому итоговое
смещение не зависит от частоты событий движения и не копит ошибку округления.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass
class DragTracker:
    _start_xy: Optional[Tuple[float, float]] = None
    _start_offset: Optional[Tuple[float, float]] = None

    @property
    def is_dragging(self) -> bool:
        return self._start_xy is not None

    def begin(self, x: float, y: float, offset_x: float, offset_y: float) -> None:
        """Запоминает точку старта и текущее смещение."""
        self._start_xy = (x, y)
        self._start_offset = (offset_x, offset_y)

    def move(self, x: float, y: float, width: float, height: float) -> Optional[Tuple[float, float]]:
        """Новое смещение для позиции (x, y) на области отображения `width` × `height`.

        Возвращает None, если перетаскивание не начато или область вырождена.
        """
        if self._start_xy is None or self._start_offset is None:
            return None
        if width <= 0 or height <= 0:
            return None
        sx, sy = self._start_xy
        ox, oy = self._start_offset
        return ox + (x - sx) / width, oy + (y - sy) / height

    def end(self) -> None:
        self._start_xy = None
        self._start_offset = None
