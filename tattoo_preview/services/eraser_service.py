"""Ластик: маска стирания эскиза размера холста.

Штрихи хранятся как списки точек вместе с параметрами кисти, поэтому отмена
последнего штриха пересобирает маску из оставшихся.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

import numpy as np
from PIL import Image

from tattoo_preview.models.settings_model import EraserSettings

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


@dataclass
class _Stroke:
    points: List[Point]
    brush: EraserSettings


class EraserService:
    def __init__(self, canvas_size: Tuple[int, int], settings: Optional[EraserSettings] = None) -> None:
        self.canvas_size = canvas_size
        self.settings = settings or EraserSettings()
        self._mask = np.zeros((canvas_size[1], canvas_size[0]), dtype=np.float32)
        self._strokes: List[_Stroke] = []
        self._current: Optional[_Stroke] = None

    # ---- Public API ----
    def update_settings(self, **changes: float) -> None:
        self.settings.update(**changes)

    def begin_stroke(self, x: float, y: float) -> None:
        self._current = _Stroke(points=[(x, y)], brush=replace(self.settings))
        self._stamp_segment((x, y), (x, y), self._current.brush)

    def continue_stroke(self, x: float, y: float) -> None:
        if self._current is None:
            return
        last = self._current.points[-1]
        self._current.points.append((x, y))
        self._stamp_segment(last, (x, y), self._current.brush)

    def end_stroke(self) -> None:
        if self._current is not None:
            self._strokes.append(self._current)
            logger.debug("Eraser stroke with %d points", len(self._current.points))
        self._current = None

    def undo(self) -> bool:
        """Отменяет последний штрих; False, если отменять нечего."""
        if not self._strokes:
            return False
        self._strokes.pop()
        self._redraw()
        return True

    def clear(self) -> None:
        self._strokes.clear()
        self._current = None
        self._mask.fill(0.0)

    @property
    def stroke_count(self) -> int:
        return len(self._strokes)

    def mask(self) -> Optional[Image.Image]:
        """L-маска (255: полностью стёрто) или None, если ничего не стёрто."""
        if not np.any(self._mask > 0):
            return None
        return Image.fromarray(np.clip(np.rint(self._mask * 255.0), 0, 255).astype(np.uint8))

    # ---- Internals ----
    def _redraw(self) -> None:
        self._mask.fill(0.0)
        for stroke in self._strokes:
            points = stroke.points
            self._stamp_segment(points[0], points[0], stroke.brush)
            for a, b in zip(points, points[1:]):
                self._stamp_segment(a, b, stroke.brush)

    def _stamp_segment(self, start: Point, end: Point, brush: EraserSettings) -> None:
        """Круглая кисть вдоль отрезка: полная сила внутри hardness*r, далее линейный спад до r."""
        radius = max(0.5, brush.size / 2.0)
        width, height = self.canvas_size
        (x0, y0), (x1, y1) = start, end

        left = int(max(0, np.floor(min(x0, x1) - radius)))
        right = int(min(width, np.ceil(max(x0, x1) + radius) + 1))
        top = int(max(0, np.floor(min(y0, y1) - radius)))
        bottom = int(min(height, np.ceil(max(y0, y1) + radius) + 1))
        if left >= right or top >= bottom:
            return

        ys, xs = np.mgrid[top:bottom, left:right].astype(np.float32)
        dx, dy = x1 - x0, y1 - y0
        length_sq = dx * dx + dy * dy
        if length_sq > 0:
            t = np.clip(((xs - x0) * dx + (ys - y0) * dy) / length_sq, 0.0, 1.0)
        else:
            t = np.zeros_like(xs)
        dist = np.hypot(xs - (x0 + t * dx), ys - (y0 + t * dy))

        core = radius * brush.hardness
        if core >= radius:
            profile = (dist <= radius).astype(np.float32)
        else:
            profile = np.clip((radius - dist) / (radius - core), 0.0, 1.0)

        strength = profile * brush.strength
        region = self._mask[top:bottom, left:right]
        # накопление как у destination-out: e' = e + s * (1 - e)
        region += strength * (1.0 - region)
