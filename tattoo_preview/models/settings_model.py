"""Параметры наложения татуировки и ластика.

Принципы:
- SRP: хранение и простые преобразования параметров; рисование живёт в сервисах.
- Плоская изменяемая структура: UI мутирует её, компоновщик читает на каждом кадре.
"""
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Dict, Tuple

# Диапазоны слайдеров: (min, max, step)
SETTINGS_RANGES: Dict[str, Tuple[float, float, float]] = {
    "opacity": (0.1, 1.0, 0.1),
    "scale": (0.1, 3.0, 0.1),
    "rotation": (0.0, 360.0, 1.0),
    "contrast": (0.5, 2.0, 0.1),
}

ERASER_RANGES: Dict[str, Tuple[float, float, float]] = {
    "size": (5.0, 100.0, 1.0),
    "hardness": (0.1, 1.0, 0.1),
    "opacity": (0.1, 1.0, 0.1),
    "flow": (0.1, 1.0, 0.1),
}

NUDGE_STEP = 0.05


def _clamp(value: float, bounds: Tuple[float, float, float]) -> float:
    lo, hi, _step = bounds
    return max(lo, min(hi, value))


@dataclass
class TattooSettings:
    """Параметры наложения эскиза.

    Смещения выражены в долях размера холста: offset_x=0.5 сдвигает центр
    эскиза на полширины холста вправо.
    """
    opacity: float = 0.8
    scale: float = 1.0
    rotation: float = 0.0
    offset_x: float = 0.0
    offset_y: float = 0.0
    contrast: float = 1.3
    black_and_white: bool = False
    multiply_effect: bool = True

    def update(self, **changes: object) -> None:
        """Частичное обновление; на неизвестные ключи `KeyError`."""
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise KeyError(f"Неизвестные параметры: {', '.join(sorted(unknown))}")
        for name, value in changes.items():
            setattr(self, name, value)

    def reset(self) -> None:
        """Возвращает все параметры к значениям по умолчанию (на месте)."""
        defaults = TattooSettings()
        for f in fields(self):
            setattr(self, f.name, getattr(defaults, f.name))

    def nudge(self, dx: int = 0, dy: int = 0, step: float = NUDGE_STEP) -> None:
        """Сдвигает эскиз на `step` доли холста по каждой оси (кнопки-стрелки)."""
        self.offset_x += dx * step
        self.offset_y += dy * step

    def clamped(self) -> "TattooSettings":
        """Копия со значениями, приведёнными к диапазонам слайдеров."""
        return replace(self, **{name: _clamp(getattr(self, name), rng) for name, rng in SETTINGS_RANGES.items()})

    def snapshot(self) -> "TattooSettings":
        return replace(self)


@dataclass
class EraserSettings:
    """Параметры кисти ластика."""
    size: float = 20.0
    hardness: float = 0.8
    opacity: float = 1.0
    flow: float = 1.0

    def update(self, **changes: float) -> None:
        for name, value in changes.items():
            if name not in ERASER_RANGES:
                raise KeyError(f"Неизвестный параметр ластика: {name}")
            setattr(self, name, _clamp(float(value), ERASER_RANGES[name]))

    @property
    def strength(self) -> float:
        return self.opacity * self.flow
