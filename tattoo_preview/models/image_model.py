"""Модели данных для загруженных изображений.

Принципы:
- SRP: только структура данных, без логики обработки.
- Чистый код: неизменяемость (`frozen=True`) для предсказуемости.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image


class ImageRole(str, Enum):
    """Назначение изображения в предпросмотре."""
    BASE = "base"      # фото участка тела
    TATTOO = "tattoo"  # эскиз татуировки


@dataclass(frozen=True)
class UploadedImage:
    """Неизменяемая модель загруженного изображения и его метаданные.

    Fields:
        path: Путь к исходному файлу.
        pil_image: Декодированное изображение PIL (RGBA).
        width: Исходная ширина, px.
        height: Исходная высота, px.
        mode: Режим PIL исходного файла, например "RGB".
        size_bytes: Размер файла, если доступен.
        source_key: (путь, mtime_ns, размер), признак того же источника.
    """
    path: Path
    pil_image: Image.Image
    width: int
    height: int
    mode: str
    size_bytes: Optional[int]
    source_key: Tuple[str, int, int]

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height
