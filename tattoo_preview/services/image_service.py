"""Загрузка изображений с диска, упаковка метаданных и экспорт результата.

Принципы:
- SRP: класс отвечает только за ввод/вывод файлов и базовое извлечение свойств.
- OCP: новые источники (буфер обмена, URL) можно добавить отдельными методами.
- LSP/ISP: возвращает `UploadedImage` с предсказуемыми полями; интерфейс узкий и конкретный.
"""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from tattoo_preview.errors import ExportError, ImageLoadError, UnsupportedImageError
from tattoo_preview.models.image_model import UploadedImage

logger = logging.getLogger(__name__)


class ImageService:
    SUPPORTED_EXTENSIONS = ("jpg", "jpeg", "png", "webp", "bmp")
    MAX_FILE_SIZE = 50 * 1024 * 1024  # 50MB

    def is_supported(self, file_path: str | Path) -> bool:
        """Проверяет только расширение файла."""
        return Path(file_path).suffix.lower().lstrip(".") in self.SUPPORTED_EXTENSIONS

    def load_image(self, file_path: str | Path) -> UploadedImage:
        """Загружает изображение с диска и возвращает его вместе с метаданными.

        Args:
            file_path: Путь до файла изображения.

        Returns:
            `UploadedImage` c `PIL.Image.Image` (в режиме RGBA, с учётом EXIF-ориентации),
            исходными размерами, режимом и размером файла.

        Raises:
            ImageLoadError: если путь не существует или файл не распознан как изображение.
            UnsupportedImageError: если расширение не поддерживается, файл слишком велик
                или число пикселей превышает предел Pillow (`Image.MAX_IMAGE_PIXELS`).
        """
        path = Path(file_path)
        if not path.exists() or not path.is_file():
            raise ImageLoadError(path, "файл не найден")
        if not self.is_supported(path):
            raise UnsupportedImageError(
                path, f"поддерживаются форматы {', '.join(self.SUPPORTED_EXTENSIONS).upper()}"
            )

        stat = path.stat()
        if stat.st_size > self.MAX_FILE_SIZE:
            raise UnsupportedImageError(path, f"файл больше {self.MAX_FILE_SIZE // (1024 * 1024)}MB")

        try:
            with Image.open(path) as src:
                source_mode = src.mode
                pil_image = ImageOps.exif_transpose(src).convert("RGBA")
        except Image.DecompressionBombError as exc:
            raise UnsupportedImageError(path, f"слишком много пикселей: {exc}") from exc
        except (UnidentifiedImageError, OSError) as exc:
            raise ImageLoadError(path, "файл не является изображением", cause=exc) from exc

        width, height = pil_image.size
        logger.info("Loaded %s (%dx%d, %s)", path.name, width, height, source_mode)

        return UploadedImage(
            path=path,
            pil_image=pil_image,
            width=width,
            height=height,
            mode=source_mode,
            size_bytes=stat.st_size,
            source_key=self.source_key(path),
        )

    def source_key(self, file_path: str | Path) -> Tuple[str, int, int]:
        """Ключ источника: повторный выбор того же неизменённого файла даёт тот же ключ."""
        path = Path(file_path)
        stat = path.stat()
        return str(path.resolve()), stat.st_mtime_ns, stat.st_size

    def export_png(self, image: Image.Image, file_path: str | Path) -> Path:
        """Сохраняет композицию в PNG, создавая родительские каталоги.

        Raises:
            ExportError: при ошибке записи.
        """
        path = Path(file_path)
        if path.suffix.lower() != ".png":
            path = path.with_suffix(".png")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            image.save(path, format="PNG")
        except (OSError, ValueError) as exc:
            raise ExportError(path, cause=exc) from exc
        logger.info("Exported preview to %s", path)
        return path

    @staticmethod
    def default_export_name(now: Optional[datetime] = None) -> str:
        """Имя файла экспорта вида `tattoo-preview-<unix ms>.png`."""
        now = now or datetime.now()
        return f"tattoo-preview-{int(now.timestamp() * 1000)}.png"
