"""Иерархия исключений приложения предпросмотра татуировок.

Каждое исключение несёт словарь контекста и исходную причину, которые
попадают в текст сообщения.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Optional


class TattooPreviewError(Exception):
    """Базовое исключение приложения."""

    def __init__(
        self,
        message: str,
        *,
        context: Optional[dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        self.context = context or {}
        self.cause = cause

        full_message = message
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            full_message = f"{message} [{context_str}]"
        if cause:
            full_message = f"{full_message} (caused by: {cause})"

        super().__init__(full_message)


class ImageLoadError(TattooPreviewError):
    """Файл не найден или не декодируется как изображение."""

    def __init__(self, path: str | Path, reason: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Не удалось загрузить изображение: {reason}", context={"path": path}, cause=cause)


class UnsupportedImageError(TattooPreviewError):
    """Формат или размер файла не поддерживается."""

    def __init__(self, path: str | Path, reason: str) -> None:
        super().__init__(f"Неподдерживаемый файл: {reason}", context={"path": path})


class SegmentationError(TattooPreviewError):
    """Ошибка при построении маски кожи."""
    pass


class SegmenterUnavailableError(SegmentationError):
    """Модель сегментации не инициализирована (нет MediaPipe или модели)."""

    def __init__(self, reason: str = "сегментатор не инициализирован") -> None:
        super().__init__(f"Сегментация недоступна: {reason}")


class ExportError(TattooPreviewError):
    """Не удалось сохранить итоговое изображение."""

    def __init__(self, path: str | Path, cause: Optional[Exception] = None) -> None:
        super().__init__("Не удалось экспортировать изображение", context={"path": path}, cause=cause)


class ConfigurationError(TattooPreviewError):
    """Некорректные значения конфигурации."""

    def __init__(self, message: str, config_key: Optional[str] = None, cause: Optional[Exception] = None) -> None:
        super().__init__(message, context={"config_key": config_key} if config_key else None, cause=cause)
