from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from tattoo_preview.errors import ConfigurationError

ENV_PREFIX = "TATTOO_PREVIEW_"

SELFIE_MULTICLASS_MODEL_URL = (
    "https://storage.googleapis.com/mediapipe-models/image_segmenter/"
    "selfie_multiclass_256x256/float32/latest/selfie_multiclass_256x256.tflite"
)


class CanvasConfig(BaseModel):
    """Размер холста композиции и частота перерисовки."""

    width: int = Field(default=800, ge=64, le=4096, description="Ширина холста, px")
    height: int = Field(default=600, ge=64, le=4096, description="Высота холста, px")
    render_delay_ms: int = Field(
        default=16,
        ge=0,
        le=1000,
        description="Задержка отложенной перерисовки (≈ один кадр при 60 Гц)",
    )

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height


class SegmentationConfig(BaseModel):
    """Настройки модели сегментации кожи (MediaPipe Tasks)."""

    enabled: bool = Field(default=True, description="Строить маску кожи для базового фото")
    models_dir: Path = Field(default_factory=lambda: Path("models"))
    model_url: str = Field(default=SELFIE_MULTICLASS_MODEL_URL)
    skin_labels: tuple[str, ...] = Field(default=("body-skin", "face-skin"))
    poll_interval_ms: int = Field(default=50, ge=10, le=2000)

    @property
    def model_path(self) -> Path:
        return self.models_dir / Path(self.model_url).name


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    log_dir: Optional[Path] = Field(default=None, description="Каталог файловых логов; None означает только консоль")

    @field_validator("level")
    @classmethod
    def _validate_level(cls, value: str) -> str:
        value = value.strip().upper()
        if value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return value


class ExportConfig(BaseModel):
    output_dir: Path = Field(default_factory=lambda: Path("output"))


class AppConfig(BaseModel):
    """Конфигурация верхнего уровня, которую получает окно приложения."""

    canvas: CanvasConfig = Field(default_factory=CanvasConfig)
    segmentation: SegmentationConfig = Field(default_factory=SegmentationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)


def _bool_from_env(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _int_from_env(name: str, default: int) -> int:
    value = os.getenv(ENV_PREFIX + name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid integer value: {value}", config_key=ENV_PREFIX + name, cause=exc) from exc


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(ENV_PREFIX + name, default)


def load_config(dotenv_path: str | Path | None = None) -> AppConfig:
    """Собирает конфигурацию из переменных окружения `TATTOO_PREVIEW_*`.

    Parameters
    ----------
    dotenv_path:
        Необязательный путь к .env; по умолчанию `.env` в текущем каталоге.

    Raises
    ------
    ConfigurationError
        Если значения не проходят валидацию.
    """
    env_path = Path(dotenv_path) if dotenv_path else Path(".env")
    if env_path.exists():
        load_dotenv(env_path)

    log_dir = _env("LOG_DIR")
    data = {
        "canvas": {
            "width": _int_from_env("CANVAS_WIDTH", 800),
            "height": _int_from_env("CANVAS_HEIGHT", 600),
            "render_delay_ms": _int_from_env("RENDER_DELAY_MS", 16),
        },
        "segmentation": {
            "enabled": _bool_from_env(_env("SEGMENTATION_ENABLED"), True),
            "models_dir": Path(_env("MODELS_DIR", "models")),
            "model_url": _env("MODEL_URL", SELFIE_MULTICLASS_MODEL_URL),
        },
        "logging": {
            "level": _env("LOG_LEVEL", "INFO"),
            "log_dir": Path(log_dir) if log_dir else None,
        },
        "export": {
            "output_dir": Path(_env("EXPORT_DIR", "output")),
        },
    }

    try:
        return AppConfig.model_validate(data)
    except ValidationError as exc:
        invalid = {"/".join(str(part) for part in err["loc"]) for err in exc.errors()}
        raise ConfigurationError(
            f"Invalid configuration values: {', '.join(sorted(invalid))}", cause=exc
        ) from exc
