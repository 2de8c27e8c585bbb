"""Сегментация кожи на базовом фото (MediaPipe Tasks, selfie multiclass).

Принципы:
- Ленивая инициализация: MediaPipe импортируется и модель загружается при первом запросе.
- Деградация без исключений на старте: без MediaPipe/модели сегментатор помечается
  инициализированным, но не готовым; предпросмотр работает без маски.
- Бэкенд изолирован за узким интерфейсом (`labels`, `segment`), чтобы сервис
  можно было проверить без MediaPipe.
"""
from __future__ import annotations

import logging
import threading
import urllib.request
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Protocol, Sequence

import numpy as np
from PIL import Image

from tattoo_preview.config import SegmentationConfig
from tattoo_preview.errors import SegmentationError, SegmenterUnavailableError
from tattoo_preview.logging_utils import log_execution_time

logger = logging.getLogger(__name__)

# Метки модели selfie_multiclass_256x256 (порядок категорий в маске)
SELFIE_MULTICLASS_LABELS = ("background", "hair", "body-skin", "face-skin", "clothes", "others")


class SegmentationBackend(Protocol):
    """Минимальный интерфейс модели сегментации."""

    labels: Sequence[str]

    def segment(self, rgb: np.ndarray) -> np.ndarray:
        """Возвращает маску категорий (H, W) uint8 для RGB-массива (H, W, 3)."""
        ...

    def close(self) -> None:
        ...


class MediaPipeBackend:
    """Обёртка над `mediapipe.tasks.python.vision.ImageSegmenter`."""

    def __init__(self, model_path: Path) -> None:
        import mediapipe as mp
        from mediapipe.tasks import python as mp_tasks
        from mediapipe.tasks.python import vision

        self._mp = mp
        options = vision.ImageSegmenterOptions(
            base_options=mp_tasks.BaseOptions(model_asset_path=str(model_path)),
            running_mode=vision.RunningMode.IMAGE,
            output_category_mask=True,
            output_confidence_masks=False,
        )
        self._segmenter = vision.ImageSegmenter.create_from_options(options)
        self.labels: List[str] = list(getattr(self._segmenter, "labels", None) or SELFIE_MULTICLASS_LABELS)

    def segment(self, rgb: np.ndarray) -> np.ndarray:
        mp_image = self._mp.Image(image_format=self._mp.ImageFormat.SRGB, data=np.ascontiguousarray(rgb))
        result = self._segmenter.segment(mp_image)
        categories = result.category_mask.numpy_view()
        if categories.ndim == 3:
            categories = categories[..., 0]
        return np.asarray(categories, dtype=np.uint8)

    def close(self) -> None:
        self._segmenter.close()


def ensure_model(
    config: SegmentationConfig,
    retrieve: Optional[Callable[[str, str], object]] = None,
) -> Path:
    """Скачивает модель в `models_dir`, если её там ещё нет.

    Загрузка идёт во временный `.part`-файл, который переименовывается в модель
    только после успешного завершения; оборванная загрузка файл модели не создаёт.
    """
    path = config.model_path
    if path.exists():
        return path
    retrieve = retrieve or urllib.request.urlretrieve
    path.parent.mkdir(parents=True, exist_ok=True)
    partial = path.with_suffix(path.suffix + ".part")
    logger.info("Downloading segmentation model from %s", config.model_url)
    try:
        retrieve(config.model_url, str(partial))
        partial.replace(path)
    except BaseException:
        partial.unlink(missing_ok=True)
        raise
    return path


def mask_from_categories(
    categories: np.ndarray,
    labels: Sequence[str],
    skin_labels: Iterable[str] = ("body-skin", "face-skin"),
) -> Image.Image:
    """Маска кожи: белый непрозрачный пиксель для категорий кожи, прозрачный для прочих."""
    skin_ids = [idx for idx, label in enumerate(labels) if label in set(skin_labels)]
    is_skin = np.isin(categories, skin_ids)
    out = np.zeros(categories.shape + (4,), dtype=np.uint8)
    out[is_skin] = (255, 255, 255, 255)
    return Image.fromarray(out)


class SkinSegmenter:
    """Синглтон сегментатора кожи.

    Использование:
        segmenter = SkinSegmenter.get_instance(config)
        mask = segmenter.generate_mask(image)  # RGBA размера image
    """

    _instance: Optional["SkinSegmenter"] = None
    _instance_lock = threading.Lock()

    def __init__(
        self,
        config: Optional[SegmentationConfig] = None,
        backend_factory: Optional[Callable[[], SegmentationBackend]] = None,
    ) -> None:
        self._config = config or SegmentationConfig()
        self._backend_factory = backend_factory or self._create_mediapipe_backend
        self._backend: Optional[SegmentationBackend] = None
        self._initialized = False
        self._lock = threading.Lock()

    @classmethod
    def get_instance(cls, config: Optional[SegmentationConfig] = None) -> "SkinSegmenter":
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls(config)
            return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        with cls._instance_lock:
            if cls._instance is not None:
                cls._instance.dispose()
            cls._instance = None

    # ---- Public API ----
    def initialize(self) -> None:
        """Создаёт бэкенд один раз; при неудаче продолжает без него."""
        with self._lock:
            if self._initialized:
                return
            if not self._config.enabled:
                logger.info("Skin segmentation disabled by configuration")
            else:
                try:
                    self._backend = self._backend_factory()
                    logger.info("Skin segmentation initialized, labels=%s", list(self._backend.labels))
                except ImportError as exc:
                    logger.warning("MediaPipe is not installed, previews will have no skin mask: %s", exc)
                    self._backend = None
                except Exception as exc:  # модель не скачалась, битый файл и т.п.
                    logger.warning("Skin segmentation unavailable, continuing without mask: %s", exc)
                    self._backend = None
            self._initialized = True

    def is_ready(self) -> bool:
        return self._initialized and self._backend is not None

    def labels(self) -> List[str]:
        return list(self._backend.labels) if self._backend is not None else []

    @log_execution_time()
    def generate_mask(self, image: Image.Image) -> Image.Image:
        """Строит RGBA-маску кожи размера `image`.

        Raises:
            SegmenterUnavailableError: бэкенд не создан.
            SegmentationError: ошибка инференса.
        """
        if not self._initialized:
            self.initialize()
        if self._backend is None:
            raise SegmenterUnavailableError()

        rgb = np.asarray(image.convert("RGB"))
        try:
            with self._lock:
                categories = self._backend.segment(rgb)
        except Exception as exc:
            raise SegmentationError(
                "Ошибка сегментации", context={"shape": rgb.shape}, cause=exc
            ) from exc

        mask = mask_from_categories(categories, self._backend.labels, self._config.skin_labels)
        if mask.size != image.size:
            mask = mask.resize(image.size, Image.Resampling.NEAREST)
        return mask

    def dispose(self) -> None:
        with self._lock:
            if self._backend is not None:
                self._backend.close()
            self._backend = None
            self._initialized = False

    # ---- Internals ----
    def _create_mediapipe_backend(self) -> SegmentationBackend:
        model_path = ensure_model(self._config)
        return MediaPipeBackend(model_path)
