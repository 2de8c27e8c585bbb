"""Компоновщик кадра предпросмотра: фото, маска кожи и трансформированный эскиз.

Принципы:
- SRP: только построение итогового изображения; ввод-вывод и UI живут в других слоях.
- Чистые входы: на каждый вызов `render` передаются изображения и снимок параметров,
  компоновщик ничего не мутирует, кроме собственного кэша подготовленного эскиза.

Порядок отрисовки кадра:
1. очистка холста (прозрачный);
2. фото, вписанное в холст с сохранением пропорций и по центру;
3. эскиз: перенос в (центр холста + смещение), поворот, масштаб, отрисовка по центру;
   при наличии маски эскиз обрезается по пикселям кожи (как "source-atop" на
   буфере с маской), затем буфер накладывается обычным или multiply-смешением.
"""
from __future__ import annotations

import logging
from typing import Optional, Tuple

import numpy as np
from PIL import Image

from tattoo_preview.logging_utils import log_execution_time
from tattoo_preview.models.settings_model import TattooSettings
from tattoo_preview.services.process_service import ProcessService

logger = logging.getLogger(__name__)

Size = Tuple[int, int]
Rect = Tuple[int, int, int, int]  # (left, top, width, height)

TATTOO_MAX_SOURCE_PX = 200
TATTOO_BASE_FACTOR = 0.5


def fit_rect(image_size: Size, canvas_size: Size) -> Rect:
    """Прямоугольник изображения, вписанного в холст по центру с сохранением пропорций."""
    img_w, img_h = image_size
    canvas_w, canvas_h = canvas_size
    if img_w <= 0 or img_h <= 0:
        return 0, 0, 0, 0
    scale = min(canvas_w / img_w, canvas_h / img_h)
    w = max(1, int(round(img_w * scale)))
    h = max(1, int(round(img_h * scale)))
    return (canvas_w - w) // 2, (canvas_h - h) // 2, w, h


def tattoo_draw_size(image_size: Size, scale: float) -> Tuple[float, float]:
    """Размер отрисовки эскиза: min(сторона, 200) * 0.5 по каждой оси, затем * scale."""
    w, h = image_size
    return (
        min(w, TATTOO_MAX_SOURCE_PX) * TATTOO_BASE_FACTOR * scale,
        min(h, TATTOO_MAX_SOURCE_PX) * TATTOO_BASE_FACTOR * scale,
    )


def tattoo_center(settings: TattooSettings, canvas_size: Size) -> Tuple[float, float]:
    """Центр эскиза на холсте: центр холста + смещение в долях размера холста."""
    canvas_w, canvas_h = canvas_size
    return (
        canvas_w / 2 + settings.offset_x * canvas_w,
        canvas_h / 2 + settings.offset_y * canvas_h,
    )


def _to_float(image: Image.Image) -> np.ndarray:
    return np.asarray(image.convert("RGBA"), dtype=np.float32) / 255.0


def blend_layers(dst: Image.Image, src: Image.Image, multiply: bool = False) -> Image.Image:
    """Наложение src поверх dst (source-over) с обычным или multiply-смешением.

    Формула раздельного смешения W3C Compositing:
        co = as*(1-ab)*Cs + as*ab*B(Cb, Cs) + (1-as)*ab*Cb,  ao = as + ab*(1-as)
    где B = Cs (normal) или Cs*Cb (multiply).
    """
    d = _to_float(dst)
    s = _to_float(src)
    cb, ab = d[..., :3], d[..., 3:4]
    cs, as_ = s[..., :3], s[..., 3:4]

    mixed = cs * cb if multiply else cs
    ao = as_ + ab * (1.0 - as_)
    co = as_ * (1.0 - ab) * cs + as_ * ab * mixed + (1.0 - as_) * ab * cb
    with np.errstate(divide="ignore", invalid="ignore"):
        out_rgb = np.where(ao > 0, co / ao, 0.0)

    out = np.concatenate([out_rgb, ao], axis=-1)
    return Image.fromarray(np.clip(np.rint(out * 255.0), 0, 255).astype(np.uint8))


class Compositor:
    """Строит кадр предпросмотра фиксированного размера."""

    def __init__(self, canvas_size: Size = (800, 600), process_service: Optional[ProcessService] = None) -> None:
        self.canvas_size = canvas_size
        self._process = process_service or ProcessService()
        # кэш подготовленного (Ч/Б + контраст) эскиза: всегда строится из оригинала
        self._prepared_key: Optional[Tuple[int, bool, float]] = None
        self._prepared: Optional[Image.Image] = None

    # ---- Public API ----
    @log_execution_time()
    def render(
        self,
        base: Optional[Image.Image],
        tattoo: Optional[Image.Image],
        settings: TattooSettings,
        mask: Optional[Image.Image] = None,
        erase_mask: Optional[Image.Image] = None,
    ) -> Image.Image:
        """Возвращает RGBA-кадр размера `canvas_size`.

        Args:
            base: Фото участка тела (может отсутствовать).
            tattoo: Эскиз татуировки (может отсутствовать).
            settings: Параметры наложения.
            mask: Маска кожи размера фото; кожа там, где альфа > 0.
            erase_mask: L-маска размера холста; 255 означает, что эскиз полностью стёрт.
        """
        canvas = Image.new("RGBA", self.canvas_size, (0, 0, 0, 0))

        base_rect: Optional[Rect] = None
        if base is not None:
            base_rect = fit_rect(base.size, self.canvas_size)
            left, top, w, h = base_rect
            fitted = base.convert("RGBA").resize((w, h), Image.Resampling.LANCZOS)
            canvas.alpha_composite(fitted, (left, top))

        if tattoo is None:
            return canvas

        layer = self._tattoo_layer(tattoo, settings)
        if mask is not None and base_rect is not None:
            layer = self._clip_to_mask(layer, mask, base_rect)
        if erase_mask is not None:
            layer = self._apply_erase(layer, erase_mask)

        return blend_layers(canvas, layer, multiply=settings.multiply_effect)

    def invalidate_cache(self) -> None:
        """Сбрасывает кэш подготовленного эскиза (например, при смене эскиза)."""
        self._prepared_key = None
        self._prepared = None

    # ---- Internals ----
    def _prepare_tattoo(self, tattoo: Image.Image, settings: TattooSettings) -> Image.Image:
        key = (id(tattoo), bool(settings.black_and_white), round(float(settings.contrast), 4))
        if self._prepared is not None and self._prepared_key == key:
            return self._prepared

        prepared = tattoo.convert("RGBA")
        if settings.black_and_white:
            prepared = self._process.to_grayscale(prepared)
        prepared = self._process.adjust_contrast(prepared, settings.contrast)

        self._prepared_key = key
        self._prepared = prepared
        return prepared

    def _tattoo_layer(self, tattoo: Image.Image, settings: TattooSettings) -> Image.Image:
        """Холст с эскизом после переноса, поворота и масштабирования."""
        prepared = self._prepare_tattoo(tattoo, settings)
        prepared = self._process.apply_opacity(prepared, settings.opacity)

        draw_w, draw_h = tattoo_draw_size(prepared.size, settings.scale)
        size = (max(1, int(round(draw_w))), max(1, int(round(draw_h))))
        transformed = prepared.resize(size, Image.Resampling.LANCZOS)

        angle = float(settings.rotation) % 360.0
        if angle:
            # PIL вращает против часовой стрелки, холст по часовой
            transformed = transformed.rotate(-angle, resample=Image.Resampling.BICUBIC, expand=True)

        cx, cy = tattoo_center(settings, self.canvas_size)
        left = int(round(cx - transformed.width / 2))
        top = int(round(cy - transformed.height / 2))

        layer = Image.new("RGBA", self.canvas_size, (0, 0, 0, 0))
        # слой пуст, поэтому paste без маски копирует RGBA как есть и обрезает края
        layer.paste(transformed, (left, top))
        return layer

    def _clip_to_mask(self, layer: Image.Image, mask: Image.Image, base_rect: Rect) -> Image.Image:
        """Оставляет эскиз только на пикселях кожи (альфа буфера = альфа маски)."""
        left, top, w, h = base_rect
        mask_alpha = mask.convert("RGBA").getchannel("A").resize((w, h), Image.Resampling.BILINEAR)
        clip = Image.new("L", self.canvas_size, 0)
        clip.paste(mask_alpha, (left, top))

        alpha = np.asarray(layer.getchannel("A"), dtype=np.float32)
        alpha *= np.asarray(clip, dtype=np.float32) / 255.0
        clipped = layer.copy()
        clipped.putalpha(Image.fromarray(np.rint(alpha).astype(np.uint8)))
        return clipped

    def _apply_erase(self, layer: Image.Image, erase_mask: Image.Image) -> Image.Image:
        erase = erase_mask.convert("L")
        if erase.size != self.canvas_size:
            erase = erase.resize(self.canvas_size, Image.Resampling.BILINEAR)
        alpha = np.asarray(layer.getchannel("A"), dtype=np.float32)
        alpha *= 1.0 - np.asarray(erase, dtype=np.float32) / 255.0
        erased = layer.copy()
        erased.putalpha(Image.fromarray(np.rint(alpha).astype(np.uint8)))
        return erased
