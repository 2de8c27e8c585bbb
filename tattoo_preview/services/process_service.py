from __future__ import annotations

from typing import List, Optional, Tuple

import numpy as np
from PIL import Image


class ProcessService:
    def to_grayscale(self, image: Image.Image) -> Image.Image:
        """
        Преобразование в оттенки серого по яркости 0.299R + 0.587G + 0.114B.
        Альфа-канал сохраняется, результат в режиме RGBA.
        """
        rgba = image if image.mode == "RGBA" else image.convert("RGBA")
        # L-конверсия PIL использует ровно эти веса (ITU-R 601-2)
        gray = rgba.convert("L")
        return Image.merge("RGBA", (gray, gray, gray, rgba.getchannel("A")))

    def adjust_contrast(self, image: Image.Image, factor: float) -> Image.Image:
        """
        Контраст относительно середины диапазона: (c/255 - 0.5) * factor + 0.5.
        """
        rgba = image if image.mode == "RGBA" else image.convert("RGBA")
        if abs(factor - 1.0) < 1e-6:
            return rgba.copy()
        arr = np.asarray(rgba, dtype=np.float32)
        rgb = (arr[..., :3] / 255.0 - 0.5) * float(factor) + 0.5
        arr = arr.copy()
        arr[..., :3] = np.clip(np.rint(rgb * 255.0), 0, 255)
        return Image.fromarray(arr.astype(np.uint8))

    def apply_opacity(self, image: Image.Image, opacity: float) -> Image.Image:
        """
        Умножает альфа-канал на opacity в [0, 1].
        """
        rgba = image.convert("RGBA") if image.mode != "RGBA" else image.copy()
        opacity = float(np.clip(opacity, 0.0, 1.0))
        if opacity >= 1.0:
            return rgba
        alpha = np.asarray(rgba.getchannel("A"), dtype=np.float32) * opacity
        rgba.putalpha(Image.fromarray(np.rint(alpha).astype(np.uint8)))
        return rgba

    # ---------- Удаление фона эскиза ----------
    def detect_background_color(self, image: Image.Image, max_samples: int = 20) -> Tuple[int, int, int]:
        """
        Средний цвет пикселей, равномерно взятых по четырём краям изображения.
        """
        arr = np.asarray(image.convert("RGB"), dtype=np.float64)
        h, w = arr.shape[:2]
        sample_size = max(1, min(max_samples, int(min(w, h) * 0.1)))
        step_x = max(1, w // sample_size)
        step_y = max(1, h // sample_size)

        samples: List[np.ndarray] = [
            arr[0, ::step_x],
            arr[h - 1, ::step_x],
            arr[::step_y, 0],
            arr[::step_y, w - 1],
        ]
        edge = np.concatenate(samples, axis=0)
        r, g, b = np.rint(edge.mean(axis=0)).astype(int)
        return int(r), int(g), int(b)

    def remove_background(
        self,
        image: Image.Image,
        tolerance: float = 30.0,
        feather: float = 3.0,
        color: Optional[Tuple[int, int, int]] = None,
    ) -> Image.Image:
        """
        Делает прозрачными пиксели, близкие к цвету фона.

        - расстояние в RGB меньше tolerance * 2.55: полностью прозрачно;
        - в полосе до threshold * (1 + feather / 10) альфа растёт линейно (растушёвка);
        - остальные пиксели сохраняют исходную альфу.
        Цвет фона по умолчанию определяется по краям изображения.
        """
        rgba = image.convert("RGBA")
        if color is None:
            color = self.detect_background_color(rgba)

        arr = np.asarray(rgba, dtype=np.float32).copy()
        diff = np.sqrt(np.sum((arr[..., :3] - np.asarray(color, dtype=np.float32)) ** 2, axis=-1))
        threshold = float(tolerance) * 2.55
        alpha = arr[..., 3]

        if feather > 0:
            feather_range = threshold * (1.0 + float(feather) / 10.0)
            band = (diff >= threshold) & (diff < feather_range)
            if feather_range > threshold:
                ramp = (diff - threshold) / (feather_range - threshold)
                alpha = np.where(band, np.floor(alpha * ramp), alpha)
        alpha = np.where(diff < threshold, 0.0, alpha)

        arr[..., 3] = alpha
        return Image.fromarray(arr.astype(np.uint8))

    def crop_to_content(self, image: Image.Image, padding: int = 5, alpha_threshold: int = 10) -> Image.Image:
        """
        Обрезает изображение по непрозрачному содержимому с отступом padding.
        Если непрозрачных пикселей нет, возвращает изображение без изменений.
        """
        rgba = image.convert("RGBA")
        alpha = np.asarray(rgba.getchannel("A"))
        ys, xs = np.nonzero(alpha > alpha_threshold)
        if xs.size == 0:
            return rgba
        h, w = alpha.shape
        left = max(0, int(xs.min()) - padding)
        top = max(0, int(ys.min()) - padding)
        right = min(w - 1, int(xs.max()) + padding)
        bottom = min(h - 1, int(ys.max()) + padding)
        return rgba.crop((left, top, right + 1, bottom + 1))
