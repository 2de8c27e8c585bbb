"""Состояние сессии предпросмотра: кэш изображений, маска и параметры."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from PIL import Image

from tattoo_preview.models.image_model import ImageRole, UploadedImage
from tattoo_preview.models.settings_model import TattooSettings


@dataclass
class PreviewSession:
    """Изображения и параметры, живущие столько же, сколько окно.

    `tattoo_image`: эскиз, готовый к наложению (после удаления фона, если
    оно включено); исходник всегда доступен через `tattoo.pil_image`.
    """
    base: Optional[UploadedImage] = None
    tattoo: Optional[UploadedImage] = None
    tattoo_image: Optional[Image.Image] = None
    mask: Optional[Image.Image] = None
    settings: TattooSettings = field(default_factory=TattooSettings)
    remove_background: bool = False

    def set_base(self, image: UploadedImage) -> None:
        self.base = image
        self.mask = None  # маска относится к прежнему фото

    def set_tattoo(self, image: UploadedImage, prepared: Image.Image) -> None:
        self.tattoo = image
        self.tattoo_image = prepared

    def has_same_source(self, role: ImageRole, source_key: Tuple[str, int, int]) -> bool:
        current = self.base if role is ImageRole.BASE else self.tattoo
        return current is not None and current.source_key == source_key

    @property
    def base_image(self) -> Optional[Image.Image]:
        return self.base.pil_image if self.base is not None else None
