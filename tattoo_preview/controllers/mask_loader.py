"""Фоновое построение маски кожи.

Сегментация выполняется в отдельном потоке, UI-поток опрашивает результат.
Каждая отправка получает номер поколения; результат устаревшего поколения
(фото успели заменить) отбрасывается и не попадает в предпросмотр.
"""
from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional

from PIL import Image

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MaskResult:
    generation: int
    mask: Optional[Image.Image] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.mask is not None


class MaskLoader:
    def __init__(self, generate_mask: Callable[[Image.Image], Image.Image], executor: Optional[ThreadPoolExecutor] = None) -> None:
        self._generate_mask = generate_mask
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="skin-mask")
        self._generation = 0
        self._future: Optional[Future] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def pending(self) -> Optional[Future]:
        """Future последней отправки, если её результат ещё не забран."""
        return self._future

    def submit(self, image: Image.Image) -> int:
        """Запускает построение маски; предыдущая незавершённая отправка становится устаревшей."""
        self._generation += 1
        if self._future is not None and not self._future.done():
            # уже запущенный вызов не прервать; его результат отбросится по поколению
            self._future.cancel()
        self._future = self._executor.submit(self._generate_mask, image.copy())
        logger.debug("Mask job #%d submitted", self._generation)
        return self._generation

    def invalidate(self) -> None:
        """Делает текущую отправку устаревшей (например, фото удалено)."""
        self._generation += 1
        if self._future is not None:
            self._future.cancel()
        self._future = None

    def poll(self) -> Optional[MaskResult]:
        """Результат последней отправки, если он готов; иначе None."""
        future = self._future
        if future is None or not future.done():
            return None
        self._future = None
        if future.cancelled():
            return None
        exc = future.exception()
        if exc is not None:
            logger.warning("Mask job #%d failed: %s", self._generation, exc)
            return MaskResult(generation=self._generation, error=exc)
        return MaskResult(generation=self._generation, mask=future.result())

    def shutdown(self) -> None:
        self.invalidate()
        self._executor.shutdown(wait=False, cancel_futures=True)
