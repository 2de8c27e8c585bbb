from __future__ import annotations

from typing import Any, Callable, Optional


class RenderScheduler:
    """Не более одной отложенной перерисовки на кадр.

    Запросы, пришедшие пока перерисовка ожидает, присоединяются к ней: таймер
    не перезапускается, поэтому при непрерывном перетаскивании кадр
    обновляется каждые `delay_ms`. `_run` читает состояние в момент вызова.

    `after`/`after_cancel`: методы Tk-виджета (или их заменители в тестах).
    """

    def __init__(
        self,
        after: Callable[[int, Callable[[], None]], Any],
        after_cancel: Callable[[Any], None],
        render: Callable[[], None],
        delay_ms: int = 16,
    ) -> None:
        self._after = after
        self._after_cancel = after_cancel
        self._render = render
        self._delay_ms = delay_ms
        self._pending: Optional[Any] = None

    @property
    def is_pending(self) -> bool:
        return self._pending is not None

    def schedule(self) -> None:
        """Планирует перерисовку, если она ещё не запланирована."""
        if self._pending is not None:
            return
        self._pending = self._after(self._delay_ms, self._run)

    def flush(self) -> None:
        """Немедленная перерисовка (ожидающая отменяется)."""
        self.cancel()
        self._render()

    def cancel(self) -> None:
        if self._pending is not None:
            self._after_cancel(self._pending)
            self._pending = None

    def _run(self) -> None:
        self._pending = None
        self._render()
