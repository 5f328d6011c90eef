from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Protocol

Listener = Callable[[], None]

logger = logging.getLogger(__name__)


class CancellationHandle(Protocol):
    def is_cancelled(self) -> bool: ...

    def on_cancel(self, listener: Listener) -> None: ...

    def off_cancel(self, listener: Listener) -> None: ...


class CancellationToken:
    """Cooperative cancellation signal.

    ``cancel()`` may be called any number of times; listeners fire once, on
    the first call. A listener registered after cancellation fires immediately.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._listeners: list[Listener] = []

    def is_cancelled(self) -> bool:
        return self._cancelled

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def on_cancel(self, listener: Listener) -> None:
        if self._cancelled:
            self._notify(listener)
            return
        self._listeners.append(listener)

    def off_cancel(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def cancel(self) -> bool:
        """Signal cancellation. Returns False when the token was already cancelled."""
        if self._cancelled:
            return False
        self._cancelled = True
        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            self._notify(listener)
        return True

    @staticmethod
    def _notify(listener: Listener) -> None:
        try:
            listener()
        except Exception:  # noqa: BLE001
            logger.exception(
                "Cancellation listener failed", extra={"event": "cancel_listener_failed"}
            )


@contextmanager
def subscription(handle: CancellationHandle | None, listener: Listener) -> Iterator[None]:
    """Register ``listener`` on ``handle`` for the block and always deregister it."""
    if handle is None:
        yield
        return
    handle.on_cancel(listener)
    try:
        yield
    finally:
        handle.off_cancel(listener)
