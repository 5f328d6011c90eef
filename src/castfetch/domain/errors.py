from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import PathAttempt


class FetchError(Exception):
    kind = "error"

    def __init__(self, message: str, attempts: tuple[PathAttempt, ...] = ()) -> None:
        super().__init__(message)
        self.attempts = attempts


class FetchCancelledError(FetchError):
    kind = "cancelled"

    def __init__(self, attempts: tuple[PathAttempt, ...] = ()) -> None:
        super().__init__("Cancelled", attempts)


class FetchTimeoutError(FetchError):
    kind = "timeout"

    def __init__(self, deadline: float, attempts: tuple[PathAttempt, ...] = ()) -> None:
        super().__init__(f"No delivery path succeeded within {deadline:g}s", attempts)
        self.deadline = deadline


class AllPathsFailedError(FetchError):
    kind = "all_paths_failed"

    def __init__(self, attempts: tuple[PathAttempt, ...] = ()) -> None:
        super().__init__("All delivery paths failed", attempts)
