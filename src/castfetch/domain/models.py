from __future__ import annotations

import enum
from dataclasses import dataclass, field

from castfetch.shared.cancellation import CancellationToken


class AttemptStatus(str, enum.Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class PathAttempt:
    index: int
    address: str
    handle: CancellationToken = field(default_factory=CancellationToken)
    status: AttemptStatus = AttemptStatus.PENDING
    reason: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.status is AttemptStatus.PENDING

    def settle(self, status: AttemptStatus, reason: str | None = None) -> bool:
        """Move out of pending once; later calls are ignored and return False."""
        if not self.is_pending or status is AttemptStatus.PENDING:
            return False
        self.status = status
        self.reason = reason
        return True


@dataclass(frozen=True, slots=True)
class FetchResult:
    body: str
    won_by_index: int
    address: str
    attempts: tuple[PathAttempt, ...] = ()


@dataclass(slots=True)
class HealthStatus:
    status: str = "ok"
    delivery_paths: int = 0
