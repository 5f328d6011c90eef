from .errors import AllPathsFailedError, FetchCancelledError, FetchError, FetchTimeoutError
from .models import AttemptStatus, FetchResult, HealthStatus, PathAttempt

__all__ = [
    "HealthStatus",
    "AttemptStatus",
    "PathAttempt",
    "FetchResult",
    "FetchError",
    "FetchCancelledError",
    "FetchTimeoutError",
    "AllPathsFailedError",
]
