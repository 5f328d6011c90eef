"""Shared utilities and types."""
from .cancellation import CancellationHandle, CancellationToken, subscription
from .logging import bind_log_context, clear_log_context, configure_logging, log_context

__all__ = [
    "CancellationHandle",
    "CancellationToken",
    "subscription",
    "configure_logging",
    "bind_log_context",
    "clear_log_context",
    "log_context",
]
