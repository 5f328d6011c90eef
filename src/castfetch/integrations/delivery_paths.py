from __future__ import annotations

from collections.abc import Callable
from urllib.parse import quote

from castfetch.config import Settings

DeliveryPath = Callable[[str], str]


def _encode(target: str) -> str:
    return quote(target, safe="!'()*")


def corsproxy(target: str) -> str:
    return f"https://corsproxy.io/?{_encode(target)}"


def allorigins(target: str) -> str:
    return f"https://api.allorigins.win/raw?url={_encode(target)}"


def cors_anywhere(target: str) -> str:
    return f"https://cors-anywhere.herokuapp.com/{target}"


def relay_path(base_url: str) -> DeliveryPath:
    base = base_url.rstrip("/")

    def _via_relay(target: str) -> str:
        return f"{base}/api/proxy?url={_encode(target)}"

    return _via_relay


BUILTIN_PATHS: dict[str, DeliveryPath] = {
    "corsproxy": corsproxy,
    "allorigins": allorigins,
    "cors_anywhere": cors_anywhere,
}


def build_delivery_paths(settings: Settings | None = None) -> tuple[DeliveryPath, ...]:
    """Resolve the configured path names, in order, plus the optional relay."""
    settings = settings or Settings()
    paths: list[DeliveryPath] = []
    for name in settings.delivery_paths:
        try:
            paths.append(BUILTIN_PATHS[name])
        except KeyError:
            raise ValueError(f"Unknown delivery path: {name}") from None
    if settings.relay_base_url:
        paths.append(relay_path(settings.relay_base_url))
    if not paths:
        raise ValueError("At least one delivery path must be configured")
    return tuple(paths)
