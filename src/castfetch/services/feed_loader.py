from __future__ import annotations

from dataclasses import dataclass

import structlog

from castfetch.domain import AllPathsFailedError, FetchCancelledError, FetchTimeoutError
from castfetch.services.race_fetcher import RaceFetcher, StatusSink
from castfetch.shared.cancellation import CancellationToken

TIMEOUT_MESSAGE = "All delivery paths were too slow. Please try again."
UNAVAILABLE_MESSAGE = "All CORS proxies failed. Please try again."

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class FeedLoadResult:
    body: str | None = None
    error: str | None = None
    cancelled: bool = False
    won_by_index: int | None = None


class FeedLoadService:
    """Loads one feed at a time; a new load supersedes the one in flight."""

    def __init__(self, fetcher: RaceFetcher) -> None:
        self.fetcher = fetcher
        self._current: CancellationToken | None = None

    @property
    def is_loading(self) -> bool:
        return self._current is not None

    async def load(self, url: str, on_status: StatusSink | None = None) -> FeedLoadResult:
        if self.cancel():
            logger.info("feed_load_superseded", url=url)
        token = CancellationToken()
        self._current = token
        try:
            result = await self.fetcher.fetch(url, cancel=token, on_status=on_status)
        except FetchCancelledError:
            return FeedLoadResult(cancelled=True)
        except FetchTimeoutError:
            return FeedLoadResult(error=TIMEOUT_MESSAGE)
        except AllPathsFailedError:
            return FeedLoadResult(error=UNAVAILABLE_MESSAGE)
        finally:
            if self._current is token:
                self._current = None

        # Superseded after the race was already won: the result is stale.
        if token.is_cancelled():
            return FeedLoadResult(cancelled=True)
        return FeedLoadResult(body=result.body, won_by_index=result.won_by_index)

    def cancel(self) -> bool:
        token, self._current = self._current, None
        return token.cancel() if token is not None else False
