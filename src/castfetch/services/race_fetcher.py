from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import Awaitable, Callable, Sequence
from functools import partial

import structlog

from castfetch.config import Settings
from castfetch.domain import (
    AllPathsFailedError,
    AttemptStatus,
    FetchCancelledError,
    FetchResult,
    FetchTimeoutError,
    PathAttempt,
)
from castfetch.integrations.delivery_paths import DeliveryPath, build_delivery_paths
from castfetch.integrations.path_client import HttpPathClient, PathClient, PathResponse
from castfetch.shared.cancellation import CancellationHandle, subscription
from castfetch.shared.logging import log_context

StatusSink = Callable[[str], object]
Sleeper = Callable[[float], Awaitable[object]]

logger = structlog.get_logger(__name__)


def _describe(exc: BaseException) -> str:
    message = str(exc)
    return f"{type(exc).__name__}: {message}" if message else type(exc).__name__


class _RaceCoordinator:
    """Runs one attempt per path and owns the write-once decision for the race.

    ``decision`` resolves with the first ``(attempt, response)`` to succeed, in
    completion order, or with ``AllPathsFailedError`` once every attempt has
    settled without a success.
    """

    def __init__(self, attempts: Sequence[PathAttempt]) -> None:
        self.attempts = tuple(attempts)
        self.decision: asyncio.Future[tuple[PathAttempt, PathResponse]] = (
            asyncio.get_running_loop().create_future()
        )
        self._unsettled = len(self.attempts)
        self._tasks: set[asyncio.Task] = set()
        self._cleanup: set[asyncio.Task] = set()

    @property
    def winner(self) -> PathAttempt | None:
        if (
            self.decision.done()
            and not self.decision.cancelled()
            and self.decision.exception() is None
        ):
            return self.decision.result()[0]
        return None

    def launch(self, client: PathClient) -> None:
        for attempt in self.attempts:
            task = asyncio.create_task(client.open(attempt.address), name=f"path-{attempt.index}")
            self._tasks.add(task)
            attempt.handle.on_cancel(task.cancel)
            task.add_done_callback(partial(self._on_attempt_done, attempt))

    def cancel_all(self) -> None:
        for attempt in self.attempts:
            attempt.handle.cancel()

    def release_winner(self) -> None:
        """Close the winning response when its body will never be read."""
        if self.winner is not None:
            self._discard(self.decision.result()[1])

    def close(self) -> None:
        winner = self.winner
        for attempt in self.attempts:
            if attempt is not winner:
                attempt.handle.cancel()
        if not self.decision.done():
            self.decision.cancel()

    def _on_attempt_done(self, attempt: PathAttempt, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        self._unsettled -= 1
        if task.cancelled():
            attempt.settle(AttemptStatus.CANCELLED)
        elif task.exception() is not None:
            attempt.settle(AttemptStatus.FAILED, _describe(task.exception()))
            logger.info("path_failed", index=attempt.index, reason=attempt.reason)
        else:
            response = task.result()
            attempt.settle(AttemptStatus.SUCCEEDED)
            if self.decision.done():
                self._discard(response)
            else:
                self.decision.set_result((attempt, response))
        if self._unsettled == 0 and not self.decision.done():
            self.decision.set_exception(AllPathsFailedError(self.attempts))

    def _discard(self, response: PathResponse) -> None:
        task = asyncio.ensure_future(response.aclose())
        self._cleanup.add(task)
        task.add_done_callback(self._cleanup_done)

    def _cleanup_done(self, task: asyncio.Task) -> None:
        self._cleanup.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.debug("loser_close_failed", reason=_describe(task.exception()))


class RaceFetcher:
    """Fetch a resource through every delivery path at once; the first success wins.

    The race ends on the first success, when every path has failed, when the
    global deadline elapses, or when the caller's cancellation handle fires.
    Losing attempts are cancelled on every exit.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: PathClient | None = None,
        paths: Sequence[DeliveryPath] | None = None,
        *,
        deadline: float | None = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.settings = settings or Settings()
        self.paths = tuple(paths) if paths is not None else build_delivery_paths(self.settings)
        if not self.paths:
            raise ValueError("RaceFetcher needs at least one delivery path")
        self.deadline = deadline if deadline is not None else self.settings.race_deadline_sec
        self._owns_client = client is None
        self.client = client or HttpPathClient(self.settings.user_agent, timeout=self.deadline)
        self._sleep = sleep
        self._sink_tasks: set[asyncio.Future] = set()

    async def __aenter__(self) -> RaceFetcher:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client and isinstance(self.client, HttpPathClient):
            await self.client.aclose()

    async def fetch(
        self,
        target: str,
        cancel: CancellationHandle | None = None,
        on_status: StatusSink | None = None,
    ) -> FetchResult:
        if not target:
            raise ValueError("target must be a non-empty string")
        if cancel is not None and cancel.is_cancelled():
            logger.info("race_cancelled", target=target, stage="before_start")
            raise FetchCancelledError()

        with log_context(fetch_target=target):
            self._emit(on_status, "connecting")
            race = _RaceCoordinator(
                [
                    PathAttempt(index=index, address=path(target))
                    for index, path in enumerate(self.paths)
                ]
            )
            external = asyncio.Event()

            def _on_external_cancel() -> None:
                external.set()
                race.cancel_all()

            with subscription(cancel, _on_external_cancel):
                start = time.perf_counter()
                try:
                    winner, response = await self._run(race, external)
                except BaseException:
                    race.release_winner()
                    raise
                finally:
                    race.close()
                logger.info(
                    "race_won",
                    index=winner.index,
                    duration_ms=int((time.perf_counter() - start) * 1000),
                )
                body = await self._materialize(race, response, on_status)
                return FetchResult(
                    body=body,
                    won_by_index=winner.index,
                    address=winner.address,
                    attempts=race.attempts,
                )

    async def _run(
        self, race: _RaceCoordinator, external: asyncio.Event
    ) -> tuple[PathAttempt, PathResponse]:
        logger.info("race_started", paths=len(race.attempts), deadline_sec=self.deadline)
        race.launch(self.client)
        deadline = asyncio.ensure_future(self._sleep(self.deadline))
        cancelled = asyncio.ensure_future(external.wait())
        try:
            await asyncio.wait(
                {race.decision, deadline, cancelled}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            deadline.cancel()
            cancelled.cancel()

        # A decided success beats a concurrent cancel; cancel beats aggregate failure.
        if race.winner is not None:
            return race.decision.result()
        if external.is_set():
            logger.info("race_cancelled", stage="in_flight")
            raise FetchCancelledError(race.attempts)
        if race.decision.done():
            logger.warning("race_exhausted", reasons=[a.reason for a in race.attempts])
            raise race.decision.exception()
        logger.warning(
            "race_timeout",
            deadline_sec=self.deadline,
            pending=[a.index for a in race.attempts if a.is_pending],
        )
        raise FetchTimeoutError(self.deadline, race.attempts)

    async def _materialize(
        self, race: _RaceCoordinator, response: PathResponse, on_status: StatusSink | None
    ) -> str:
        self._emit(on_status, "downloading")
        try:
            await response.aread()
            body = response.text
        except Exception as exc:  # noqa: BLE001
            logger.warning("winner_body_failed", reason=_describe(exc))
            raise AllPathsFailedError(race.attempts) from exc
        finally:
            await response.aclose()
        self._emit(on_status, "parsing")
        return body

    def _emit(self, sink: StatusSink | None, label: str) -> None:
        if sink is None:
            return
        try:
            result = sink(label)
        except Exception:  # noqa: BLE001
            logger.warning("status_sink_failed", label=label, exc_info=True)
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._sink_tasks.add(task)
            task.add_done_callback(partial(self._sink_done, label))

    def _sink_done(self, label: str, task: asyncio.Future) -> None:
        self._sink_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("status_sink_failed", label=label, reason=_describe(task.exception()))
