import pytest
import structlog
from fakes import ScriptedPathClient, address, make_paths
from structlog.contextvars import merge_contextvars
from structlog.testing import LogCapture

from castfetch.config import Settings
from castfetch.services.race_fetcher import RaceFetcher
from castfetch.shared.logging import bind_log_context, clear_log_context, log_context


@pytest.fixture
def capture():
    capture = LogCapture()
    structlog.configure(
        processors=[merge_contextvars, capture],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
    yield capture
    structlog.reset_defaults()


def test_request_id_logging_smoke(capture) -> None:
    logger = structlog.get_logger(__name__)
    bind_log_context(request_id="req-1", skipped=None)
    logger.info("request_started", path="/healthz")
    clear_log_context()

    assert capture.entries[0]["request_id"] == "req-1"
    assert capture.entries[0]["path"] == "/healthz"
    assert "skipped" not in capture.entries[0]


def test_log_context_restores_previous_binding(capture) -> None:
    logger = structlog.get_logger(__name__)
    with log_context(fetch_target="a"):
        logger.info("inside")
    logger.info("outside")

    assert capture.entries[0]["fetch_target"] == "a"
    assert "fetch_target" not in capture.entries[1]


@pytest.mark.asyncio
async def test_race_events_carry_target(capture, target: str) -> None:
    client = ScriptedPathClient({address(0): (0, 500), address(1): (0.01, "<rss/>")})
    fetcher = RaceFetcher(Settings(), client=client, paths=make_paths(2), deadline=5.0)

    await fetcher.fetch(target)

    events = [entry["event"] for entry in capture.entries]
    assert events[0] == "race_started"
    assert "path_failed" in events
    assert "race_won" in events
    won = next(entry for entry in capture.entries if entry["event"] == "race_won")
    assert won["index"] == 1
    assert won["fetch_target"] == target
