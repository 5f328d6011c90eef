from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

import httpx

HANG = object()


class FakeResponse:
    def __init__(self, body: str, fail_read: Exception | None = None) -> None:
        self._body = body
        self._fail_read = fail_read
        self.read = False
        self.closed = False

    @property
    def text(self) -> str:
        return self._body

    async def aread(self) -> bytes:
        if self._fail_read is not None:
            raise self._fail_read
        self.read = True
        return self._body.encode()

    async def aclose(self) -> None:
        self.closed = True


@dataclass
class ScriptedPathClient:
    """Each address maps to ``(delay, outcome)``.

    outcome: a body string, an HTTP status int (failure), an exception, a
    FakeResponse, or HANG.
    """

    script: dict[str, tuple[float, Any]]
    opened: list[str] = field(default_factory=list)
    cancelled: list[str] = field(default_factory=list)
    responses: dict[str, FakeResponse] = field(default_factory=dict)

    async def open(self, address: str) -> FakeResponse:
        self.opened.append(address)
        delay, outcome = self.script[address]
        try:
            if outcome is HANG:
                await asyncio.Event().wait()
            await asyncio.sleep(delay)
        except asyncio.CancelledError:
            self.cancelled.append(address)
            raise
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, int):
            request = httpx.Request("GET", "https://example.test/")
            httpx.Response(outcome, request=request).raise_for_status()
        response = outcome if isinstance(outcome, FakeResponse) else FakeResponse(outcome)
        self.responses[address] = response
        return response


def make_paths(count: int) -> list:
    return [lambda target, i=i: f"path{i}://{target}" for i in range(count)]


def address(index: int, target: str = "https://feeds.example/rss") -> str:
    return f"path{index}://{target}"


async def drain() -> None:
    for _ in range(5):
        await asyncio.sleep(0)
