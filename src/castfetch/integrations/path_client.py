from __future__ import annotations

import logging
import time
from typing import Protocol

import httpx


class PathResponse(Protocol):
    @property
    def text(self) -> str: ...

    async def aread(self) -> bytes: ...

    async def aclose(self) -> None: ...


class PathClient(Protocol):
    async def open(self, address: str) -> PathResponse:
        """Return a response whose status was a success; the body is not read yet."""
        raise NotImplementedError


class HttpPathClient:
    def __init__(
        self,
        user_agent: str,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.user_agent = user_agent
        self._client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": user_agent},
            transport=transport,
        )
        self._logger = logging.getLogger(__name__)

    async def open(self, address: str) -> httpx.Response:
        start = time.perf_counter()
        request = self._client.build_request("GET", address)
        response = await self._client.send(request, stream=True)
        duration_ms = int((time.perf_counter() - start) * 1000)
        self._logger.debug(
            "Path response",
            extra={
                "event": "path_response",
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError:
            await response.aclose()
            raise
        return response

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def aclose(self) -> None:
        await self._client.aclose()
