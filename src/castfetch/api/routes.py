from __future__ import annotations

import httpx
import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response

from castfetch.api.schemas import HealthResponse, RelayError
from castfetch.domain import HealthStatus
from castfetch.integrations.path_client import HttpPathClient

api_router = APIRouter()
logger = structlog.get_logger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET",
}


def _relay_error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(RelayError(error=message).model_dump(), status_code=status_code)


@api_router.get("/healthz", response_model=HealthResponse, tags=["system"])
async def health_check(request: Request) -> HealthResponse:
    status = HealthStatus(delivery_paths=len(request.app.state.delivery_paths))
    return HealthResponse(status=status.status, delivery_paths=status.delivery_paths)


@api_router.get("/api/proxy", tags=["relay"])
async def relay_feed(request: Request, url: str | None = None) -> Response:
    if not url:
        return _relay_error("Missing url parameter", 400)

    client: HttpPathClient = request.app.state.relay_client
    try:
        upstream = await client.open(url)
    except httpx.HTTPStatusError as exc:
        status_code = exc.response.status_code
        logger.info("relay_upstream_status", url=url, status_code=status_code)
        return _relay_error(f"Upstream returned {status_code}", status_code)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.warning("relay_upstream_failed", url=url, reason=str(exc))
        return _relay_error(str(exc) or type(exc).__name__, 500)

    try:
        await upstream.aread()
        text = upstream.text
    except httpx.HTTPError as exc:
        logger.warning("relay_body_failed", url=url, reason=str(exc))
        return _relay_error(str(exc) or type(exc).__name__, 500)
    finally:
        await upstream.aclose()

    return Response(
        content=text,
        status_code=200,
        media_type="application/xml; charset=utf-8",
        headers=CORS_HEADERS,
    )
