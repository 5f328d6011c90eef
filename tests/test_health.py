import pytest
from httpx import ASGITransport, AsyncClient

from castfetch.api.main import create_app
from castfetch.config import Settings


@pytest.mark.asyncio
async def test_health_endpoint_reports_configured_paths() -> None:
    app = create_app(Settings(relay_base_url="https://relay.example"))

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "delivery_paths": 4}


def test_misconfigured_paths_fail_at_startup() -> None:
    with pytest.raises(ValueError):
        create_app(Settings(delivery_paths=["nope"]))
