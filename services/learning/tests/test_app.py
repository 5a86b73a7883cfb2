from uuid import uuid4

import pytest

API = "/api/v1"


@pytest.mark.asyncio
async def test_health(async_client) -> None:
    resp = await async_client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "service": "learning"}


@pytest.mark.asyncio
async def test_missing_token_is_rejected_with_envelope(async_client) -> None:
    resp = await async_client.get(
        f"{API}/progress/programs/{uuid4()}", headers={"X-Request-ID": "req-123"},
    )
    assert resp.status_code == 401
    body = resp.json()
    assert body["error"]["message"] == "Not authenticated"
    assert body["request_id"] == "req-123"
    assert resp.headers["X-Request-ID"] == "req-123"
