from datetime import datetime, timedelta, timezone

import pytest

from conftest import auth_headers

API = "/api/v1"


@pytest.mark.asyncio
async def test_extend_deadline_conflict_over_http(async_client, factory) -> None:
    end = datetime(2026, 6, 30, tzinfo=timezone.utc)
    tree = await factory.program_tree(end_date=end)
    url = f"{API}/enrollments/{tree.enrollment.id}/extend-deadline"
    headers = auth_headers(tree.admin)

    same = await async_client.post(url, json={"new_end_date": end.isoformat()}, headers=headers)
    assert same.status_code == 409
    assert same.json()["error"] == {
        "code": "conflict",
        "message": "New deadline must be after current deadline",
    }

    later = end + timedelta(days=14)
    ok = await async_client.post(url, json={"new_end_date": later.isoformat()}, headers=headers)
    assert ok.status_code == 200
    assert ok.json()["effective_end_date"].startswith("2026-07-14")
