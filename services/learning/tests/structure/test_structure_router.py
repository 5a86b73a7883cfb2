import pytest

from conftest import auth_headers
from shared.constants import Role

API = "/api/v1"


@pytest.mark.asyncio
async def test_structure_endpoints(async_client, factory) -> None:
    admin = await factory.user(Role.ADMIN)
    program = await factory.program()
    module = await factory.module(await factory.course(program))
    headers = auth_headers(admin)

    created = await async_client.post(
        f"{API}/lessons",
        json={"module_id": str(module.id), "title": "Intro", "sort_order": 0},
        headers=headers,
    )
    assert created.status_code == 201

    clash = await async_client.post(
        f"{API}/lessons",
        json={"module_id": str(module.id), "title": "Dup", "sort_order": 0},
        headers=headers,
    )
    assert clash.status_code == 409

    structure = await async_client.get(f"{API}/programs/{program.id}/structure", headers=headers)
    assert structure.status_code == 200
    assert structure.json()["valid"] is False
