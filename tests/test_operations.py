"""
Tests for the read/write operation builders.
"""

import pytest

from query_sync.protocols import RemoteResult
from query_sync.utils import read_operation, write_operation


@pytest.mark.asyncio
async def test_read_operation_sends_get_with_params(make_remote_client):
    client = make_remote_client({("GET", "/api/ai-insights"): RemoteResult([{"id": "i1"}], None)})
    load = read_operation(client, "/api/ai-insights", {"user_id": "u1", "limit": 5})

    result = await load()

    assert result.data == [{"id": "i1"}]
    assert client.requests == [("GET", "/api/ai-insights", {"user_id": "u1", "limit": 5}, None)]


@pytest.mark.asyncio
async def test_write_operation_body_defaults(remote_client):
    """Test variables become the body except for DELETE."""
    save = write_operation(remote_client, "PUT", lambda log: f"/api/task-logs/{log['id']}")
    delete = write_operation(remote_client, "delete", lambda log_id: f"/api/task-logs/{log_id}")

    await save({"id": "l1", "notitie": "ok"})
    await delete("l1")

    assert remote_client.requests == [
        ("PUT", "/api/task-logs/l1", None, {"id": "l1", "notitie": "ok"}),
        ("delete", "/api/task-logs/l1", None, None),
    ]


@pytest.mark.asyncio
async def test_write_operation_body_mapper(remote_client):
    update = write_operation(
        remote_client,
        "PUT",
        lambda variables: f"/api/profiles/{variables['id']}",
        body=lambda variables: variables["data"],
    )

    await update({"id": "u1", "data": {"naam": "Sam"}})

    assert remote_client.requests == [("PUT", "/api/profiles/u1", None, {"naam": "Sam"})]
