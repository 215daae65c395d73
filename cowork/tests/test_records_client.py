"""Record store HTTP client against httpx.MockTransport.

Focus:
    - Request shape per operation (method, path, body, query)
    - Bearer token from provider / static token
    - Response normalisation (inserted wrapper, data wrapper, empty body)
    - RemoteError on non-2xx and transport errors
"""

from __future__ import annotations

import json

import httpx
import pytest

from cowork.records.client import RecordStoreClient
from cowork.records.config import RecordStoreConfig
from cowork.records.errors import RemoteError


pytestmark = pytest.mark.anyio("asyncio")

CONFIG = RecordStoreConfig(
    base_url="https://roble.test",
    project="proj_1",
    timeout_seconds=5,
    access_token="static-token",
)


def _client(handler, **kwargs) -> RecordStoreClient:
    return RecordStoreClient(CONFIG, transport=httpx.MockTransport(handler), **kwargs)


@pytest.mark.anyio
async def test_create_posts_insert_and_unwraps_inserted():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(201, json={"inserted": [{"_id": "AbC1", "nombre": "G1"}], "skipped": []})

    async with _client(handler) as client:
        row = await client.create("equipos", {"nombre": "G1"})

    assert row == {"_id": "AbC1", "nombre": "G1"}
    assert seen["method"] == "POST"
    assert seen["path"] == "/database/proj_1/insert"
    assert seen["body"] == {"tableName": "equipos", "records": [{"nombre": "G1"}]}
    assert seen["auth"] == "Bearer static-token"


@pytest.mark.anyio
async def test_create_returns_body_when_nothing_inserted():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"inserted": [], "skipped": [{"reason": "dup"}]})

    async with _client(handler) as client:
        body = await client.create("equipos", {"nombre": "G1"})
    assert body == {"inserted": [], "skipped": [{"reason": "dup"}]}


@pytest.mark.anyio
async def test_read_stringifies_filters_and_accepts_data_wrapper():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"data": [{"_id": "1"}, "junk"]})

    async with _client(handler) as client:
        rows = await client.read("activities", {"activo": True, "category_id": 7})

    assert rows == [{"_id": "1"}]
    assert seen["params"] == {"tableName": "activities", "activo": "true", "category_id": "7"}


@pytest.mark.anyio
async def test_read_degrades_unknown_shapes_to_empty_list():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"message": "ok"})

    async with _client(handler) as client:
        assert await client.read("equipos") == []


@pytest.mark.anyio
async def test_get_by_id_returns_first_or_none():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params.get("_id") == "known":
            return httpx.Response(200, json=[{"_id": "known"}])
        return httpx.Response(200, json=[])

    async with _client(handler) as client:
        assert await client.get_by_id("equipos", "known") == {"_id": "known"}
        assert await client.get_by_id("equipos", "missing") is None


@pytest.mark.anyio
async def test_update_strips_identity_fields():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, content=b"")

    async with _client(handler) as client:
        result = await client.update("equipos", "R1", {"_id": "R1", "id": 3, "nombre": "B"})

    assert result == {}
    assert seen["method"] == "PUT"
    assert seen["body"] == {
        "tableName": "equipos",
        "idColumn": "_id",
        "idValue": "R1",
        "updates": {"nombre": "B"},
    }


@pytest.mark.anyio
async def test_delete_sends_json_body():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(204)

    async with _client(handler) as client:
        await client.delete("categorias_equipo", "C9")

    assert seen["method"] == "DELETE"
    assert seen["path"] == "/database/proj_1/delete"
    assert seen["body"] == {"tableName": "categorias_equipo", "idColumn": "_id", "idValue": "C9"}


@pytest.mark.anyio
async def test_non_2xx_raises_remote_error_with_message():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"message": "token expired"})

    async with _client(handler) as client:
        with pytest.raises(RemoteError) as excinfo:
            await client.read("equipos")
    assert excinfo.value.status_code == 401
    assert "token expired" in str(excinfo.value)


@pytest.mark.anyio
async def test_transport_error_raises_remote_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(RemoteError):
            await client.delete("equipos", "X")


@pytest.mark.anyio
async def test_token_provider_wins_and_clear_removes_static_token():
    headers = []

    def handler(request: httpx.Request) -> httpx.Response:
        headers.append(request.headers.get("Authorization"))
        return httpx.Response(200, json=[])

    async with _client(handler, token_provider=lambda: "fresh") as client:
        await client.read("equipos")
    async with _client(handler) as client:
        client.clear_access_token()
        await client.read("equipos")
        client.set_access_token("later")
        await client.read("equipos")

    assert headers == ["Bearer fresh", None, "Bearer later"]
