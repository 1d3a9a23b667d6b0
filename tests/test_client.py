"""Tests for the Appwrite REST client against a mocked transport."""
from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from broadcaster.db import AppwriteClient, AppwriteError, Query


def _client(handler):
    return AppwriteClient(
        endpoint="https://appwrite.test/v1/",
        project_id="proj",
        api_key="secret",
        transport=httpx.MockTransport(handler),
    )


def _run(coro_factory, handler):
    async def _go():
        client = _client(handler)
        try:
            return await coro_factory(client)
        finally:
            await client.close()
    return asyncio.run(_go())


def test_list_rows_sends_queries_and_headers():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        seen["headers"] = request.headers
        return httpx.Response(200, json={"total": 1, "rows": [{"$id": "u1", "id": "acc-1"}]})

    rows = _run(lambda c: c.list_rows("db", "users", [Query.limit(100), Query.offset(0)]), handler)

    assert rows == [{"$id": "u1", "id": "acc-1"}]
    assert seen["url"].path == "/v1/tablesdb/db/tables/users/rows"
    assert seen["url"].params.get_list("queries[]") == [
        '{"method":"limit","values":[100]}',
        '{"method":"offset","values":[0]}',
    ]
    assert seen["headers"]["X-Appwrite-Project"] == "proj"
    assert seen["headers"]["X-Appwrite-Key"] == "secret"


def test_create_row_payload():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json={"$id": "row1", **seen["body"]["data"]})

    row = _run(
        lambda c: c.create_row("db", "broadcast_messages", "row1", {"text": "Hi"}, ['read("user:a")']),
        handler,
    )

    assert seen["method"] == "POST"
    assert seen["body"] == {"rowId": "row1", "data": {"text": "Hi"}, "permissions": ['read("user:a")']}
    assert row == {"$id": "row1", "text": "Hi"}


def test_update_and_delete_rows():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.method, request.url.path))
        if request.method == "DELETE":
            return httpx.Response(204)
        return httpx.Response(200, json={"$id": "row1", **json.loads(request.content)["data"]})

    async def scenario(c):
        updated = await c.update_row("db", "t", "row1", {"is_active": False})
        deleted = await c.delete_row("db", "t", "row1")
        return updated, deleted

    updated, deleted = _run(scenario, handler)
    assert updated == {"$id": "row1", "is_active": False}
    assert deleted is None
    assert calls == [("PATCH", "/v1/tablesdb/db/tables/t/rows/row1"), ("DELETE", "/v1/tablesdb/db/tables/t/rows/row1")]


def test_storage_and_push_endpoints():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        calls.append((request.method, request.url.path, body))
        return httpx.Response(200, json={"$id": "x", "status": "processing"})

    async def scenario(c):
        await c.update_file("media", "f1", ['read("user:a")'])
        await c.get_file("media", "f1")
        await c.create_push("m1", "Title", "Body", ["a", "b"], {"type": "broadcast"})

    _run(scenario, handler)
    assert calls[0] == ("PUT", "/v1/storage/buckets/media/files/f1", {"permissions": ['read("user:a")']})
    assert calls[1] == ("GET", "/v1/storage/buckets/media/files/f1", None)
    assert calls[2] == (
        "POST",
        "/v1/messaging/messages/push",
        {"messageId": "m1", "title": "Title", "body": "Body", "users": ["a", "b"], "data": {"type": "broadcast"}},
    )


def test_error_response_becomes_appwrite_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={
            "message": "Row with the requested ID could not be found.",
            "code": 404,
            "type": "row_not_found",
        })

    with pytest.raises(AppwriteError) as exc_info:
        _run(lambda c: c.delete_row("db", "t", "missing"), handler)

    assert str(exc_info.value) == "Row with the requested ID could not be found."
    assert exc_info.value.code == 404
    assert exc_info.value.type == "row_not_found"


def test_non_json_error_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="Bad Gateway")

    with pytest.raises(AppwriteError) as exc_info:
        _run(lambda c: c.get_file("media", "f1"), handler)

    assert exc_info.value.code == 502
    assert str(exc_info.value) == "Bad Gateway"


def test_non_numeric_error_code_keeps_platform_message():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(409, json={"message": "Document already exists.", "code": "conflict", "type": "row_already_exists"})

    with pytest.raises(AppwriteError) as exc_info:
        _run(lambda c: c.create_row("db", "t", "row1", {}), handler)

    assert str(exc_info.value) == "Document already exists."
    assert exc_info.value.code == 409
