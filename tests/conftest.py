import os

import pytest

os.environ.setdefault("APPWRITE_DATABASE_ID", "db")
os.environ.setdefault("APPWRITE_BROADCAST_MESSAGES_COLLECTION_ID", "broadcast_messages")
os.environ.setdefault("APPWRITE_USERS_COLLECTION_ID", "users")
os.environ.setdefault("APPWRITE_MEDIA_FILES_COLLECTION_ID", "media_files")
os.environ.setdefault("APPWRITE_FILE_ACCESS_COLLECTION_ID", "file_access")
os.environ.setdefault("APPWRITE_MEDIA_FILES_BUCKET_ID", "media")

from fastapi.testclient import TestClient  # noqa: E402

from broadcaster.config import get_settings  # noqa: E402
from broadcaster.db import AppwriteError  # noqa: E402


class FakeAppwrite:
    """In-memory stand-in for AppwriteClient with failure injection."""

    def __init__(self, users=None):
        self.tables: dict[str, dict[str, dict]] = {"users": {}}
        self.files: dict[str, dict] = {}
        self.file_permissions: dict[str, list[str]] = {}
        self.pushes: list[dict] = []
        self.list_calls: list[list[str]] = []
        self.created: list[dict] = []
        self.updates: list[dict] = []
        self.fail_push = False
        self.fail_update_file = False
        self.fail_get_file = False
        self.fail_access_for: set[str] = set()
        for i, user in enumerate(users or []):
            self.tables["users"][f"u{i}"] = {"$id": f"u{i}", **user}

    async def list_rows(self, database_id, table_id, queries=None):
        self.list_calls.append(list(queries or []))
        rows = list(self.tables.get(table_id, {}).values())
        limit, offset = len(rows), 0
        for q in queries or []:
            if '"limit"' in q:
                limit = int(q.split("[")[1].split("]")[0])
            if '"offset"' in q:
                offset = int(q.split("[")[1].split("]")[0])
        return rows[offset:offset + limit]

    async def create_row(self, database_id, table_id, row_id, data, permissions=None):
        if table_id == "file_access" and data.get("user_id") in self.fail_access_for:
            raise AppwriteError("Document write failed", 500)
        row = {
            "$id": row_id,
            "$createdAt": "2026-10-19T00:00:00.000+00:00",
            "$updatedAt": "2026-10-19T00:00:00.000+00:00",
            "$permissions": list(permissions or []),
            **data,
        }
        self.tables.setdefault(table_id, {})[row_id] = row
        self.created.append({"table": table_id, "row": row})
        return row

    async def update_row(self, database_id, table_id, row_id, data):
        rows = self.tables.get(table_id, {})
        if row_id not in rows:
            raise AppwriteError("Row with the requested ID could not be found.", 404, "row_not_found")
        self.updates.append(dict(data))
        rows[row_id] = {**rows[row_id], **data, "$updatedAt": "2026-10-19T01:00:00.000+00:00"}
        return rows[row_id]

    async def delete_row(self, database_id, table_id, row_id):
        rows = self.tables.get(table_id, {})
        if row_id not in rows:
            raise AppwriteError("Row with the requested ID could not be found.", 404, "row_not_found")
        del rows[row_id]

    async def get_file(self, bucket_id, file_id):
        if self.fail_get_file or file_id not in self.files:
            raise AppwriteError("The requested file could not be found.", 404, "storage_file_not_found")
        return self.files[file_id]

    async def update_file(self, bucket_id, file_id, permissions):
        if self.fail_update_file:
            raise AppwriteError("Storage unavailable", 503)
        self.file_permissions[file_id] = list(permissions)
        return {"$id": file_id, "$permissions": permissions}

    async def create_push(self, message_id, title, body, users, data=None):
        if self.fail_push:
            raise AppwriteError("No push provider configured", 400)
        message = {"$id": message_id, "title": title, "body": body, "users": list(users), "data": data, "status": "processing"}
        self.pushes.append(message)
        return message

    async def close(self):
        return None

    def rows(self, table_id):
        return list(self.tables.get(table_id, {}).values())


@pytest.fixture()
def settings():
    return get_settings()


@pytest.fixture()
def fake():
    return FakeAppwrite(users=[
        {"id": "acc-1", "labels": ["Admin", "security"]},
        {"id": "acc-2", "labels": ["staff"]},
        {"id": "acc-3", "labels": []},
    ])


@pytest.fixture()
def client(fake):
    from broadcaster.dependencies import get_appwrite_client
    from broadcaster.main import app

    async def _override():
        yield fake

    app.dependency_overrides[get_appwrite_client] = _override
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
