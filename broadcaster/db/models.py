from pydantic import BaseModel
from typing import Optional


class BroadcastMessage(BaseModel):
    id: str
    text: str
    priority: str
    video_url: Optional[str] = None
    created_at: int
    is_active: bool = True


class MediaFile(BaseModel):
    name: str
    mime_type: Optional[str] = None
    size: int = 0
    storage_file_id: str
    bucket_id: str
    uploaded_by: Optional[str] = None
    broadcast_id: str
    folder: str = "broadcasts"
    created_at: int


class FileAccess(BaseModel):
    file_id: str
    user_id: str
    access_type: str = "read"
    granted_by: Optional[str] = None
    granted_at: int


def row_snapshot(row: dict) -> dict:
    """Строка Appwrite в виде, который отдаётся клиенту: $id/$createdAt/$updatedAt + данные."""
    snapshot = {
        "$id": row.get("$id"),
        "$createdAt": row.get("$createdAt"),
        "$updatedAt": row.get("$updatedAt"),
    }
    snapshot.update({k: v for k, v in row.items() if not k.startswith("$")})
    return snapshot
