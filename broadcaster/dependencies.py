from typing import AsyncGenerator

from fastapi import Header

from broadcaster.config import get_settings
from broadcaster.db import AppwriteClient


async def get_appwrite_client(
    x_appwrite_key: str | None = Header(default=None),
) -> AsyncGenerator[AppwriteClient, None]:
    """
    Зависимость: серверный клиент Appwrite на время запроса.
    Ключ берётся из заголовка x-appwrite-key, иначе из настроек.
    """
    settings = get_settings()
    client = AppwriteClient(
        endpoint=settings.appwrite_endpoint,
        project_id=settings.appwrite_function_project_id,
        api_key=x_appwrite_key or settings.appwrite_api_key or "",
    )
    try:
        yield client
    finally:
        await client.close()
