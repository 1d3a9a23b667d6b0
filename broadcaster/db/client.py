import httpx
from typing import Any

from broadcaster.logging_config import get_logger

logger = get_logger(__name__)

TIMEOUT_CONFIG = httpx.Timeout(
    connect=10.0,
    read=15.0,
    write=10.0,
    pool=15.0
)

LIMITS_CONFIG = httpx.Limits(
    max_keepalive_connections=20,
    max_connections=100,
    keepalive_expiry=30.0
)

RESPONSE_FORMAT = "1.8.0"


def _status_code(value: Any, fallback: int) -> int:
    """code из тела ошибки, если это число, иначе HTTP-статус ответа."""
    try:
        return int(value) if value else fallback
    except (TypeError, ValueError):
        return fallback


class AppwriteError(Exception):
    """Ошибка, которую вернул Appwrite REST API."""

    def __init__(self, message: str, code: int = 0, type: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.type = type

    @classmethod
    def from_response(cls, response: httpx.Response) -> "AppwriteError":
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            return cls(
                str(payload.get("message") or response.reason_phrase),
                _status_code(payload.get("code"), response.status_code),
                str(payload.get("type") or ""),
            )
        return cls(response.text or response.reason_phrase, response.status_code)


class AppwriteClient:
    """
    Серверный клиент Appwrite REST API (TablesDB, Storage, Messaging).
    HTTP-клиент создаётся лениво и переиспользуется в рамках одного запроса.
    """

    def __init__(
        self,
        endpoint: str,
        project_id: str,
        api_key: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.headers = {
            "X-Appwrite-Project": project_id,
            "X-Appwrite-Key": api_key,
            "X-Appwrite-Response-Format": RESPONSE_FORMAT,
            "Content-Type": "application/json",
        }
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Получить или создать HTTP клиент."""
        if self._client is None or self._client.is_closed:
            if self._transport is not None:
                self._client = httpx.AsyncClient(
                    timeout=TIMEOUT_CONFIG,
                    transport=self._transport
                )
            else:
                self._client = httpx.AsyncClient(
                    timeout=TIMEOUT_CONFIG,
                    limits=LIMITS_CONFIG,
                    http2=True
                )
            logger.debug("Created new HTTP client for Appwrite")
        return self._client

    async def close(self) -> None:
        """Закрыть HTTP клиент."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
            logger.debug("Appwrite HTTP client closed")

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict | None = None,
    ) -> dict:
        client = await self._get_client()
        try:
            resp = await client.request(
                method,
                f"{self.endpoint}{path}",
                params=params,
                json=json,
                headers=self.headers
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Appwrite {method} {path} error: {e.response.status_code} - {e.response.text}")
            raise AppwriteError.from_response(e.response) from e
        except httpx.RequestError as e:
            logger.error(f"Appwrite request error: {e}")
            raise

        if resp.status_code == 204 or not resp.content:
            return {}
        return resp.json()

    # ── TablesDB ──────────────────────────────────────────────────────

    async def list_rows(
        self,
        database_id: str,
        table_id: str,
        queries: list[str] | None = None
    ) -> list[dict]:
        """
        Получить строки таблицы.

        Args:
            database_id: Идентификатор базы
            table_id: Идентификатор таблицы
            queries: Запросы (limit, offset, ...), см. Query

        Returns:
            Список строк
        """
        params = {"queries[]": queries} if queries else None
        result = await self._request(
            "GET",
            f"/tablesdb/{database_id}/tables/{table_id}/rows",
            params=params
        )
        return result.get("rows", [])

    async def create_row(
        self,
        database_id: str,
        table_id: str,
        row_id: str,
        data: dict,
        permissions: list[str] | None = None
    ) -> dict:
        """
        Создать строку с правами доступа уровня документа.

        Returns:
            Созданная строка
        """
        payload: dict[str, Any] = {"rowId": row_id, "data": data}
        if permissions is not None:
            payload["permissions"] = permissions
        return await self._request(
            "POST",
            f"/tablesdb/{database_id}/tables/{table_id}/rows",
            json=payload
        )

    async def update_row(
        self,
        database_id: str,
        table_id: str,
        row_id: str,
        data: dict
    ) -> dict:
        """Частично обновить строку. Возвращает обновлённую строку."""
        return await self._request(
            "PATCH",
            f"/tablesdb/{database_id}/tables/{table_id}/rows/{row_id}",
            json={"data": data}
        )

    async def delete_row(
        self,
        database_id: str,
        table_id: str,
        row_id: str
    ) -> None:
        """Удалить строку."""
        await self._request(
            "DELETE",
            f"/tablesdb/{database_id}/tables/{table_id}/rows/{row_id}"
        )

    # ── Storage ───────────────────────────────────────────────────────

    async def get_file(self, bucket_id: str, file_id: str) -> dict:
        """Метаданные файла в бакете (name, mimeType, sizeOriginal, ...)."""
        return await self._request(
            "GET",
            f"/storage/buckets/{bucket_id}/files/{file_id}"
        )

    async def update_file(
        self,
        bucket_id: str,
        file_id: str,
        permissions: list[str]
    ) -> dict:
        """Заменить права доступа к файлу."""
        return await self._request(
            "PUT",
            f"/storage/buckets/{bucket_id}/files/{file_id}",
            json={"permissions": permissions}
        )

    # ── Messaging ─────────────────────────────────────────────────────

    async def create_push(
        self,
        message_id: str,
        title: str,
        body: str,
        users: list[str],
        data: dict | None = None
    ) -> dict:
        """
        Отправить push-уведомление списку аккаунтов.

        Returns:
            Созданное сообщение ($id, status, ...)
        """
        payload: dict[str, Any] = {
            "messageId": message_id,
            "title": title,
            "body": body,
            "users": users,
        }
        if data is not None:
            payload["data"] = data
        return await self._request("POST", "/messaging/messages/push", json=payload)
