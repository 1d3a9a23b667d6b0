"""Построители строк запросов, прав доступа и идентификаторов Appwrite."""

import json
import secrets
import time


class Query:
    """Запросы для list_rows в JSON-формате Appwrite."""

    @staticmethod
    def _build(method: str, values: list) -> str:
        return json.dumps({"method": method, "values": values}, separators=(",", ":"))

    @classmethod
    def limit(cls, value: int) -> str:
        return cls._build("limit", [value])

    @classmethod
    def offset(cls, value: int) -> str:
        return cls._build("offset", [value])


class Role:
    @staticmethod
    def user(user_id: str) -> str:
        return f"user:{user_id}"

    @staticmethod
    def team(team_id: str) -> str:
        return f"team:{team_id}"


class Permission:
    @staticmethod
    def read(role: str) -> str:
        return f'read("{role}")'

    @staticmethod
    def update(role: str) -> str:
        return f'update("{role}")'

    @staticmethod
    def delete(role: str) -> str:
        return f'delete("{role}")'


def unique_id() -> str:
    """
    Уникальный идентификатор в стиле ID.unique():
    секунды и микросекунды в hex плюс случайный хвост, всего 20 символов.
    """
    now = time.time()
    sec = int(now)
    usec = int((now - sec) * 1_000_000)
    return f"{sec:08x}{usec:05x}{secrets.token_hex(4)[:7]}"
