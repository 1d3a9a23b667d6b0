"""Общие утилиты приложения."""

from datetime import datetime, timezone

PUSH_BODY_LIMIT = 200


def now_ms() -> int:
    """Текущее время в миллисекундах с эпохи (UTC)."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def truncate(text: str, limit: int = PUSH_BODY_LIMIT) -> str:
    """
    Обрезает текст до limit символов и добавляет "..." если текст длиннее.

    Args:
        text: Исходный текст
        limit: Максимальная длина без маркера

    Returns:
        Текст не длиннее limit + 3 символа
    """
    if len(text) > limit:
        return f"{text[:limit]}..."
    return text
