class BroadcastValidationError(ValueError):
	"""Ошибка входных данных запроса: отдаётся клиенту как 400."""
