import os

import uvicorn


def main() -> None:
	"""Запуск функции рассылок: broadcaster или python -m broadcaster."""
	uvicorn.run(
		"broadcaster.main:app",
		host=os.getenv("HOST", "0.0.0.0"),
		port=int(os.getenv("PORT", "3000")),
	)


if __name__ == "__main__":
	main()
