"""
Шаринг загруженного видео получателям рассылки.

Файл уже лежит в бакете без прав. Шаги:
  1. права на файл (read для получателей, CRUD для admin);
  2. строка метаданных в media files;
  3. по строке file access на каждого получателя с типом "read",
     чтобы файл был виден как "доступный мне", а не "мой".
Ошибка шага 1 не останавливает остальные, ошибка отдельного получателя
на шаге 3 не мешает остальным получателям.
"""

import logging

from broadcaster.config import Settings
from broadcaster.db import AppwriteClient, Permission, Role, unique_id
from broadcaster.db.models import FileAccess, MediaFile
from broadcaster.utils import now_ms
from .permissions import admin_permissions, build_permissions

logger = logging.getLogger(__name__)

BROADCAST_FOLDER = "broadcasts"
ACCESS_TYPE_READ = "read"


async def grant_file_permissions(
	client: AppwriteClient,
	bucket_id: str,
	file_id: str,
	account_ids: list[str],
) -> bool:
	try:
		await client.update_file(bucket_id, file_id, build_permissions(account_ids))
	except Exception as e:
		logger.warning("storage_permissions_failed file=%s: %s", file_id, e)
		return False
	logger.info("Storage permissions set on %s for %d users", file_id, len(account_ids))
	return True


async def create_media_file(
	client: AppwriteClient,
	settings: Settings,
	file_id: str,
	account_ids: list[str],
	broadcast_id: str,
	uploaded_by: str | None,
) -> str:
	"""Создаёт строку метаданных файла и возвращает её $id."""
	bucket_id = settings.appwrite_media_files_bucket_id
	stored = await client.get_file(bucket_id, file_id)
	media = MediaFile(
		name=stored.get("name") or file_id,
		mime_type=stored.get("mimeType"),
		size=int(stored.get("sizeOriginal") or 0),
		storage_file_id=file_id,
		bucket_id=bucket_id,
		uploaded_by=uploaded_by,
		broadcast_id=broadcast_id,
		folder=BROADCAST_FOLDER,
		created_at=now_ms(),
	)
	row = await client.create_row(
		settings.appwrite_database_id,
		settings.appwrite_media_files_collection_id,
		unique_id(),
		media.model_dump(),
		build_permissions(account_ids),
	)
	logger.info("Media file row created: %s", row.get("$id"))
	return row["$id"]


async def create_file_access(
	client: AppwriteClient,
	settings: Settings,
	media_file_id: str,
	account_ids: list[str],
	granted_by: str | None,
) -> int:
	created = 0
	for account_id in account_ids:
		access = FileAccess(
			file_id=media_file_id,
			user_id=account_id,
			access_type=ACCESS_TYPE_READ,
			granted_by=granted_by,
			granted_at=now_ms(),
		)
		permissions = [Permission.read(Role.user(account_id)), *admin_permissions()]
		try:
			await client.create_row(
				settings.appwrite_database_id,
				settings.appwrite_file_access_collection_id,
				unique_id(),
				access.model_dump(),
				permissions,
			)
			created += 1
		except Exception as e:
			logger.warning("file_access_failed user=%s: %s", account_id, e)
	return created


async def attach_video(
	client: AppwriteClient,
	settings: Settings,
	file_id: str,
	account_ids: list[str],
	broadcast_id: str,
	admin_user_id: str | None = None,
) -> int:
	"""
	Расшаривает файл всем получателям.

	Returns:
		Количество созданных строк file access
	"""
	uploader = admin_user_id or None
	await grant_file_permissions(client, settings.appwrite_media_files_bucket_id, file_id, account_ids)
	media_file_id = await create_media_file(
		client, settings, file_id, account_ids, broadcast_id, uploader
	)
	created = await create_file_access(client, settings, media_file_id, account_ids, uploader)
	logger.info("File access granted to %d/%d users", created, len(account_ids))
	return created
