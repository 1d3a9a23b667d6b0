import logging

from broadcaster.config import Settings
from broadcaster.db import AppwriteClient, Query
from .errors import BroadcastValidationError
from .schemas import TargetingRequest

logger = logging.getLogger(__name__)

USERS_PAGE_SIZE = 100

TARGET_ALL = "all"
TARGET_LABELS = "labels"
TARGET_USERS = "users"


async def fetch_all_users(client: AppwriteClient, settings: Settings) -> list[dict]:
	"""Все строки таблицы пользователей, постранично, пока страница полная."""
	users: list[dict] = []
	offset = 0
	while True:
		page = await client.list_rows(
			settings.appwrite_database_id,
			settings.appwrite_users_collection_id,
			[Query.limit(USERS_PAGE_SIZE), Query.offset(offset)],
		)
		users.extend(page)
		if len(page) != USERS_PAGE_SIZE:
			return users
		offset += USERS_PAGE_SIZE


def _account_id(user: dict) -> str | None:
	# Account-ID лежит в поле `id` документа, а не в `$id`
	account_id = user.get("id")
	if isinstance(account_id, str) and account_id:
		return account_id
	return None


def _normalize_labels(values: list | None) -> set[str]:
	labels = (str(v).strip().lower() for v in values or [])
	return {label for label in labels if label}


async def resolve_target_account_ids(
	client: AppwriteClient,
	settings: Settings,
	data: TargetingRequest,
) -> list[str]:
	target_type = (data.target_type or "").strip().lower() or TARGET_ALL

	if target_type == TARGET_USERS:
		ids = [str(v).strip() for v in data.target_user_ids or []]
		ids = [i for i in ids if i]
		if not ids:
			raise BroadcastValidationError('targetUserIds must not be empty when targetType is "users"')
		logger.info("Target: %d specific users", len(ids))
		return ids

	if target_type == TARGET_LABELS:
		wanted = _normalize_labels(data.target_labels)
		if not wanted:
			raise BroadcastValidationError('targetLabels must not be empty when targetType is "labels"')

		users = await fetch_all_users(client, settings)
		logger.info("Fetched %d total users, filtering by labels: %s", len(users), ", ".join(sorted(wanted)))

		matching: list[str] = []
		for user in users:
			labels = user.get("labels")
			if not isinstance(labels, list):
				continue
			user_labels = {str(label).lower() for label in labels}
			if not user_labels & wanted:
				continue
			account_id = _account_id(user)
			if account_id:
				matching.append(account_id)

		logger.info("Found %d users matching labels", len(matching))
		return matching

	users = await fetch_all_users(client, settings)
	logger.info("Target: ALL users (%d fetched)", len(users))
	return [account_id for account_id in map(_account_id, users) if account_id]
