import logging

from broadcaster.config import Settings
from broadcaster.db import AppwriteClient, unique_id
from broadcaster.db.models import BroadcastMessage, row_snapshot
from broadcaster.utils import now_ms, truncate
from .attachments import attach_video
from .errors import BroadcastValidationError
from .permissions import build_permissions
from .schemas import (
	BroadcastCreateRequest,
	BroadcastDeleteRequest,
	BroadcastUpdateRequest,
	Outcome,
	PlainUrl,
	StorageReference,
	VideoSource,
)
from .targets import resolve_target_account_ids

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = "normal"
WARNING_PRIORITIES = ("URGENT", "HIGH")


def normalize_priority(value: str | None) -> str:
	if value is None:
		return DEFAULT_PRIORITY.upper()
	return value.strip().upper()


def push_title(priority: str) -> str:
	if priority in WARNING_PRIORITIES:
		return f"⚠️ Broadcast: {priority}"
	return "📢 Broadcast"


def _video_source(video_url: str | None, storage_file_id: str | None) -> VideoSource | None:
	file_id = (storage_file_id or "").strip()
	if file_id:
		return StorageReference(file_id)
	url = (video_url or "").strip()
	if url:
		return PlainUrl(url)
	return None


async def send_broadcast_push(
	client: AppwriteClient,
	broadcast_id: str,
	text: str,
	priority: str,
	account_ids: list[str],
) -> Outcome[str]:
	try:
		logger.info("Sending push notification to %d users", len(account_ids))
		message = await client.create_push(
			message_id=unique_id(),
			title=push_title(priority),
			body=truncate(text),
			users=account_ids,
			data={
				"type": "broadcast",
				"broadcastId": broadcast_id,
				"priority": priority,
			},
		)
	except Exception as e:
		logger.warning("Push notification failed: %s", e)
		return Outcome.failure(str(e))
	logger.info("Push notification sent: %s (status: %s)", message.get("$id"), message.get("status"))
	return Outcome.success(message.get("$id") or "")


async def _attach_video_safely(
	client: AppwriteClient,
	settings: Settings,
	file_id: str,
	account_ids: list[str],
	broadcast_id: str,
	admin_user_id: str | None,
) -> Outcome[int]:
	try:
		count = await attach_video(client, settings, file_id, account_ids, broadcast_id, admin_user_id)
	except Exception as e:
		logger.warning("File attach failed for %s: %s", file_id, e)
		return Outcome.failure(str(e))
	return Outcome.success(count)


async def create_broadcast(
	client: AppwriteClient,
	settings: Settings,
	data: BroadcastCreateRequest,
) -> dict:
	text = (data.text or "").strip()
	if not text:
		raise BroadcastValidationError('"text" is required for create')

	account_ids = await resolve_target_account_ids(client, settings, data)
	if not account_ids:
		raise BroadcastValidationError("No target users found")
	logger.info("Resolved %d target account IDs", len(account_ids))

	priority = normalize_priority(data.priority)
	is_active = True if data.is_active is None else data.is_active
	video = _video_source(data.video_url, data.storage_file_id)

	message = BroadcastMessage(
		id=unique_id(),
		text=text,
		priority=priority,
		video_url=video.to_field() if video else None,
		created_at=now_ms(),
		is_active=is_active,
	)
	row_id = unique_id()
	logger.info("Creating broadcast (priority: %s, docId: %s)", priority, row_id)

	row = await client.create_row(
		settings.appwrite_database_id,
		settings.appwrite_broadcast_messages_collection_id,
		row_id,
		message.model_dump(exclude_none=True),
		build_permissions(account_ids),
	)
	broadcast_id = row.get("$id") or row_id
	logger.info("Broadcast created: %s", broadcast_id)

	push: Outcome[str] | None = None
	if is_active:
		push = await send_broadcast_push(client, broadcast_id, text, priority, account_ids)

	attachment: Outcome[int] | None = None
	if isinstance(video, StorageReference):
		if settings.file_sharing_enabled:
			attachment = await _attach_video_safely(
				client, settings, video.file_id, account_ids, broadcast_id, data.admin_user_id
			)
		else:
			logger.info("File sharing is not configured, skipping attachment of %s", video.file_id)

	push = push or Outcome.success("")
	pushed = is_active and push.ok
	return {
		"ok": True,
		"result": "Broadcast created",
		"document": row_snapshot(row),
		"targetCount": len(account_ids),
		"pushSent": len(account_ids) if pushed else 0,
		"pushError": push.error or "",
		"fileAttached": attachment is not None and attachment.ok,
		"fileAccessCount": (attachment.value or 0) if attachment is not None else 0,
		"fileAttachError": (attachment.error or "") if attachment is not None else "",
	}


def build_update_payload(data: BroadcastUpdateRequest) -> dict:
	"""Только поля, пришедшие в запросе. storageFileId применяется после videoUrl."""
	present = data.model_fields_set
	payload: dict = {}

	if "text" in present:
		payload["text"] = (data.text or "").strip()
	if "priority" in present:
		payload["priority"] = normalize_priority(data.priority)
	if "video_url" in present:
		payload["video_url"] = PlainUrl(data.video_url).to_field() if data.video_url is not None else None
	if "storage_file_id" in present and (data.storage_file_id or "").strip():
		payload["video_url"] = StorageReference(data.storage_file_id.strip()).to_field()
	if "is_active" in present:
		payload["is_active"] = True if data.is_active is None else data.is_active

	return payload


async def update_broadcast(
	client: AppwriteClient,
	settings: Settings,
	data: BroadcastUpdateRequest,
) -> dict:
	document_id = (data.document_id or "").strip()
	if not document_id:
		raise BroadcastValidationError('"documentId" is required for update')

	payload = build_update_payload(data)
	if not payload:
		raise BroadcastValidationError("No fields to update")

	logger.info("Updating broadcast %s with %s", document_id, ", ".join(payload))
	row = await client.update_row(
		settings.appwrite_database_id,
		settings.appwrite_broadcast_messages_collection_id,
		document_id,
		payload,
	)
	logger.info("Broadcast updated: %s", row.get("$id"))

	return {
		"ok": True,
		"result": "Broadcast updated",
		"document": row_snapshot(row),
	}


async def delete_broadcast(
	client: AppwriteClient,
	settings: Settings,
	data: BroadcastDeleteRequest,
) -> dict:
	document_id = (data.document_id or "").strip()
	if not document_id:
		raise BroadcastValidationError('"documentId" is required for delete')

	logger.info("Deleting broadcast %s", document_id)
	await client.delete_row(
		settings.appwrite_database_id,
		settings.appwrite_broadcast_messages_collection_id,
		document_id,
	)
	logger.info("Broadcast deleted: %s", document_id)

	return {
		"ok": True,
		"result": f"Broadcast {document_id} deleted",
	}
