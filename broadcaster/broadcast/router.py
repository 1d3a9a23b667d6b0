import json
import logging
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from broadcaster.config import get_settings
from broadcaster.db import AppwriteClient
from broadcaster.dependencies import get_appwrite_client
from .errors import BroadcastValidationError
from .schemas import BroadcastCreateRequest, BroadcastDeleteRequest, BroadcastUpdateRequest
from .service import create_broadcast, delete_broadcast, update_broadcast

router = APIRouter(tags=["broadcast"])
logger = logging.getLogger(__name__)


def _error(message: str, status_code: int) -> JSONResponse:
	return JSONResponse({"ok": False, "error": message}, status_code=status_code)


def _describe(exc: ValidationError) -> str:
	err = exc.errors()[0]
	field = ".".join(str(part) for part in err.get("loc", ())) or "body"
	return f'Invalid field "{field}": {err.get("msg")}'


async def _read_body(request: Request) -> dict:
	raw = await request.body()
	if not raw.strip():
		return {}
	try:
		body = json.loads(raw)
	except ValueError:
		raise BroadcastValidationError("Request body must be valid JSON")
	if not isinstance(body, dict):
		raise BroadcastValidationError("Request body must be a JSON object")
	return body


@router.post("/")
async def handle_broadcast(
	request: Request,
	client: AppwriteClient = Depends(get_appwrite_client),
):
	settings = get_settings()
	try:
		body = await _read_body(request)
		action = str(body.get("action") or "").strip().lower()
		if not action:
			return _error('"action" is required', status.HTTP_400_BAD_REQUEST)

		logger.info("Action: %s", action)
		if action == "create":
			result = await create_broadcast(client, settings, BroadcastCreateRequest.model_validate(body))
		elif action == "update":
			result = await update_broadcast(client, settings, BroadcastUpdateRequest.model_validate(body))
		elif action == "delete":
			result = await delete_broadcast(client, settings, BroadcastDeleteRequest.model_validate(body))
		else:
			return _error(f'Unknown action "{action}"', status.HTTP_400_BAD_REQUEST)
		return JSONResponse(result)
	except BroadcastValidationError as e:
		logger.info("Rejected request: %s", e)
		return _error(str(e), status.HTTP_400_BAD_REQUEST)
	except ValidationError as e:
		logger.info("Rejected request: %s", e)
		return _error(_describe(e), status.HTTP_400_BAD_REQUEST)
	except Exception as e:
		logger.exception("broadcast_request_failed")
		return _error(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.api_route("/", methods=["GET", "HEAD", "PUT", "PATCH", "DELETE", "OPTIONS"], include_in_schema=False)
async def method_not_allowed(request: Request):
	logger.info("Invalid request method: %s", request.method)
	return _error("invalid request", status.HTTP_405_METHOD_NOT_ALLOWED)
