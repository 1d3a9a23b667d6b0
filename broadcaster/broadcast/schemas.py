from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")

STORAGE_SCHEME = "storage://"


class _Request(BaseModel):
	model_config = ConfigDict(populate_by_name=True, extra="ignore")


class TargetingRequest(_Request):
	target_type: Optional[str] = Field(default=None, alias="targetType")  # all | labels | users
	target_labels: Optional[list[Any]] = Field(default=None, alias="targetLabels")
	target_user_ids: Optional[list[Any]] = Field(default=None, alias="targetUserIds")


class BroadcastCreateRequest(TargetingRequest):
	text: Optional[str] = None
	priority: Optional[str] = None  # low | normal | high | urgent
	video_url: Optional[str] = Field(default=None, alias="videoUrl")
	storage_file_id: Optional[str] = Field(default=None, alias="storageFileId")
	is_active: Optional[bool] = Field(default=None, alias="isActive")
	admin_user_id: Optional[str] = Field(default=None, alias="adminUserId")


class BroadcastUpdateRequest(_Request):
	"""
	Частичное обновление. Какие поля пришли в запросе, определяется по
	model_fields_set: "поле пришло со значением null" и "поля нет" различаются.
	"""
	document_id: Optional[str] = Field(default=None, alias="documentId")
	text: Optional[str] = None
	priority: Optional[str] = None
	video_url: Optional[str] = Field(default=None, alias="videoUrl")
	storage_file_id: Optional[str] = Field(default=None, alias="storageFileId")
	is_active: Optional[bool] = Field(default=None, alias="isActive")


class BroadcastDeleteRequest(_Request):
	document_id: Optional[str] = Field(default=None, alias="documentId")


@dataclass(frozen=True)
class PlainUrl:
	url: str

	def to_field(self) -> str:
		return self.url


@dataclass(frozen=True)
class StorageReference:
	file_id: str

	def to_field(self) -> str:
		return f"{STORAGE_SCHEME}{self.file_id}"


VideoSource = Union[PlainUrl, StorageReference]


def parse_video_url(value: str | None) -> VideoSource | None:
	"""Обратное к to_field(): строка video_url -> PlainUrl / StorageReference."""
	if not value:
		return None
	if value.startswith(STORAGE_SCHEME):
		return StorageReference(value[len(STORAGE_SCHEME):])
	return PlainUrl(value)


@dataclass(frozen=True)
class Outcome(Generic[T]):
	"""Результат побочного шага (push, шаринг файла): значение или текст ошибки."""
	value: Optional[T] = None
	error: Optional[str] = None

	@property
	def ok(self) -> bool:
		return self.error is None

	@classmethod
	def success(cls, value: T) -> "Outcome[T]":
		return cls(value=value)

	@classmethod
	def failure(cls, error: str) -> "Outcome[T]":
		return cls(error=error)
