from pydantic import Field
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Appwrite
    appwrite_endpoint: str = "https://cloud.appwrite.io/v1"
    appwrite_function_project_id: str = ""
    appwrite_api_key: str | None = None  # если в запросе нет x-appwrite-key

    # Обязательные идентификаторы
    appwrite_database_id: str = Field(min_length=1)
    appwrite_broadcast_messages_collection_id: str = Field(min_length=1)
    appwrite_users_collection_id: str = Field(min_length=1)

    # Шаринг видео (optional)
    appwrite_media_files_collection_id: str | None = None
    appwrite_file_access_collection_id: str | None = None
    appwrite_media_files_bucket_id: str | None = None

    # App settings
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def file_sharing_enabled(self) -> bool:
        """Все три идентификатора для шаринга видео заданы."""
        return all((
            self.appwrite_media_files_collection_id,
            self.appwrite_file_access_collection_id,
            self.appwrite_media_files_bucket_id,
        ))


@lru_cache
def get_settings() -> Settings:
    return Settings()
