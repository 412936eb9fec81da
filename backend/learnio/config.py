import os
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    auth_base_url: str = Field(
        "http://127.0.0.1:54321/functions/v1/make-server-c392be1f",
        alias="LEARNIO_AUTH_URL",
    )
    auth_api_key: Optional[str] = Field(None, alias="LEARNIO_AUTH_API_KEY")
    auth_timeout_ms: int = Field(8000, ge=100, alias="LEARNIO_AUTH_TIMEOUT_MS")
    storage_mode: Literal["file", "database"] = Field("file", alias="LEARNIO_STORAGE_MODE")
    data_dir: Path = Field(Path("data"), alias="LEARNIO_DATA_DIR")
    database_url: Optional[str] = Field(None, alias="LEARNIO_DATABASE_URL")
    database_echo: bool = Field(False, alias="LEARNIO_DATABASE_ECHO")
    default_language: Literal["en", "hi", "or"] = Field("en", alias="LEARNIO_DEFAULT_LANGUAGE")
    demo_roster_path: Optional[Path] = Field(None, alias="LEARNIO_DEMO_ROSTER_PATH")
    catalogue_path: Optional[Path] = Field(None, alias="LEARNIO_CATALOGUE_PATH")

    class Config:
        env_file = os.getenv("ENV_FILE", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True

    @property
    def auth_timeout_seconds(self) -> float:
        return self.auth_timeout_ms / 1000


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()  # type: ignore[call-arg]
    except ValidationError as exc:
        raise RuntimeError(f"Invalid client configuration: {exc}") from exc
