import os
from functools import lru_cache
from typing import Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: Optional[str] = Field(None, alias="ENROLLMENT_DATABASE_URL")
    database_pool_size: int = Field(10, alias="ENROLLMENT_DATABASE_POOL_SIZE")
    database_max_overflow: int = Field(10, alias="ENROLLMENT_DATABASE_MAX_OVERFLOW")
    database_echo: bool = Field(False, alias="ENROLLMENT_DATABASE_ECHO")
    log_level: str = Field("INFO", alias="ENROLLMENT_LOG_LEVEL")
    migration_timeout_seconds: int = Field(60, ge=0, alias="ENROLLMENT_MIGRATION_TIMEOUT_SECONDS")
    migration_poll_interval: float = Field(3.0, gt=0, alias="ENROLLMENT_MIGRATION_POLL_INTERVAL")
    placeholder_email_domain: str = Field("students.local", alias="ENROLLMENT_PLACEHOLDER_EMAIL_DOMAIN")
    import_max_workers: int = Field(1, ge=1, alias="ENROLLMENT_IMPORT_MAX_WORKERS")
    import_timeout_seconds: Optional[float] = Field(None, gt=0, alias="ENROLLMENT_IMPORT_TIMEOUT_SECONDS")
    import_header_rows: int = Field(1, ge=1, alias="ENROLLMENT_IMPORT_HEADER_ROWS")
    import_max_upload_bytes: int = Field(10 * 1024 * 1024, alias="ENROLLMENT_IMPORT_MAX_UPLOAD_BYTES")

    class Config:
        env_file = os.getenv("ENV_FILE", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()  # type: ignore[arg-type]
    except ValidationError as exc:
        raise RuntimeError(f"Invalid enrollment import configuration: {exc}") from exc
