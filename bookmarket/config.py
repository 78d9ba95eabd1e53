# bookmarket/config.py
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration, read from ``BOOKMARKET_*`` variables and ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="BOOKMARKET_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
    )

    # Persistence
    backend: Literal["json", "sql"] = "json"
    data_dir: Path = Path("db")
    database_url: str = "sqlite+aiosqlite:///./bookmarket.db"

    # Uploads
    uploads_dir: Path = Path("public/uploads")
    uploads_url_prefix: str = "/uploads"
    max_upload_bytes: int = Field(default=5 * 1024 * 1024, gt=0)

    # Session cookie
    secret_key: str = "your-super-secret-jwt-key-change-in-production"
    jwt_algorithm: str = "HS256"
    cookie_name: str = "auth"
    cookie_max_age: int = 60 * 60 * 24 * 7
    cookie_secure: bool = False

    # Catalog
    catalog_page_size: int = Field(default=12, ge=1)
    my_books_page_size: int = Field(default=10, ge=1)
    strict_reads: bool = False

    log_level: str = "INFO"

    @property
    def books_file(self) -> Path:
        return self.data_dir / "books.json"

    @property
    def users_file(self) -> Path:
        return self.data_dir / "users.json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
