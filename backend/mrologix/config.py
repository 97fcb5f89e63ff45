"""
Configuration management for the MRO Logix back office.

Settings come from environment variables (a local ``.env`` file is loaded
when present) and are grouped into frozen dataclasses so the rest of the
code never reads ``os.environ`` directly.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class DatabaseConfig:
    """Relational store settings."""
    url: str = field(default_factory=lambda: os.getenv("DATABASE_URL", "sqlite:///./mrologix.db"))
    echo: bool = field(default_factory=lambda: os.getenv("DATABASE_ECHO", "").lower() in {"1", "true", "yes"})

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def engine_options(self) -> dict:
        if self.is_sqlite:
            return {"connect_args": {"check_same_thread": False, "timeout": 30}, "echo": self.echo}
        return {"pool_pre_ping": True, "echo": self.echo}


@dataclass(frozen=True)
class AuthConfig:
    """JWT cookie settings."""
    secret: str = field(default_factory=lambda: os.getenv("JWT_SECRET", "fallback-secret-key"))
    algorithm: str = "HS256"
    expire_days: int = field(default_factory=lambda: int(os.getenv("JWT_EXPIRE_DAYS", "7")))
    cookie_name: str = "token"
    secure_cookie: bool = field(default_factory=lambda: os.getenv("ENVIRONMENT") == "production")

    @property
    def max_age_seconds(self) -> int:
        return self.expire_days * 24 * 60 * 60


@dataclass(frozen=True)
class StorageConfig:
    """Object storage settings; without MinIO credentials files go to disk."""
    endpoint: str = field(default_factory=lambda: os.getenv("MINIO_ENDPOINT", "").strip())
    access_key: Optional[str] = field(default_factory=lambda: os.getenv("MINIO_ACCESS_KEY") or None)
    secret_key: Optional[str] = field(default_factory=lambda: os.getenv("MINIO_SECRET_KEY") or None)
    bucket: str = field(default_factory=lambda: os.getenv("MINIO_BUCKET", "mro-logix"))
    upload_dir: str = field(default_factory=lambda: os.getenv("UPLOAD_DIR", "uploaded_files"))
    max_upload_bytes: int = 250 * 1024 * 1024

    @property
    def uses_object_store(self) -> bool:
        return bool(self.endpoint and self.access_key and self.secret_key)


@dataclass(frozen=True)
class MailConfig:
    """Outbound SMTP settings."""
    host: str = field(default_factory=lambda: os.getenv("EMAIL_SERVER_HOST", "smtp.hostinger.com"))
    port: int = field(default_factory=lambda: int(os.getenv("EMAIL_SERVER_PORT", "465")))
    username: Optional[str] = field(default_factory=lambda: os.getenv("EMAIL_SERVER_USER") or None)
    password: Optional[str] = field(default_factory=lambda: os.getenv("EMAIL_SERVER_PASSWORD") or None)
    sender: str = field(default_factory=lambda: os.getenv("EMAIL_FROM", "no-reply@mro-logix.com"))


@dataclass(frozen=True)
class PinConfig:
    """Email verification PIN policy."""
    length: int = 6
    ttl_minutes: int = 5


@dataclass(frozen=True)
class Settings:
    """Top-level application settings."""
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    mail: MailConfig = field(default_factory=MailConfig)
    pin: PinConfig = field(default_factory=PinConfig)
    search_page_size: int = field(default_factory=lambda: int(os.getenv("SEARCH_PAGE_SIZE", "10")))
    sentry_dsn: Optional[str] = field(default_factory=lambda: os.getenv("SENTRY_DSN") or None)
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    testing: bool = field(default_factory=lambda: os.getenv("TESTING") == "1")
    cors_origins: tuple = ("http://localhost:3000", "http://127.0.0.1:3000")


settings = Settings()
