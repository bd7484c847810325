from __future__ import annotations

import os
import secrets
from typing import Any

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, field_validator

from tasktrack.logging import get_logger

logger = get_logger(__name__)

DEFAULT_ADMIN_EMAIL = "admin@example.com"
DEFAULT_ADMIN_PASSWORD = "admin123"

_MIN_SECRET_LENGTH = 32


def env_field(default: Any, env: str, **kwargs):
    extra = kwargs.pop("json_schema_extra", {}) or {}
    extra = {**extra, "env": env}
    return Field(default, json_schema_extra=extra, **kwargs)


class Settings(BaseModel):
    """Runtime settings read from the environment (and an optional ``.env``)."""

    app_name: str = env_field("tasktrack", "APP_NAME")
    jwt_secret: str = env_field(
        None,
        "JWT_SECRET",
        validate_default=True,
        description="HMAC key for session tokens; generated per process when unset",
    )
    token_ttl_hours: int = env_field(
        24, "TOKEN_TTL_HOURS", ge=1, description="Session token validity window"
    )
    password_hash_time_cost: int = env_field(3, "PASSWORD_HASH_TIME_COST", ge=1)
    password_hash_memory_cost: int = env_field(
        65536, "PASSWORD_HASH_MEMORY_COST", ge=8, description="argon2 memory cost in KiB"
    )
    password_hash_parallelism: int = env_field(4, "PASSWORD_HASH_PARALLELISM", ge=1)
    # Demo administrator seeded at startup; override before any real deployment
    admin_email: str = env_field(DEFAULT_ADMIN_EMAIL, "ADMIN_EMAIL")
    admin_password: str = env_field(DEFAULT_ADMIN_PASSWORD, "ADMIN_PASSWORD")
    admin_full_name: str = env_field("Admin User", "ADMIN_FULL_NAME")
    cors_allow_origins: list[str] = env_field(
        [
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5173",
        ],
        "CORS_ALLOW_ORIGINS",
    )

    model_config = ConfigDict(extra="ignore")

    @classmethod
    def from_env(cls) -> "Settings":
        env_file_values = dotenv_values(".env")
        merged: dict[str, str] = {}
        for name, field in cls.model_fields.items():
            extra = field.json_schema_extra or {}
            env_key = extra.get("env") if isinstance(extra, dict) else None
            env_name = env_key or name.upper()
            if env_name in os.environ:
                merged[name] = os.environ[env_name]
            elif env_name in env_file_values:
                merged[name] = env_file_values[env_name]
        return cls(**merged)

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("admin_email")
    @classmethod
    def _normalize_admin_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("jwt_secret", mode="before")
    @classmethod
    def _ensure_jwt_secret(cls, value: str | None) -> str:
        if value:
            if len(value) < _MIN_SECRET_LENGTH:
                logger.warning(
                    "jwt_secret_short",
                    length=len(value),
                    minimum=_MIN_SECRET_LENGTH,
                )
            return value
        # Tokens only need to outlive the in-memory store, which dies with the process
        logger.warning(
            "jwt_secret_generated",
            message="JWT_SECRET not set; issued tokens become invalid on restart",
        )
        return secrets.token_urlsafe(64)

    @property
    def uses_default_admin_password(self) -> bool:
        return self.admin_password == DEFAULT_ADMIN_PASSWORD


def get_settings() -> Settings:
    global _settings_cache
    if _settings_cache is None:
        _settings_cache = Settings.from_env()
    return _settings_cache


_settings_cache: Settings | None = None


def reset_settings_cache() -> None:
    """Clear cached settings so future calls re-read the environment."""

    global _settings_cache
    _settings_cache = None
