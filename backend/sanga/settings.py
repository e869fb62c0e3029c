"""Settings for the Sanga connections backend."""

from __future__ import annotations

from typing import Any, Optional, Tuple

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_field(default, *env_names: str):
    if env_names:
        alias = AliasChoices(*env_names) if len(env_names) > 1 else env_names[0]
        return Field(default=default, validation_alias=alias)
    return Field(default=default)


class Settings(BaseSettings):
    redis_url: str = _env_field("redis://localhost:6379/0", "REDIS_URL")
    # "redis" persists documents in Redis; "memory" keeps them in-process (local tools only)
    store_backend: str = _env_field("redis", "STORE_BACKEND")
    store_namespace: str = _env_field("sanga", "STORE_NAMESPACE")
    secret_key: str = _env_field("change-me", "SECRET_KEY")

    # Notifications older than this are never surfaced and get purged
    notification_retention_hours: int = _env_field(24, "NOTIFICATION_RETENTION_HOURS")
    notification_sweep_enabled: bool = _env_field(True, "NOTIFICATION_SWEEP_ENABLED")
    notification_sweep_interval_minutes: int = _env_field(60, "NOTIFICATION_SWEEP_INTERVAL_MINUTES")

    connection_requests_per_minute: int = _env_field(15, "CONNECTION_REQUESTS_PER_MINUTE")
    connection_requests_per_day: int = _env_field(200, "CONNECTION_REQUESTS_PER_DAY")
    rate_limits_enabled: bool = _env_field(True, "RATE_LIMITS_ENABLED")

    environment: str = _env_field("production", "ENV", "APP_ENV", "ENVIRONMENT")
    obs_enabled: bool = _env_field(True, "OBS_ENABLED")
    obs_metrics_public: bool = _env_field(False, "OBS_METRICS_PUBLIC")
    obs_log_level: str = _env_field("INFO", "LOG_LEVEL")
    obs_log_sampling_rate_info: float = _env_field(1.0, "LOG_SAMPLING_RATE_INFO")
    obs_admin_token: Optional[str] = _env_field(None, "OBS_ADMIN_TOKEN")
    service_name: str = _env_field("sanga-api", "SERVICE_NAME")
    git_commit: str = _env_field("unknown", "GIT_COMMIT", "COMMIT_SHA", "SOURCE_VERSION")

    cors_allow_origins: Any = _env_field((), "CORS_ALLOW_ORIGINS")
    access_ttl_minutes: int = _env_field(60, "ACCESS_TTL_MINUTES")

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        case_sensitive=False,
        env_nested_delimiter="__",
    )

    # Environment helpers
    def is_prod(self) -> bool:
        return self.environment.lower() in ("prod", "production", "live")

    def is_dev(self) -> bool:
        return self.environment.lower() in ("dev", "development")

    @field_validator("cors_allow_origins", mode="before")
    def _split_cors(cls, value):  # type: ignore[override]
        if value in (None, ""):
            return ()
        if isinstance(value, str):
            return tuple(part.strip() for part in value.split(",") if part.strip())
        if isinstance(value, (list, tuple, set)):
            return tuple(str(item).strip() for item in value if str(item).strip())
        return ()

    @field_validator("store_backend", mode="before")
    def _normalise_backend(cls, value):  # type: ignore[override]
        text = str(value or "redis").strip().lower()
        if text not in ("redis", "memory"):
            raise ValueError(f"unsupported store backend: {value}")
        return text


def _normalise_level(level: str) -> str:
    return level.upper()


settings = Settings()
settings.obs_log_level = _normalise_level(settings.obs_log_level)


def allowed_origins() -> Tuple[str, ...]:
    origins = tuple(getattr(settings, "cors_allow_origins", ()) or ())
    if origins and "*" not in origins:
        return origins
    if settings.is_dev():
        return ("http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:5173")
    return ("https://app.sadhana-sanga.example",)
