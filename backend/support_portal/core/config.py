from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    app_name: str = "MS-Scooter Support Portal"
    api_prefix: str = "/v1"
    mongodb_uri: str = "mongodb://localhost:27017/scooter_support"
    redis_url: str = "redis://localhost:6379/0"
    enable_external_services: bool = False
    token_secret: str = "dev-only-change-me"
    anonymous_session_ttl_seconds: int = 7 * 24 * 60 * 60
    tab_cache_ttl_seconds: int = 12 * 60 * 60
    otp_simulated_delay_seconds: float = 0.0
    attachment_max_bytes: int = 10 * 1024 * 1024
    attachment_bucket: str = "support_attachments"
    request_max_body_bytes: int = 15 * 1024 * 1024
    cors_origins: str = "http://localhost:5173"
    log_level: str = "INFO"
    workflow_registry_limit: int = 1000

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()
        return cls(
            app_name=os.getenv("APP_NAME", defaults.app_name),
            api_prefix=os.getenv("API_PREFIX", defaults.api_prefix),
            mongodb_uri=os.getenv("MONGODB_URI", defaults.mongodb_uri),
            redis_url=os.getenv("REDIS_URL", defaults.redis_url),
            enable_external_services=_env_bool(
                "ENABLE_EXTERNAL_SERVICES", defaults.enable_external_services
            ),
            token_secret=os.getenv("TOKEN_SECRET", defaults.token_secret),
            anonymous_session_ttl_seconds=_env_int(
                "ANONYMOUS_SESSION_TTL_SECONDS", defaults.anonymous_session_ttl_seconds
            ),
            tab_cache_ttl_seconds=_env_int("TAB_CACHE_TTL_SECONDS", defaults.tab_cache_ttl_seconds),
            otp_simulated_delay_seconds=_env_float(
                "OTP_SIMULATED_DELAY_SECONDS", defaults.otp_simulated_delay_seconds
            ),
            attachment_max_bytes=_env_int("ATTACHMENT_MAX_BYTES", defaults.attachment_max_bytes),
            attachment_bucket=os.getenv("ATTACHMENT_BUCKET", defaults.attachment_bucket),
            request_max_body_bytes=_env_int("REQUEST_MAX_BODY_BYTES", defaults.request_max_body_bytes),
            cors_origins=os.getenv("CORS_ORIGINS", defaults.cors_origins),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
            workflow_registry_limit=_env_int(
                "WORKFLOW_REGISTRY_LIMIT", defaults.workflow_registry_limit
            ),
        )
