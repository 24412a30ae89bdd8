from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_name: str = "number-window-api"
    log_level: str = "INFO"

    cors_allow_origins: list[str] = ["*"]
    cors_allow_methods: list[str] = ["GET"]
    cors_allow_headers: list[str] = ["*"]

    default_window_size: int = 10

    numbers_source: Literal["upstream", "static"] = "upstream"
    upstream_base_url: str = "http://20.244.56.144/evaluation-service"
    upstream_timeout_seconds: float = 0.5
    upstream_bearer_token: str | None = None
    upstream_fallback_enabled: bool = False
    upstream_circuit_failure_threshold: int = 5
    upstream_circuit_recovery_seconds: int = 15

    request_timeout_seconds: float = 5.0

    rate_limit_enabled: bool = True
    rate_limit_window_seconds: int = 60
    rate_limit_default_requests: int = 120
    rate_limit_numbers_requests: int = 600
    trust_forwarded_for: bool = False

    metrics_enabled: bool = True


@lru_cache
def get_settings() -> Settings:
    return Settings()
