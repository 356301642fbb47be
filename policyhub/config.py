from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_optional(name: str) -> str | None:
    value = (os.getenv(name) or "").strip()
    return value or None


@dataclass(slots=True)
class Settings:
    app_env: str
    public_base_url: str | None

    auth_url: str | None
    auth_anon_key: str | None
    dashboard_api_url: str

    fraud_analysis_timeout: float
    http_timeout: float

    log_level: str
    debug: bool

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"


def load_settings() -> Settings:
    return Settings(
        app_env=os.getenv("APP_ENV", "development"),
        public_base_url=_env_optional("PUBLIC_BASE_URL"),
        auth_url=_env_optional("AUTH_URL"),
        auth_anon_key=_env_optional("AUTH_ANON_KEY"),
        dashboard_api_url=os.getenv("DASHBOARD_API_URL", "http://localhost:8000"),
        fraud_analysis_timeout=float(os.getenv("FRAUD_ANALYSIS_TIMEOUT", "30")),
        http_timeout=float(os.getenv("HTTP_TIMEOUT", "30")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        debug=_env_bool("DEBUG", False),
    )
