"""
Service configuration.

This module centralizes every setting the Task API reads from the environment,
providing a single source of truth for the database endpoint, the connection
pool, the HTTP listener and request handling behaviour.

Environment Variables:
    FREELAGO_USER: Atlas database user (default: '')
    FREELAGO_PASSWORD: Atlas database password (default: '')
    FREELAGO_CLUSTER_HOST: Atlas cluster host (default: 'simple-crud-server.a0arf8b.mongodb.net')
    FREELAGO_APP_NAME: appName query option sent to the cluster (default: 'simple-crud-server')
    MONGODB_URI: Full connection string; overrides the four settings above
    FREELAGO_DB_NAME: Target database (default: 'freelagoDB')
    FREELAGO_COLLECTION: Target collection (default: 'tasks')
    MONGO_MAX_POOL_SIZE: Upper bound on pooled connections (default: 10)
    MONGO_SERVER_SELECTION_TIMEOUT_MS: Driver server selection timeout (default: 5000)
    MONGO_STRICT: Stable API strict flag (default: 'true')
    MONGO_DEPRECATION_ERRORS: Stable API deprecationErrors flag (default: 'true')
    FREELAGO_STORAGE_BACKEND: 'mongo' or 'memory' (default: 'mongo')
    FREELAGO_STRICT_PAYLOADS: Validate request bodies (default: 'false')
    FREELAGO_ENV / NODE_ENV: 'production' disables the local listener (default: 'development')
    HOST: Listener address (default: '0.0.0.0')
    PORT: Listener port (default: 3000)
    CORS_ALLOW_ORIGINS: Comma separated origins (default: '*')
    LOG_LEVEL: Logging level (default: 'INFO')
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Literal
from urllib.parse import quote_plus


def get_env_setting(key: str, default: str) -> str:
    return os.getenv(key, default)


def get_env_int_setting(key: str, default: int) -> int:
    try:
        return int(os.getenv(key, str(default)))
    except (ValueError, TypeError):
        return default


def get_env_bool_setting(key: str, default: bool) -> bool:
    value = os.getenv(key, str(default)).lower()
    return value in ("true", "1", "yes", "on")


def _env(key: str, default: str):
    return field(default_factory=lambda: get_env_setting(key, default))


def _env_int(key: str, default: int):
    return field(default_factory=lambda: get_env_int_setting(key, default))


def _env_bool(key: str, default: bool):
    return field(default_factory=lambda: get_env_bool_setting(key, default))


def _deployment_env() -> str:
    return (os.getenv("FREELAGO_ENV") or os.getenv("NODE_ENV") or "development").strip().lower()


@dataclass(frozen=True)
class AppConfig:
    """Centralized configuration for the Task API service."""

    # Database endpoint
    db_user: str = _env("FREELAGO_USER", "")
    db_password: str = _env("FREELAGO_PASSWORD", "")
    cluster_host: str = _env("FREELAGO_CLUSTER_HOST", "simple-crud-server.a0arf8b.mongodb.net")
    app_name: str = _env("FREELAGO_APP_NAME", "simple-crud-server")
    mongodb_uri_override: str = _env("MONGODB_URI", "")

    # Target namespace
    db_name: str = _env("FREELAGO_DB_NAME", "freelagoDB")
    collection_name: str = _env("FREELAGO_COLLECTION", "tasks")

    # Pool / driver
    max_pool_size: int = _env_int("MONGO_MAX_POOL_SIZE", 10)
    server_selection_timeout_ms: int = _env_int("MONGO_SERVER_SELECTION_TIMEOUT_MS", 5000)
    server_api_strict: bool = _env_bool("MONGO_STRICT", True)
    server_api_deprecation_errors: bool = _env_bool("MONGO_DEPRECATION_ERRORS", True)

    # Behaviour
    storage_backend: Literal["mongo", "memory"] = _env("FREELAGO_STORAGE_BACKEND", "mongo")
    strict_payloads: bool = _env_bool("FREELAGO_STRICT_PAYLOADS", False)
    environment: str = field(default_factory=_deployment_env)

    # HTTP listener
    host: str = _env("HOST", "0.0.0.0")
    port: int = _env_int("PORT", 3000)
    cors_allow_origins: str = _env("CORS_ALLOW_ORIGINS", "*")

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    @property
    def is_production(self) -> bool:
        """Production mode hands the ASGI app to a host instead of listening locally."""
        return self.environment == "production"

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]

    @property
    def mongodb_uri(self) -> str:
        if self.mongodb_uri_override.strip():
            return self.mongodb_uri_override.strip()
        return self._build_uri(self.db_password)

    @property
    def redacted_uri(self) -> str:
        """Connection string safe for logs."""
        if self.mongodb_uri_override.strip():
            return "<MONGODB_URI>"
        return self._build_uri("****" if self.db_password else "")

    def _build_uri(self, password: str) -> str:
        user = quote_plus(self.db_user)
        secret = password if password == "****" else quote_plus(password)
        return f"mongodb+srv://{user}:{secret}@{self.cluster_host}/?appName={self.app_name}"

    def validate(self) -> None:
        """Validate configuration values."""
        if self.storage_backend not in ("mongo", "memory"):
            raise ValueError("FREELAGO_STORAGE_BACKEND must be 'mongo' or 'memory'")
        if self.max_pool_size <= 0:
            raise ValueError("MONGO_MAX_POOL_SIZE must be positive")
        if self.server_selection_timeout_ms <= 0:
            raise ValueError("MONGO_SERVER_SELECTION_TIMEOUT_MS must be positive")
        if not 0 < self.port < 65536:
            raise ValueError("PORT must be between 1 and 65535")
        if not self.db_name:
            raise ValueError("FREELAGO_DB_NAME must not be empty")
        if not self.collection_name:
            raise ValueError("FREELAGO_COLLECTION must not be empty")


_CONFIG: AppConfig | None = None


def get_app_config() -> AppConfig:
    """Get the process-wide configuration, reading the environment on first use."""
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = AppConfig()
        _CONFIG.validate()
    return _CONFIG


def reload_config() -> AppConfig:
    """Reload configuration from environment variables."""
    global _CONFIG
    _CONFIG = AppConfig()
    _CONFIG.validate()
    return _CONFIG
