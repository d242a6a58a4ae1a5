"""
Settings Management

Pydantic-based settings schema with environment variable support.
Integrates with the TOML config and provides type-safe access.

@.architecture
Incoming: utils/config.py, Environment variables, config/profilesync.toml, app.py --- {Dict from load_toml_config, str from os.getenv, get_settings calls}
Processing: get_settings(), reload_settings(), Settings.__init__(), field_validator() --- {4 jobs: configuration_loading, environment_variable_merging, schema_validation, caching}
Outgoing: app.py, main.py, utils/http.py --- {Settings Pydantic model with typed config sections}
"""

import os
from functools import lru_cache
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from ..utils.config import load_config as load_toml_config


# =============================================================================
# Settings Schemas
# =============================================================================

class StoreSettings(BaseModel):
    """Profile store service."""
    base_url: str = "http://127.0.0.1:33331"
    timeout: float = 10.0
    max_retries: int = 3


class RuntimeSettings(BaseModel):
    """Clash external controller."""
    controller_url: str = "http://127.0.0.1:9097"
    secret: Optional[str] = None
    timeout: float = 5.0
    max_retries: int = 3

    @property
    def base_url(self) -> str:
        return self.controller_url

    def auth_headers(self) -> Dict[str, str]:
        if not self.secret:
            return {}
        return {"Authorization": f"Bearer {self.secret}"}


class SyncSettings(BaseModel):
    """Activation controller tuning."""
    reconcile_delay: float = Field(default=0.1, ge=0)
    max_notices: int = Field(default=50, gt=0)


class SecuritySettings(BaseModel):
    """Security configuration."""
    bind_host: str = "127.0.0.1"
    bind_port: int = 8766
    allowed_origins: List[str] = Field(
        default_factory=lambda: [
            "http://localhost",
            "http://127.0.0.1",
            "tauri://localhost",
        ]
    )
    cors_allow_credentials: bool = True
    cors_allow_methods: List[str] = Field(default_factory=lambda: ["*"])
    cors_allow_headers: List[str] = Field(default_factory=lambda: ["*"])


class MonitoringSettings(BaseModel):
    """Monitoring and logging configuration."""
    log_level: str = "INFO"
    log_format: str = "json"  # json|text


class Settings(BaseModel):
    """
    Main application settings.

    Loads configuration from:
    1. TOML config file (config/profilesync.toml)
    2. Environment variables
    3. Defaults defined in schemas

    Priority: Environment variables > TOML config > Defaults
    """

    app_name: str = "profilesync"
    app_version: str = "0.1.0"
    environment: str = "development"  # development|production|test
    backend: str = "http"  # http|memory

    store: StoreSettings = Field(default_factory=StoreSettings)
    runtime: RuntimeSettings = Field(default_factory=RuntimeSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator('environment')
    @classmethod
    def validate_environment(cls, v: str) -> str:
        allowed = ['development', 'production', 'test']
        if v not in allowed:
            raise ValueError(f"Environment must be one of {allowed}")
        return v

    @field_validator('backend')
    @classmethod
    def validate_backend(cls, v: str) -> str:
        allowed = ['http', 'memory']
        if v not in allowed:
            raise ValueError(f"Backend must be one of {allowed}")
        return v


# =============================================================================
# Settings Loader
# =============================================================================

def _section(toml_config: Dict[str, Any], name: str) -> Dict[str, Any]:
    return dict(toml_config.get(name, {}))


@lru_cache()
def get_settings() -> Settings:
    """
    Load and return application settings (cached).

    Returns:
        Settings: Complete application settings
    """
    toml_config = load_toml_config()

    store = _section(toml_config, "STORE")
    runtime = _section(toml_config, "RUNTIME")
    sync = _section(toml_config, "SYNC")
    monitoring: Dict[str, Any] = {}

    settings_dict: Dict[str, Any] = {
        "environment": os.getenv("PROFILESYNC_ENVIRONMENT", "development"),
        "backend": os.getenv(
            "PROFILESYNC_BACKEND",
            toml_config.get("APP", {}).get("backend", "http"),
        ),
    }

    # Override with environment variables if present
    if store_url := os.getenv("STORE_BASE_URL"):
        store["base_url"] = store_url

    if controller_url := os.getenv("RUNTIME_CONTROLLER_URL"):
        runtime["controller_url"] = controller_url

    if secret := os.getenv("RUNTIME_SECRET"):
        runtime["secret"] = secret

    if reconcile_delay := os.getenv("SYNC_RECONCILE_DELAY"):
        sync["reconcile_delay"] = float(reconcile_delay)

    if log_level := os.getenv("MONITORING_LOG_LEVEL"):
        monitoring["log_level"] = log_level

    if log_format := os.getenv("MONITORING_LOG_FORMAT"):
        monitoring["log_format"] = log_format

    if not runtime.get("secret"):
        runtime.pop("secret", None)

    settings_dict["store"] = store
    settings_dict["runtime"] = runtime
    settings_dict["sync"] = sync
    settings_dict["monitoring"] = monitoring

    return Settings(**settings_dict)


def reload_settings() -> Settings:
    """
    Reload settings (clears cache).

    Returns:
        Settings: Reloaded application settings
    """
    get_settings.cache_clear()
    return get_settings()


