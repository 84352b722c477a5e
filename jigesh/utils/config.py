"""
Configuration management with schema validation.
Single source of truth for Jigesh settings (settings.yaml + environment).
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .exceptions import ConfigError

# Load environment variables
load_dotenv()

DEFAULT_SETTINGS_FILE = Path("config") / "settings.yaml"


class AppSettings(BaseModel):
    name: str = "Jigesh"
    version: str = "1.0.0"
    environment: str = "production"
    timezone: str = "UTC"  # calendar date used for quota rollover


class StorageSettings(BaseModel):
    data_dir: str = "data"


class QuotaSettings(BaseModel):
    daily_limit: int = Field(default=50, ge=0)


class PlanSettings(BaseModel):
    price: int = Field(ge=0)
    months: int = Field(ge=1)


def _default_plans() -> Dict[str, PlanSettings]:
    return {
        "one_month": PlanSettings(price=20, months=1),
        "three_month": PlanSettings(price=50, months=3),
    }


class AuthSettings(BaseModel):
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)
    admin_email: Optional[str] = None
    admin_secret: Optional[str] = None
    admin_name: str = "Super Admin"


class AISettings(BaseModel):
    api_key: Optional[str] = None
    model: str = "gpt-4o-mini"
    timeout: float = 30.0
    max_retries: int = 3


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: str = "json"
    file_path: Optional[str] = None
    max_bytes: int = 10485760
    backup_count: int = 5


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    quota: QuotaSettings = Field(default_factory=QuotaSettings)
    plans: Dict[str, PlanSettings] = Field(default_factory=_default_plans)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    ai: AISettings = Field(default_factory=AISettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def _substitute_env_vars(value: Any) -> Any:
    """Recursively substitute ${VAR} and ${VAR:default} expressions"""
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            var_expr = value[2:-1]
            if ":" in var_expr:
                var_name, default = var_expr.split(":", 1)
                return os.getenv(var_name.strip(), default.strip())
            env_value = os.getenv(var_expr)
            if env_value is None:
                raise ConfigError(f"Environment variable {var_expr} not found")
            return env_value
    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]
    return value


def _apply_env_overrides(settings: Settings) -> Settings:
    """Environment variables win over file values for secrets and paths"""
    data_dir = os.getenv("JIGESH_DATA_DIR")
    if data_dir:
        settings.storage.data_dir = data_dir
    if os.getenv("ADMIN_EMAIL"):
        settings.auth.admin_email = os.getenv("ADMIN_EMAIL")
    if os.getenv("ADMIN_SECRET"):
        settings.auth.admin_secret = os.getenv("ADMIN_SECRET")
    if not settings.ai.api_key and os.getenv("OPENAI_API_KEY"):
        settings.ai.api_key = os.getenv("OPENAI_API_KEY", "").strip() or None
    return settings


def load_settings(path: Optional[str] = None) -> Settings:
    """
    Load and validate settings.

    Args:
        path: Explicit settings file. Falls back to JIGESH_SETTINGS, then
            config/settings.yaml. Only an explicitly named file must exist.

    Returns:
        Validated Settings
    """
    explicit = path or os.getenv("JIGESH_SETTINGS")
    settings_path = Path(explicit) if explicit else DEFAULT_SETTINGS_FILE

    if not settings_path.exists():
        if explicit:
            raise ConfigError(f"Settings file not found: {settings_path}")
        return _apply_env_overrides(Settings())

    try:
        with open(settings_path, "r", encoding="utf-8") as f:
            raw_data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to read settings from {settings_path}: {e}")

    processed_data = _substitute_env_vars(raw_data)
    try:
        settings = Settings(**processed_data)
    except ValueError as e:
        raise ConfigError(f"Invalid settings in {settings_path}: {e}")
    return _apply_env_overrides(settings)
