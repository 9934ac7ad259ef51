"""Configuration loading and validation."""

from __future__ import annotations

import os
import re
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigError

DEFAULT_CONFIG_PATH = "~/.asset-recovery/config.yaml"

DEFAULT_DUPLICABLE_FIELDS = [
    "specifications",
    "technical_specifications",
    "tags",
    "category_tag",
    "supplier_context",
    "source_text",
    "quantity",
    "priority",
    "estimated_cost_range",
]


class DocumentConfig(BaseModel):
    array_keys: list[str] = Field(default_factory=lambda: ["assets"])
    primary_key: str = "asset_name"
    max_category_tags: int = 4


class FallbackConfig(BaseModel):
    enabled: bool = True
    max_span_chars: int = 20000  # Upper bound on one regex-matched object span


class RecoveryConfig(BaseModel):
    document: DocumentConfig = Field(default_factory=DocumentConfig)
    fallback: FallbackConfig = Field(default_factory=FallbackConfig)
    # Field names whose repeated occurrences inside one object keep only the last
    duplicable_fields: list[str] = Field(
        default_factory=lambda: list(DEFAULT_DUPLICABLE_FIELDS)
    )
    log_preview_chars: int = 300


class AppConfig(BaseModel):
    recovery: RecoveryConfig = Field(default_factory=RecoveryConfig)
    log_level: str = "WARNING"


def _interpolate_env_vars(text: str) -> str:
    """Replace ${VAR_NAME} with environment variable values."""

    def replacer(match: re.Match) -> str:
        var_name = match.group(1)
        return os.environ.get(var_name, "")

    return re.sub(r"\$\{(\w+)\}", replacer, text)


def _split_env_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _config_from_env() -> AppConfig:
    """Build config from environment variables (for container deployment).

    Falls back to sane defaults when env vars are not set.
    """
    document = DocumentConfig()
    array_keys = os.environ.get("ASSET_RECOVERY_ARRAY_KEYS", "")
    if array_keys:
        document.array_keys = _split_env_list(array_keys)
    document.primary_key = os.environ.get(
        "ASSET_RECOVERY_PRIMARY_KEY", document.primary_key
    )

    fallback_flag = os.environ.get("ASSET_RECOVERY_FALLBACK", "1").lower()
    recovery = RecoveryConfig(
        document=document,
        fallback=FallbackConfig(enabled=fallback_flag not in ("0", "false", "no")),
    )
    duplicable = os.environ.get("ASSET_RECOVERY_DUPLICABLE_FIELDS", "")
    if duplicable:
        recovery.duplicable_fields = _split_env_list(duplicable)

    return AppConfig(
        recovery=recovery,
        log_level=os.environ.get("ASSET_RECOVERY_LOG_LEVEL", "WARNING"),
    )


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from YAML file, env vars, or defaults.

    Priority: config.yaml (with ${ENV} interpolation) > env vars > defaults.
    """
    if path is None:
        path = Path(DEFAULT_CONFIG_PATH).expanduser()
    else:
        path = Path(path).expanduser()

    if not path.exists():
        if os.environ.get("ASSET_RECOVERY_HEADLESS") or os.environ.get(
            "ASSET_RECOVERY_PRIMARY_KEY"
        ):
            return _config_from_env()
        return AppConfig()

    raw_text = path.read_text()
    interpolated = _interpolate_env_vars(raw_text)
    try:
        data = yaml.safe_load(interpolated)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if data is None:
        return AppConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config in {path}: expected a mapping")
    try:
        return AppConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config in {path}: {e}") from e


def save_config(config: AppConfig, path: str | Path | None = None) -> Path:
    """Save config to YAML file."""
    if path is None:
        path = Path(DEFAULT_CONFIG_PATH).expanduser()
    else:
        path = Path(path).expanduser()

    path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump()
    path.write_text(yaml.dump(data, default_flow_style=False, sort_keys=False))
    return path
