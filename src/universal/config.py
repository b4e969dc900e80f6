"""Engine settings, loaded from YAML.

Example config.yaml:
    date_format: "%d/%m/%Y"
    log_level: DEBUG
    log_json: true
    precision: 34

The file is taken from the explicit path, else from $UNIVERSAL_CONFIG,
else defaults apply.
"""

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

CONFIG_ENV_VAR = "UNIVERSAL_CONFIG"


class Settings(BaseModel):
    date_format: str = "%d/%m/%Y"
    log_level: str = "INFO"
    log_json: bool = False
    precision: int = Field(default=28, ge=1)  # decimal digits used by evaluation


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from a YAML file. Missing keys take their defaults."""
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR)
    if not path:
        return Settings()

    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping, got {type(data).__name__}")
    return Settings(**data)


_active: Settings | None = None


def get_settings() -> Settings:
    """Process-wide settings, loaded on first use."""
    global _active
    if _active is None:
        _active = load_settings()
    return _active


def use_settings(settings: Settings | None) -> None:
    """Pin the process-wide settings. None drops them so the next get_settings() reloads."""
    global _active
    _active = settings
