"""Configuration management."""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel


class Config(BaseModel):
    """Application configuration."""

    spreadsheet_id: str
    range: str = "Sheet1!A:L"
    api_key: Optional[str] = None
    webapp_url: Optional[str] = None  # Apps Script web app handling writes
    webapp_token: str = ""
    origin: str = "http://localhost"
    request_timeout: float = 15.0
    sync_max_attempts: int = 1
    log_level: str = "INFO"
    preferences_path: Optional[Path] = None


_config: Optional[Config] = None


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from YAML file."""
    global _config

    if _config is not None:
        return _config

    if config_path is None:
        config_path = Path(__file__).parent.parent / "config" / "config.yaml"

    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}. "
            "Copy config/config.yaml.example to config/config.yaml and fill in your settings."
        )

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    _config = Config(**data)
    return _config


def get_config() -> Config:
    """Get the loaded configuration."""
    if _config is None:
        return load_config()
    return _config


def reset_config() -> None:
    """Forget the cached configuration."""
    global _config
    _config = None
