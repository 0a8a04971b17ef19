"""
Configuration management for the roulette table.
Supports config.json with environment variable overrides.
All paths are resolved relative to the project root.
"""

import json
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

load_dotenv()

# Project root directory (parent of the 'roulette_engine' folder)
PROJECT_ROOT = Path(__file__).parent.parent


def get_env(key: str, default: str = None) -> Optional[str]:
    """Get environment variable with optional default."""
    return os.environ.get(key, default)


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    val = os.environ.get(key)
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes", "on")


def get_env_int(key: str, default: int = 0) -> int:
    """Get integer environment variable."""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        return default


def get_env_float(key: str, default: float = 0.0) -> float:
    """Get float environment variable."""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return float(val)
    except ValueError:
        return default


# ==================== Configuration Models ====================

class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = True
    name: str = "Roulette Table"


class TableConfig(BaseModel):
    """Rules of the single table."""
    variant: str = "european"  # european (37 pockets) or american (38 pockets)
    starting_balance: int = 1000
    chip_values: List[int] = Field(default_factory=lambda: [1, 5, 25, 100])
    default_chip: int = 5
    dwell_seconds: float = 2.5  # Pause on the result before betting reopens

    @field_validator("variant")
    @classmethod
    def _check_variant(cls, value: str) -> str:
        value = value.lower()
        if value not in ("european", "american"):
            raise ValueError(f"Unknown wheel variant: {value}")
        return value


class AnimationConfig(BaseModel):
    """Spin timeline parameters. Angles are radians, times milliseconds."""
    min_wheel_rotations: float = 5
    extra_rotation_range: float = 3
    min_ball_spins: float = 8
    extra_ball_spin_range: float = 4
    min_duration_ms: float = 4000
    extra_duration_range_ms: float = 1500
    bounce_duration_ms: float = 600
    bounce_count: int = 4
    bounce_amplitude_ratio: float = 0.4  # Fraction of one pocket arc
    frame_interval_ms: float = 16
    reduced_motion: bool = False


class RateLimitConfig(BaseModel):
    enabled: bool = True
    game_requests: str = "30/minute"  # For spins
    api_requests: str = "60/minute"   # For general API calls


class StorageConfig(BaseModel):
    enabled: bool = True
    history_size: int = 20


class LoggingConfig(BaseModel):
    level: str = "INFO"
    log_to_file: bool = False
    formatter: str = "color"


class PathsConfig(BaseModel):
    """All paths are relative to PROJECT_ROOT."""
    config_file: str = "config.json"
    database: str = "data/roulette.db"
    log_file: str = "data/app.log"

    def get_config_path(self) -> Path:
        return PROJECT_ROOT / self.config_file

    def get_db_path(self) -> Path:
        return PROJECT_ROOT / self.database

    def get_log_path(self) -> Path:
        return PROJECT_ROOT / self.log_file


class AppConfig(BaseModel):
    """Main application configuration."""
    server: ServerConfig = Field(default_factory=ServerConfig)
    table: TableConfig = Field(default_factory=TableConfig)
    animation: AnimationConfig = Field(default_factory=AnimationConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)


# ==================== Configuration Loading ====================

def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """
    Load configuration from config.json with environment variable overrides.
    Environment variables take precedence over config.json values.
    """
    if config_path is None:
        config_path = PROJECT_ROOT / "config.json"

    # Start with defaults
    data = {}

    # Load from config.json if it exists
    if config_path.exists():
        with open(config_path, "r") as f:
            data = json.load(f)

    # Apply environment variable overrides
    if get_env("SERVER_HOST"):
        data.setdefault("server", {})["host"] = get_env("SERVER_HOST")
    if get_env("SERVER_PORT"):
        data.setdefault("server", {})["port"] = get_env_int("SERVER_PORT", 8000)
    if get_env("DEBUG"):
        data.setdefault("server", {})["debug"] = get_env_bool("DEBUG")

    if get_env("WHEEL_VARIANT"):
        data.setdefault("table", {})["variant"] = get_env("WHEEL_VARIANT")
    if get_env("STARTING_BALANCE"):
        data.setdefault("table", {})["starting_balance"] = get_env_int("STARTING_BALANCE", 1000)
    if get_env("DWELL_SECONDS"):
        data.setdefault("table", {})["dwell_seconds"] = get_env_float("DWELL_SECONDS", 2.5)

    if get_env("REDUCED_MOTION"):
        data.setdefault("animation", {})["reduced_motion"] = get_env_bool("REDUCED_MOTION")

    if get_env("DB_PATH"):
        data.setdefault("paths", {})["database"] = get_env("DB_PATH")
    if get_env("STORAGE_ENABLED"):
        data.setdefault("storage", {})["enabled"] = get_env_bool("STORAGE_ENABLED", True)

    if get_env("LOG_LEVEL"):
        data.setdefault("logging", {})["level"] = get_env("LOG_LEVEL")
    if get_env("LOG_TO_FILE"):
        data.setdefault("logging", {})["log_to_file"] = get_env_bool("LOG_TO_FILE")
    if get_env("LOG_FORMATTER"):
        data.setdefault("logging", {})["formatter"] = get_env("LOG_FORMATTER")

    if get_env("RATE_LIMIT_ENABLED"):
        data.setdefault("rate_limit", {})["enabled"] = get_env_bool("RATE_LIMIT_ENABLED", True)
    if get_env("RATE_LIMIT_GAME_REQUESTS"):
        data.setdefault("rate_limit", {})["game_requests"] = get_env("RATE_LIMIT_GAME_REQUESTS")
    if get_env("RATE_LIMIT_API_REQUESTS"):
        data.setdefault("rate_limit", {})["api_requests"] = get_env("RATE_LIMIT_API_REQUESTS")

    return AppConfig(**data)


def save_config(config: AppConfig, config_path: Optional[Path] = None):
    """Save configuration to config.json."""
    if config_path is None:
        config_path = PROJECT_ROOT / "config.json"

    # Convert to dict, excluding paths (they're computed)
    data = config.model_dump(exclude={"paths"})

    with open(config_path, "w") as f:
        json.dump(data, f, indent=4)


# Global config instance
settings = load_config()
