"""Configuration models and loading utilities."""

import os
import string
from pathlib import Path

import yaml
from pydantic import BaseModel, field_validator

DEFAULT_DATABASE_URL = "sqlite:///./parking.db"
DEFAULT_CODE_ALPHABET = string.digits + string.ascii_uppercase


class DatabaseConfig(BaseModel):
    """Relational store connection configuration."""

    url: str = DEFAULT_DATABASE_URL
    echo: bool = False  # Log every SQL statement

    @field_validator("url", mode="before")
    @classmethod
    def resolve_env_var(cls, v: str) -> str:
        """Resolve environment variable references like ${VAR_NAME}."""
        if isinstance(v, str) and v.startswith("${") and v.endswith("}"):
            env_var = v[2:-1]
            return os.environ.get(env_var, DEFAULT_DATABASE_URL)
        return v


class APIConfig(BaseModel):
    """API server configuration."""

    host: str = "0.0.0.0"
    port: int = 8000


class LedgerConfig(BaseModel):
    """Reservation code generation settings."""

    code_length: int = 6
    code_alphabet: str = DEFAULT_CODE_ALPHABET
    enforce_unique_codes: bool = True  # Re-draw codes that clash with an active session
    max_code_attempts: int = 10

    @field_validator("code_alphabet")
    @classmethod
    def uppercase_alphabet(cls, v: str) -> str:
        """Codes are matched upper-cased, so the alphabet must be too."""
        if not v:
            raise ValueError("code_alphabet must not be empty")
        return v.upper()

    @field_validator("code_length", "max_code_attempts")
    @classmethod
    def positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"


class AppConfig(BaseModel):
    """Main application configuration."""

    database: DatabaseConfig = DatabaseConfig()
    api: APIConfig = APIConfig()
    ledger: LedgerConfig = LedgerConfig()
    logging: LoggingConfig = LoggingConfig()


def load_config(path: str | Path) -> AppConfig:
    """
    Load configuration from a YAML file.

    Args:
        path: Path to the configuration file

    Returns:
        Validated AppConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is invalid
    """
    config_path = Path(path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    return AppConfig(**data)


def get_config_path() -> Path:
    """Get the default configuration file path."""
    # Check for config in current directory first
    local_config = Path("config/config.yaml")
    if local_config.exists():
        return local_config

    # Check for config in parent directory (for Docker)
    parent_config = Path("/app/config/config.yaml")
    if parent_config.exists():
        return parent_config

    return local_config  # Return default even if doesn't exist
