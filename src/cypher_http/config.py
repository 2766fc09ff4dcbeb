import sys
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from loguru import logger
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)

VALID_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


class CypherSettings(BaseSettings):
    """Connection details for the Neo4j HTTP endpoint."""

    uri: str = Field(
        default="http://localhost:7474",
        description="Service root of the server; may embed user:password credentials",
    )
    user: Optional[str] = Field(default=None, description="User for HTTP Basic auth")
    password: Optional[str] = Field(default=None, description="Password for HTTP Basic auth")
    database: str = Field(default="neo4j", description="Database substituted for {databaseName}")
    timeout: float = Field(default=20.0, gt=0, description="Request timeout in seconds")
    connect_timeout: float = Field(default=10.0, gt=0, description="Connect timeout in seconds")
    log_level: str = Field(default="INFO", description="Level used by configure_logging")

    model_config = SettingsConfigDict(env_prefix="NEO4J_", env_file=".env", extra="ignore")


def load_settings(file_path: Optional[Union[str, Path]] = None) -> CypherSettings:
    """
    Load settings from an optional YAML file and the environment.

    Values found in the YAML file become init arguments, so environment variables
    with the ``NEO4J_`` prefix only fill what the file leaves unset.

    Raises:
        FileNotFoundError: If ``file_path`` is given but does not exist.
        ValueError: If the file is not a YAML mapping or fails validation.
    """
    data: dict[str, Any] = {}
    if file_path is not None:
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {file_path}")
        with open(path) as fh:
            data = yaml.safe_load(fh) or {}
        if not isinstance(data, dict):
            raise ValueError("Configuration file must contain a mapping")
    try:
        return CypherSettings(**data)
    except ValidationError as exc:
        raise ValueError(str(exc)) from exc


def configure_logging(level: Optional[str] = None) -> None:
    """Replace loguru's sinks with a single stderr sink at ``level``."""
    level = (level or CypherSettings().log_level).upper()
    if level not in VALID_LOG_LEVELS:
        raise ValueError(f"Logging level must be one of {sorted(VALID_LOG_LEVELS)}, got {level}")
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT, colorize=True)
    logger.info("Logger configured with level: {}", level)
