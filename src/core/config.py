"""
Application settings, read from environment variables.

| variable | default |
|---|---|
| CHESS_DATABASE_URL | sqlite:///chess_games.db |
| CHESS_SAVE_FILE | saved_game.txt |
| CHESS_CASTLING_RULES | strict |
| CHESS_CLOCK_SECONDS | 900 (15 minutes per side) |
| CHESS_LOG_LEVEL | INFO |
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Self

from pydantic import BaseModel, ValidationError, field_validator

from src.core.exceptions import ConfigurationError
from src.core.shared_types import CastlingRulesName

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseModel):
    database_url: str = "sqlite:///chess_games.db"
    save_file: Path = Path("saved_game.txt")
    castling_rules: CastlingRulesName = CastlingRulesName.STRICT
    clock_seconds: int = 900
    log_level: str = "INFO"

    @field_validator("clock_seconds")
    @classmethod
    def validate_clock_seconds(cls, value: int) -> int:
        if value <= 0:
            raise ConfigurationError(f"Clock must start with a positive number of seconds, got {value}.")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ConfigurationError(
                f"Unknown log level {value!r}. Pick one from {','.join(sorted(LOG_LEVELS))}"
            )
        return level

    @classmethod
    def from_env(cls) -> Self:
        """Only the variables that are actually set override the defaults."""
        env_names = {
            "database_url": "CHESS_DATABASE_URL",
            "save_file": "CHESS_SAVE_FILE",
            "castling_rules": "CHESS_CASTLING_RULES",
            "clock_seconds": "CHESS_CLOCK_SECONDS",
            "log_level": "CHESS_LOG_LEVEL",
        }
        values = {
            field_name: os.getenv(env_name)
            for field_name, env_name in env_names.items()
            if os.getenv(env_name) is not None
        }
        try:
            return cls(**values)
        except ValidationError as exc:
            # type errors (ex. CHESS_CLOCK_SECONDS=abc) come in as pydantic errors
            raise ConfigurationError(f"Invalid settings in environment: {exc}") from exc


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
