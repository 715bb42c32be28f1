"""
Runtime settings, read from the environment.
A ``.env`` file in the working directory is loaded first.
"""

import os
from pathlib import Path
from typing import Any, Optional, Tuple

import dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from sommelier.errors import ConfigurationError

dotenv.load_dotenv()

API_KEY_ENV = "GOOGLE_API_KEY"
# Structured JSON output combined with the Google Search tool is only served
# by Gemini 3 models; 2.x rejects the request with INVALID_ARGUMENT.
DEFAULT_MODEL = "gemini-3-flash-preview"
DEFAULT_DATA_DIR = Path.home() / ".sommelier"
STORAGE_KEY = "sommelier_wines_v3"

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseModel):
    api_key: Optional[str] = None
    model_name: str = DEFAULT_MODEL
    max_attempts: int = Field(default=1, ge=1)
    data_dir: Path = DEFAULT_DATA_DIR
    log_level: str = "INFO"
    image_max_size: Tuple[int, int] = (1024, 1024)

    @field_validator("data_dir")
    @classmethod
    def expand_home(cls, value: Path) -> Path:
        return value.expanduser()

    @field_validator("log_level", mode="before")
    @classmethod
    def known_log_level(cls, value: Any) -> str:
        level = str(value).strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"must be one of {', '.join(_LOG_LEVELS)}")
        return level

    @field_validator("image_max_size", mode="before")
    @classmethod
    def parse_size(cls, value: Any) -> Any:
        """Accept ``"1024x768"`` or a single ``"1024"`` for a square bound."""
        if not isinstance(value, str):
            return value
        width, _, height = value.strip().lower().partition("x")
        return width, height or width

    @field_validator("image_max_size")
    @classmethod
    def positive_size(cls, value: Tuple[int, int]) -> Tuple[int, int]:
        if min(value) < 1:
            raise ValueError("width and height must be positive")
        return value

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from ``SOMMELIER_*`` variables.

        Raises:
            ConfigurationError: If a variable holds a value that does not validate.
        """
        values = {
            "api_key": os.getenv(API_KEY_ENV) or None,
            "model_name": os.getenv("SOMMELIER_MODEL"),
            "max_attempts": os.getenv("SOMMELIER_MAX_ATTEMPTS"),
            "data_dir": os.getenv("SOMMELIER_DATA_DIR"),
            "log_level": os.getenv("SOMMELIER_LOG_LEVEL"),
            "image_max_size": os.getenv("SOMMELIER_IMAGE_MAX_SIZE"),
        }
        try:
            return cls(**{key: value for key, value in values.items() if value is not None})
        except ValidationError as e:
            problems = "; ".join(
                f"{_ENV_NAMES.get(str(err['loc'][0]), err['loc'][0])}: {err['msg']}" for err in e.errors()
            )
            raise ConfigurationError(f"Invalid configuration ({problems})") from e


_ENV_NAMES = {
    "model_name": "SOMMELIER_MODEL",
    "max_attempts": "SOMMELIER_MAX_ATTEMPTS",
    "data_dir": "SOMMELIER_DATA_DIR",
    "log_level": "SOMMELIER_LOG_LEVEL",
    "image_max_size": "SOMMELIER_IMAGE_MAX_SIZE",
}
