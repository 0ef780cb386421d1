"""Preview settings, loaded from the environment (and a .env file if present)."""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "STREAMJSON_"


class PreviewSettings(BaseModel):
    """Settings for a streaming JSON preview."""

    strip_code_fences: bool = True
    emit_unchanged: bool = False
    max_buffer_chars: Optional[int] = Field(default=None, gt=0)
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX) -> "PreviewSettings":
        """
        Build settings from environment variables.

        Reads ``<prefix>STRIP_CODE_FENCES``, ``<prefix>EMIT_UNCHANGED``,
        ``<prefix>MAX_BUFFER_CHARS`` and ``<prefix>LOG_LEVEL``; unset
        variables keep their defaults.

        Raises:
            ValidationError: If a variable holds an invalid value
        """
        load_dotenv()

        data = {}
        for name in ("strip_code_fences", "emit_unchanged", "max_buffer_chars", "log_level"):
            raw = os.getenv(f"{prefix}{name.upper()}")
            if raw:
                data[name] = raw.strip()

        return cls.model_validate(data)
