# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Settings for microagent loading and context rendering.

Environment variables use the MICROAGENTS_ prefix:
    MICROAGENTS_AGENTS_DIR: Directory of markdown microagents (default: .microagents)
    MICROAGENTS_REGISTRY_FILE: Optional YAML registry file, used instead of AGENTS_DIR
    MICROAGENTS_MAX_CONTEXT_CHARS: Budget for the rendered context block (default: 16000)
    MICROAGENTS_LOG_LEVEL: Log level for the CLI (default: WARNING)

Values may also come from a ``.env`` file in the working directory or any
parent directory.

Example:
    >>> from microagent_dispatch.settings import get_settings
    >>> settings = get_settings()
    >>> settings.max_context_chars
    16000
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["MicroagentSettings", "clear_settings_cache", "get_settings"]

logger = logging.getLogger(__name__)


def _find_and_load_env() -> None:
    """Load the nearest .env file, searching upwards from the working directory."""
    from dotenv import load_dotenv

    current = Path.cwd().resolve()
    for _ in range(10):
        env_file = current / ".env"
        if env_file.exists():
            load_dotenv(env_file, override=False)
            logger.debug("Loaded environment from %s", env_file)
            return
        parent = current.parent
        if parent == current:
            break
        current = parent


class MicroagentSettings(BaseSettings):
    """Configuration for the microagent loader, renderer and CLI."""

    agents_dir: Path = Field(
        default=Path(".microagents"),
        description="Directory scanned for markdown microagents",
    )
    registry_file: Path | None = Field(
        default=None,
        description="YAML registry file; takes precedence over agents_dir when set",
    )
    max_context_chars: int = Field(
        default=16000,
        ge=0,
        le=1_000_000,
        description="Maximum characters in a rendered context block",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Log level used by the CLI",
    )

    model_config = SettingsConfigDict(
        env_prefix="MICROAGENTS_",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value


@lru_cache(maxsize=1)
def get_settings() -> MicroagentSettings:
    """Get the cached settings instance.

    Note:
        Use ``clear_settings_cache()`` in tests that change the environment.
    """
    _find_and_load_env()
    return MicroagentSettings()


def clear_settings_cache() -> None:
    """Clear the settings singleton so the next call re-reads the environment."""
    get_settings.cache_clear()
