"""Settings and logging setup.

Settings can be overridden from the environment:

- ``LUACSG_ENV_NAME``: name of the script environment table (default ``sandbox``)
- ``LUACSG_LOG_LEVEL``: logging level used by :func:`configure_logging`
- ``LUACSG_MESH_WARNING``: set to ``0``/``false``/``off`` to silence the mesh
  performance warning
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .aliases import check_env_name

DEFAULT_ENV_NAME = "sandbox"
DEFAULT_LOG_LEVEL = "WARNING"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="LUACSG_",
        extra="ignore",
    )

    env_name: str = DEFAULT_ENV_NAME
    log_level: str = DEFAULT_LOG_LEVEL
    mesh_warning: bool = True

    @field_validator("env_name", mode="after")
    @classmethod
    def _check_env_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            return DEFAULT_ENV_NAME
        return check_env_name(value)

    @field_validator("log_level", mode="after")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.strip().upper() or DEFAULT_LOG_LEVEL


def configure_logging(level_name: Optional[str] = None) -> None:
    """Set up root logging; the level defaults to ``Settings().log_level``."""
    if level_name is None:
        try:
            level_name = Settings().log_level
        except ValidationError:
            # bad settings are reported when a sandbox is created from them
            level_name = DEFAULT_LOG_LEVEL
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
