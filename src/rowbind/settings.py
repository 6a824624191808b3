"""Settings for rowbind using pydantic-settings.

Loaded from (in precedence order):
init kwargs > env vars > .env file > settings.toml > defaults.
"""
from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _toml_settings_source() -> dict[str, Any]:
    """Load settings from ``settings.toml`` if present.

    Accepts either top-level keys or a nested ``[rowbind]`` table.
    """

    path = Path("settings.toml")
    if not path.exists():
        return {}

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError):
        return {}

    nested = data.get("rowbind")
    if isinstance(nested, dict):
        return nested
    return data


class Settings(BaseSettings):
    """Runtime settings for readers, writers and the CLI.

    Override via init kwargs, environment variables (``ROWBIND_*``), a ``.env``
    file, or an optional ``settings.toml``.
    """

    model_config = SettingsConfigDict(
        env_prefix="ROWBIND_",
        env_file=".env",
        extra="ignore",
    )

    # Binding behavior
    strict_header_validation: bool = Field(
        default=False,
        description=(
            "Fail when a name-bound attribute has no matching header while reading. "
            "When off, such attributes are left unset."
        ),
    )

    # Input readers
    empty_value_as_null: bool = Field(
        default=True,
        description="Pass empty cells to conversions as None instead of ''.",
    )

    # Logging
    log_format: Literal["text", "ndjson"] = Field(default="text")
    log_level: int = Field(default=logging.INFO)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):  # type: ignore[override]
        toml_source = lambda: _toml_settings_source()
        # Precedence: init > env vars > .env > TOML > defaults
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            toml_source,
            file_secret_settings,
        )


__all__ = ["Settings"]
