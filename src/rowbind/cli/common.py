"""Shared helpers/options for the rowbind CLI.

Keep this module dependency-light; it should be safe to import from any CLI command module.
"""

from __future__ import annotations

import importlib
import json
import logging
import sys
from datetime import date
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import typer
from typer import BadParameter

from rowbind.settings import Settings


class LogFormat(str, Enum):
    """Supported log output formats."""

    text = "text"
    ndjson = "ndjson"


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def resolve_log_level(log_level: Optional[str], default_level: int) -> int:
    """Resolve a string log level to a logging level constant."""
    if not log_level:
        return default_level

    mapping = logging.getLevelNamesMapping()
    resolved = mapping.get(str(log_level).upper())
    if isinstance(resolved, int):
        return resolved

    raise BadParameter(f"Invalid log level: {log_level}", param_hint="log_level")


def resolve_logging(
    *,
    log_format: Optional[LogFormat],
    log_level: Optional[str],
    debug: bool,
    quiet: bool,
    settings: Settings,
) -> tuple[str, int]:
    """Compute effective log format/level with explicit precedence.

    Precedence: --quiet > --debug > --log-level > defaults.
    """
    effective_format = log_format.value if log_format else settings.log_format
    base_level = resolve_log_level(log_level, settings.log_level)

    if quiet:
        effective_level = logging.WARNING
    elif debug:
        effective_level = logging.DEBUG
    else:
        effective_level = base_level

    return effective_format, effective_level


# ---------------------------------------------------------------------------
# Target model resolution
# ---------------------------------------------------------------------------


def load_model(reference: str, model_path: Optional[Path] = None) -> type:
    """Import the class named by ``module:Class`` (``module.Class`` also accepted)."""

    if ":" in reference:
        module_name, _, attr_path = reference.partition(":")
    else:
        module_name, _, attr_path = reference.rpartition(".")
    if not module_name or not attr_path:
        raise BadParameter(f"Expected 'module:Class', got '{reference}'", param_hint="model")

    if model_path is not None:
        location = str(model_path.expanduser().resolve())
        if location not in sys.path:
            sys.path.insert(0, location)

    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise BadParameter(f"Cannot import module '{module_name}': {exc}", param_hint="model") from exc

    for part in attr_path.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise BadParameter(f"Module '{module_name}' has no attribute '{attr_path}'", param_hint="model") from exc

    if not isinstance(target, type):
        raise BadParameter(f"'{reference}' is not a class", param_hint="model")
    return target


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def _json_default(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def to_json_line(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, default=_json_default)


# ---------------------------------------------------------------------------
# Common reusable Typer options
# ---------------------------------------------------------------------------

MODEL_OPTION = typer.Option(
    ...,
    "--model",
    "-m",
    help="Target class as 'module:Class'.",
)

MODEL_PATH_OPTION = typer.Option(
    None,
    "--model-path",
    file_okay=False,
    dir_okay=True,
    resolve_path=True,
    help="Directory prepended to sys.path before importing --model.",
)

LOG_FORMAT_OPTION = typer.Option(
    None,
    "--log-format",
    case_sensitive=False,
    help="Log output format.",
)

LOG_LEVEL_OPTION = typer.Option(
    None,
    "--log-level",
    case_sensitive=False,
    help="Log level (debug, info, warning, error, critical).",
)

DEBUG_OPTION = typer.Option(
    False,
    "--debug",
    help="Enable debug logging and verbose diagnostics.",
)

QUIET_OPTION = typer.Option(
    False,
    "--quiet",
    help="Reduce output to warnings and errors.",
)


__all__ = [
    "LogFormat",
    "load_model",
    "resolve_logging",
    "to_json_line",
    "MODEL_OPTION",
    "MODEL_PATH_OPTION",
    "LOG_FORMAT_OPTION",
    "LOG_LEVEL_OPTION",
    "DEBUG_OPTION",
    "QUIET_OPTION",
]
