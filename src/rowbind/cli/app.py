"""CLI entrypoint for :mod:`rowbind`.

- `read`    - bind rows of a CSV/XLSX file to a class and print them as NDJSON.
- `inspect` - show the bindings resolved for a class.
- `version` - print the package version.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer

from rowbind import __version__
from rowbind.binding import resolve_bindings
from rowbind.exceptions import RowbindError
from rowbind.introspection import derive_header_names, find_headers
from rowbind.io import iter_rows
from rowbind.logging import create_run_logger_context
from rowbind.processor import ObjectReader
from rowbind.settings import Settings

from .common import (
    DEBUG_OPTION,
    LOG_FORMAT_OPTION,
    LOG_LEVEL_OPTION,
    MODEL_OPTION,
    MODEL_PATH_OPTION,
    QUIET_OPTION,
    LogFormat,
    load_model,
    resolve_logging,
    to_json_line,
)

app = typer.Typer(
    help=(
        "rowbind - bind flat records to typed Python objects.\n\n"
        "```bash\n"
        "rowbind inspect --model shop.models:Order\n"
        "rowbind read --model shop.models:Order --input orders.csv\n"
        "```\n"
    ),
    no_args_is_help=True,
    rich_markup_mode="markdown",
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Print the version and exit.",
    ),
) -> None:
    """rowbind command line interface."""


@app.command("read")
def read_command(
    model: str = MODEL_OPTION,
    input_file: Path = typer.Option(
        ...,
        "--input",
        "-i",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
        help="CSV, TSV or XLSX input file.",
    ),
    sheet: Optional[str] = typer.Option(None, "--sheet", "-s", help="Worksheet to read (default: first)."),
    select_index: List[int] = typer.Option(
        [],
        "--select-index",
        help="Only bind the given column index (repeatable).",
    ),
    strict: Optional[bool] = typer.Option(
        None,
        "--strict/--no-strict",
        help="Fail when a bound column name is missing from the headers.",
    ),
    model_path: Optional[Path] = MODEL_PATH_OPTION,
    log_format: Optional[LogFormat] = LOG_FORMAT_OPTION,
    log_level: Optional[str] = LOG_LEVEL_OPTION,
    debug: bool = DEBUG_OPTION,
    quiet: bool = QUIET_OPTION,
) -> None:
    """Read INPUT and print one JSON object per record."""

    settings = Settings()
    if strict is not None:
        settings = settings.model_copy(update={"strict_header_validation": strict})
    effective_format, effective_level = resolve_logging(
        log_format=log_format,
        log_level=log_level,
        debug=debug,
        quiet=quiet,
        settings=settings,
    )
    target_type = load_model(model, model_path)

    with create_run_logger_context(log_format=effective_format, log_level=effective_level) as log_ctx:
        log_ctx.logger.event("settings.effective", level=logging.DEBUG, data=settings.model_dump(mode="json"))
        reader = ObjectReader(target_type, settings=settings, logger=log_ctx.logger)
        rows = iter_rows(input_file, sheet_name=sheet, empty_value_as_null=settings.empty_value_as_null)
        try:
            bindings = reader.materializer.bindings
            for instance in reader.read(rows, selected_indexes=select_index or None):
                record = {binding.field.name: getattr(instance, binding.field.name, None) for binding in bindings}
                typer.echo(to_json_line(record))
        except (RowbindError, ValueError) as exc:
            log_ctx.logger.error("Failed to read %s: %s", input_file.name, exc)
            raise typer.Exit(code=1) from exc


@app.command("inspect")
def inspect_command(
    model: str = MODEL_OPTION,
    model_path: Optional[Path] = MODEL_PATH_OPTION,
) -> None:
    """Print the bindings resolved for MODEL."""

    target_type = load_model(model, model_path)
    try:
        bindings = resolve_bindings(target_type)
    except RowbindError as exc:
        typer.echo(f"Invalid bindings for {target_type.__qualname__}: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(f"{target_type.__qualname__}: {len(bindings)} binding(s)")
    for binding in bindings:
        target = f"index {binding.index}" if binding.is_index_bound else f"column '{binding.field_name}'"
        chain = ", ".join(repr(conversion) for conversion in binding.conversions) or "-"
        typer.echo(f"  {binding.field.name} <- {target}: {chain}")

    directive = find_headers(target_type)
    headers = directive.sequence if directive is not None and directive.sequence else derive_header_names(target_type)
    if headers:
        typer.echo(f"headers: {', '.join(headers)}")


@app.command("version")
def version_command() -> None:
    """Print the package version."""
    typer.echo(__version__)


def main() -> None:
    """Entrypoint used by console scripts and `python -m rowbind`."""
    app()


__all__ = ["app", "main"]
