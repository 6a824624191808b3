"""CSV / XLSX row sources for readers."""

from __future__ import annotations

import csv
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterator

import openpyxl

SUPPORTED_EXTENSIONS = {".csv", ".tsv", ".xlsx", ".xlsm"}


def _cell_text(value: Any, *, empty_value_as_null: bool) -> str | None:
    if value is None or value == "":
        return None if empty_value_as_null else ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def iter_rows(
    path: Path,
    *,
    sheet_name: str | None = None,
    empty_value_as_null: bool = True,
) -> Iterator[list[str | None]]:
    """Yield every row of a CSV/TSV file or worksheet as a list of strings.

    Empty cells become ``None`` unless ``empty_value_as_null`` is off.
    Spreadsheet cells are rendered as text: dates in ISO 8601, booleans as
    ``true``/``false`` and whole floats without a fractional part.
    """

    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        raise ValueError(f"Unsupported input file type '{path.suffix}' for {path.name}")

    if suffix in {".csv", ".tsv"}:
        delimiter = "\t" if suffix == ".tsv" else ","
        with path.open("r", encoding="utf-8-sig", newline="") as handle:
            for row in csv.reader(handle, delimiter=delimiter):
                yield [_cell_text(value, empty_value_as_null=empty_value_as_null) for value in row]
        return

    workbook = openpyxl.load_workbook(path, read_only=True, data_only=True)
    try:
        if sheet_name is not None and sheet_name not in workbook.sheetnames:
            raise ValueError(f"Worksheet '{sheet_name}' not found in {path.name}")
        sheet = workbook[sheet_name] if sheet_name is not None else workbook[workbook.sheetnames[0]]
        for row in sheet.iter_rows(values_only=True):
            yield [_cell_text(value, empty_value_as_null=empty_value_as_null) for value in row]
    finally:
        workbook.close()


__all__ = ["SUPPORTED_EXTENSIONS", "iter_rows"]
