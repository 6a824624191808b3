"""Error hierarchy for record binding."""

from __future__ import annotations

from typing import Any, Sequence


class RowbindError(Exception):
    """Base class for rowbind exceptions."""


class ConfigurationError(RowbindError):
    """Raised when directives are invalid for their field or conflict with each other."""


class RuntimeTypeError(RowbindError, TypeError):
    """Raised when a directive is attached to a field of an unsupported type."""


class InstantiationError(RowbindError):
    """Raised when the target type cannot be constructed without arguments."""

    def __init__(self, message: str, *, row: Sequence[Any] | None = None) -> None:
        super().__init__(message)
        self.row = list(row) if row is not None else None


class ConversionError(RowbindError):
    """Raised when a value cannot be converted or moved in/out of an instance.

    Errors are fatal by default. The write path marks them non-fatal before
    handing them to the configured error handler.
    """

    def __init__(
        self,
        message: str,
        *,
        row: Sequence[Any] | None = None,
        column_index: int | None = None,
        column_name: str | None = None,
        value: Any = None,
        record_number: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.row = list(row) if row is not None else None
        self.column_index = column_index
        self.column_name = column_name
        self.value = value
        self.record_number = record_number
        self.fatal = True

    def mark_as_non_fatal(self) -> None:
        self.fatal = False

    def __str__(self) -> str:
        details: list[str] = []
        if self.record_number is not None:
            details.append(f"record={self.record_number}")
        if self.column_index is not None:
            details.append(f"column_index={self.column_index}")
        if self.column_name:
            details.append(f"column_name={self.column_name!r}")
        if self.value is not None:
            details.append(f"value={self.value!r}")
        if not details:
            return self.message
        return f"{self.message} ({', '.join(details)})"


__all__ = [
    "RowbindError",
    "ConfigurationError",
    "RuntimeTypeError",
    "InstantiationError",
    "ConversionError",
]
