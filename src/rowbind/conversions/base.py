"""Conversion base classes and value kind tags."""

from __future__ import annotations

from enum import Enum
from typing import Any, ClassVar


class ValueKind(str, Enum):
    """Declared value kind produced by a conversion step."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    ENUM = "enum"
    DATE = "date"
    DATETIME = "datetime"
    OBJECT = "object"


class Conversion:
    """A bidirectional value transform.

    ``execute`` runs on the read path (column value to attribute value) and
    ``revert`` on the write path. ``forward_kind`` is the kind ``execute``
    returns; ``backward_kind`` is the kind ``revert`` returns. Subclasses raise
    ``ValueError`` or ``TypeError`` when a value cannot be converted.
    """

    forward_kind: ClassVar[ValueKind] = ValueKind.OBJECT
    backward_kind: ClassVar[ValueKind] = ValueKind.OBJECT

    def execute(self, value: Any) -> Any:
        raise NotImplementedError

    def revert(self, value: Any) -> Any:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class NullableConversion(Conversion):
    """Conversion that substitutes configured values for ``None``.

    Blank strings read as ``None`` unless ``blank_is_null`` is turned off.
    """

    blank_is_null: ClassVar[bool] = True

    def __init__(self, null_read: Any = None, null_write: Any = None) -> None:
        self.null_read = null_read
        self.null_write = null_write

    def execute(self, value: Any) -> Any:
        if value is None:
            return self.null_read
        if self.blank_is_null and isinstance(value, str) and not value.strip():
            return self.null_read
        return self.from_input(value)

    def revert(self, value: Any) -> Any:
        if value is None:
            return self.null_write
        return self.to_output(value)

    def from_input(self, value: Any) -> Any:
        raise NotImplementedError

    def to_output(self, value: Any) -> Any:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(null_read={self.null_read!r}, null_write={self.null_write!r})"


class FormattedConversion:
    """Mixin for conversions backed by configurable formatter objects."""

    def formatter_objects(self) -> tuple[Any, ...]:
        raise NotImplementedError


__all__ = ["ValueKind", "Conversion", "NullableConversion", "FormattedConversion"]
