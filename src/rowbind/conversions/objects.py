"""Conversions between column strings and scalar attribute types."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Sequence

from rowbind.conversions.base import NullableConversion, ValueKind
from rowbind.directives import DEFAULT_ENUM_SELECTORS, EnumSelector


class IntegerConversion(NullableConversion):
    forward_kind = ValueKind.INTEGER
    backward_kind = ValueKind.STRING

    def from_input(self, value: Any) -> int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        return int(str(value).strip())

    def to_output(self, value: Any) -> str:
        return str(value)


class FloatConversion(NullableConversion):
    forward_kind = ValueKind.FLOAT
    backward_kind = ValueKind.STRING

    def from_input(self, value: Any) -> float:
        if isinstance(value, float):
            return value
        return float(str(value).strip())

    def to_output(self, value: Any) -> str:
        return str(value)


class DecimalConversion(NullableConversion):
    forward_kind = ValueKind.DECIMAL
    backward_kind = ValueKind.STRING

    def from_input(self, value: Any) -> Decimal:
        if isinstance(value, Decimal):
            return value
        try:
            return Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"Cannot convert '{value}' to Decimal") from exc

    def to_output(self, value: Any) -> str:
        return str(value)


class BooleanConversion(NullableConversion):
    """Matches column values against true/false literal sets (case-insensitive).

    Writes the first literal of the matching set.
    """

    forward_kind = ValueKind.BOOLEAN
    backward_kind = ValueKind.STRING

    def __init__(
        self,
        true_strings: Sequence[str] = ("true",),
        false_strings: Sequence[str] = ("false",),
        null_read: bool | None = None,
        null_write: str | None = None,
    ) -> None:
        super().__init__(null_read=null_read, null_write=null_write)
        if not true_strings or not false_strings:
            raise ValueError("Both true and false strings must be provided")
        self.true_strings = tuple(true_strings)
        self.false_strings = tuple(false_strings)
        self._true = {text.lower() for text in self.true_strings}
        self._false = {text.lower() for text in self.false_strings}
        overlap = self._true & self._false
        if overlap:
            raise ValueError(f"Strings {sorted(overlap)} cannot represent both true and false")

    def from_input(self, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        normalized = str(value).strip().lower()
        if normalized in self._true:
            return True
        if normalized in self._false:
            return False
        allowed = ", ".join([*self.true_strings, *self.false_strings])
        raise ValueError(f"Unable to convert '{value}' to boolean. Allowed strings are: {allowed}")

    def to_output(self, value: Any) -> str:
        return self.true_strings[0] if value else self.false_strings[0]

    def __repr__(self) -> str:
        return f"BooleanConversion(true_strings={self.true_strings!r}, false_strings={self.false_strings!r})"


class EnumConversion(NullableConversion):
    """Looks up enum members by the configured selectors, in order.

    Values are written using the first selector.
    """

    forward_kind = ValueKind.ENUM
    backward_kind = ValueKind.STRING

    def __init__(
        self,
        enum_type: type[Enum],
        null_read: Enum | None = None,
        null_write: str | None = None,
        custom_element: str | None = None,
        selectors: Sequence[EnumSelector] = DEFAULT_ENUM_SELECTORS,
    ) -> None:
        super().__init__(null_read=null_read, null_write=null_write)
        if not selectors:
            raise ValueError("At least one enum selector is required")
        self.enum_type = enum_type
        self.selectors = tuple(EnumSelector(selector) for selector in selectors)
        self.custom_element = custom_element or None

        uses_custom = any(
            selector in (EnumSelector.CUSTOM_FIELD, EnumSelector.CUSTOM_METHOD) for selector in self.selectors
        )
        if uses_custom and self.custom_element is None:
            raise ValueError("Custom enum selectors require the name of a custom element")
        if self.custom_element is not None and not uses_custom:
            raise ValueError(
                f"Custom element '{self.custom_element}' requires the CUSTOM_FIELD or CUSTOM_METHOD selector"
            )

        self._lookups: dict[EnumSelector, dict[str, Enum]] = {}
        for selector in self.selectors:
            lookup: dict[str, Enum] = {}
            for ordinal, member in enumerate(enum_type):
                lookup.setdefault(self._key(selector, member, ordinal), member)
            self._lookups[selector] = lookup

    def _key(self, selector: EnumSelector, member: Enum, ordinal: int) -> str:
        if selector is EnumSelector.NAME:
            return member.name
        if selector is EnumSelector.VALUE:
            return str(member.value)
        if selector is EnumSelector.ORDINAL:
            return str(ordinal)
        if selector is EnumSelector.STRING:
            return str(member)
        try:
            element = getattr(member, self.custom_element)
        except AttributeError as exc:
            raise ValueError(
                f"Enum {self.enum_type.__name__} has no element named '{self.custom_element}'"
            ) from exc
        if selector is EnumSelector.CUSTOM_METHOD:
            element = element()
        return str(element)

    def from_input(self, value: Any) -> Enum:
        if isinstance(value, self.enum_type):
            return value
        text = str(value)
        for selector in self.selectors:
            member = self._lookups[selector].get(text)
            if member is not None:
                return member
        raise ValueError(
            f"Cannot convert '{value}' to {self.enum_type.__name__}. "
            f"Allowed values are: {sorted(self._lookups[self.selectors[0]])}"
        )

    def to_output(self, value: Any) -> str:
        member = value if isinstance(value, self.enum_type) else self.from_input(value)
        ordinal = list(self.enum_type).index(member)
        return self._key(self.selectors[0], member, ordinal)

    def __repr__(self) -> str:
        names = ", ".join(selector.name for selector in self.selectors)
        return f"EnumConversion({self.enum_type.__name__}, selectors=[{names}])"


__all__ = [
    "IntegerConversion",
    "FloatConversion",
    "DecimalConversion",
    "BooleanConversion",
    "EnumConversion",
]
