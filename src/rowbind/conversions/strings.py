"""String-to-string conversions."""

from __future__ import annotations

import re
from typing import Any

from rowbind.conversions.base import Conversion, ValueKind


class _StringConversion(Conversion):
    forward_kind = ValueKind.STRING
    backward_kind = ValueKind.STRING

    def apply(self, value: str) -> str:
        raise NotImplementedError

    def execute(self, value: Any) -> Any:
        if value is None:
            return None
        return self.apply(str(value))

    def revert(self, value: Any) -> Any:
        if value is None:
            return None
        return self.apply(str(value))


class TrimConversion(_StringConversion):
    """Strips surrounding whitespace, optionally bounding the result length."""

    def __init__(self, length: int = -1) -> None:
        if length < -1:
            raise ValueError(f"Maximum length must be -1 (unbounded) or positive, got {length}")
        self.length = length

    def apply(self, value: str) -> str:
        trimmed = value.strip()
        if self.length != -1:
            trimmed = trimmed[: self.length]
        return trimmed

    def __repr__(self) -> str:
        return f"TrimConversion(length={self.length})"


class LowerCaseConversion(_StringConversion):
    def apply(self, value: str) -> str:
        return value.lower()


class UpperCaseConversion(_StringConversion):
    def apply(self, value: str) -> str:
        return value.upper()


class RegexReplaceConversion(_StringConversion):
    """Replaces every match of ``expression`` (``re.sub`` replacement syntax)."""

    def __init__(self, expression: str, replacement: str) -> None:
        self.pattern = re.compile(expression)
        self.replacement = replacement

    def apply(self, value: str) -> str:
        return self.pattern.sub(self.replacement, value)

    def __repr__(self) -> str:
        return f"RegexReplaceConversion({self.pattern.pattern!r}, {self.replacement!r})"


class NullStringConversion(_StringConversion):
    """Reads any of ``nulls`` as ``None``; writes ``None`` as the first of them."""

    def __init__(self, *nulls: str) -> None:
        self.nulls = tuple(nulls)
        self._lookup = frozenset(self.nulls)

    def execute(self, value: Any) -> Any:
        if value is None or value in self._lookup:
            return None
        return value

    def revert(self, value: Any) -> Any:
        if value is None:
            return self.nulls[0] if self.nulls else None
        return value

    def __repr__(self) -> str:
        return f"NullStringConversion{self.nulls!r}"


__all__ = [
    "TrimConversion",
    "LowerCaseConversion",
    "UpperCaseConversion",
    "RegexReplaceConversion",
    "NullStringConversion",
]
