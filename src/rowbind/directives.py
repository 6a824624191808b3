"""Declarative directives attached to target-type attributes.

Directives are placed in ``typing.Annotated`` metadata and are read in the
order they are declared::

    class Order:
        id: Annotated[int, Parsed(index=0)]
        status: Annotated[Status, Parsed(field="STATUS"), Trim(), EnumOptions()]

Only attributes carrying :class:`Parsed` are bound to columns. The remaining
directives describe the conversion chain for that attribute.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, ClassVar, TypeVar


class DirectiveKind(str, Enum):
    PARSED = "parsed"
    NULL_STRING = "null_string"
    ENUM_OPTIONS = "enum_options"
    TRIM = "trim"
    LOWER_CASE = "lower_case"
    UPPER_CASE = "upper_case"
    REPLACE = "replace"
    BOOLEAN_STRING = "boolean_string"
    FORMAT = "format"
    CONVERT = "convert"


class EnumSelector(str, Enum):
    """How enum members are matched against (and written to) column values."""

    NAME = "name"
    VALUE = "value"
    ORDINAL = "ordinal"
    STRING = "string"
    CUSTOM_FIELD = "custom_field"
    CUSTOM_METHOD = "custom_method"


DEFAULT_ENUM_SELECTORS: tuple[EnumSelector, ...] = (
    EnumSelector.NAME,
    EnumSelector.VALUE,
    EnumSelector.STRING,
)


class Directive:
    kind: ClassVar[DirectiveKind]


@dataclass(frozen=True)
class Parsed(Directive):
    """Binds an attribute to a column by ``field`` name or ``index``.

    ``field`` defaults to the attribute name. ``index=-1`` means the attribute
    is bound by name.
    """

    kind: ClassVar[DirectiveKind] = DirectiveKind.PARSED

    field: str | None = None
    index: int = -1
    default_null_read: str | None = None
    default_null_write: str | None = None
    apply_default_conversion: bool = True


@dataclass(frozen=True, init=False)
class NullString(Directive):
    kind: ClassVar[DirectiveKind] = DirectiveKind.NULL_STRING

    nulls: tuple[str, ...]

    def __init__(self, *nulls: str) -> None:
        object.__setattr__(self, "nulls", tuple(nulls))


@dataclass(frozen=True)
class EnumOptions(Directive):
    kind: ClassVar[DirectiveKind] = DirectiveKind.ENUM_OPTIONS

    selectors: tuple[EnumSelector, ...] = DEFAULT_ENUM_SELECTORS
    custom_element: str = ""


@dataclass(frozen=True)
class Trim(Directive):
    kind: ClassVar[DirectiveKind] = DirectiveKind.TRIM

    length: int = -1


@dataclass(frozen=True)
class LowerCase(Directive):
    kind: ClassVar[DirectiveKind] = DirectiveKind.LOWER_CASE


@dataclass(frozen=True)
class UpperCase(Directive):
    kind: ClassVar[DirectiveKind] = DirectiveKind.UPPER_CASE


@dataclass(frozen=True)
class Replace(Directive):
    kind: ClassVar[DirectiveKind] = DirectiveKind.REPLACE

    expression: str
    replacement: str


@dataclass(frozen=True)
class BooleanString(Directive):
    kind: ClassVar[DirectiveKind] = DirectiveKind.BOOLEAN_STRING

    true_strings: tuple[str, ...]
    false_strings: tuple[str, ...]


@dataclass(frozen=True)
class Format(Directive):
    """Formatting patterns (``strftime`` for dates, format specs for numbers).

    ``options`` are ``key=value`` strings applied to each formatter object.
    """

    kind: ClassVar[DirectiveKind] = DirectiveKind.FORMAT

    formats: tuple[str, ...] = ()
    options: tuple[str, ...] = ()


@dataclass(frozen=True)
class Convert(Directive):
    """Instantiates ``conversion_class(args)`` as a custom conversion."""

    kind: ClassVar[DirectiveKind] = DirectiveKind.CONVERT

    conversion_class: type
    args: tuple[str, ...] = ()


@dataclass(frozen=True)
class Headers:
    """Class-level header set used when reading or writing whole files."""

    sequence: tuple[str, ...] = ()
    extract: bool = True
    write: bool = True


HEADERS_ATTRIBUTE = "__rowbind_headers__"

T = TypeVar("T", bound=type)


def headers(*sequence: str, extract: bool = True, write: bool = True) -> Callable[[T], T]:
    """Class decorator attaching a :class:`Headers` directive to a target type."""

    def decorator(cls: T) -> T:
        setattr(cls, HEADERS_ATTRIBUTE, Headers(sequence=tuple(sequence), extract=extract, write=write))
        return cls

    return decorator


__all__ = [
    "DirectiveKind",
    "EnumSelector",
    "DEFAULT_ENUM_SELECTORS",
    "Directive",
    "Parsed",
    "NullString",
    "EnumOptions",
    "Trim",
    "LowerCase",
    "UpperCase",
    "Replace",
    "BooleanString",
    "Format",
    "Convert",
    "Headers",
    "HEADERS_ATTRIBUTE",
    "headers",
]
