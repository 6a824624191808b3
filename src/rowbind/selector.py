"""Selection of conversions from field directives.

``select_conversion`` turns one directive on a field into a concrete
:class:`~rowbind.conversions.Conversion` (or ``None`` when the directive does
not describe a conversion). ``default_conversion`` gives the type-driven
conversion appended after explicit ones, subject to ``should_apply_default``.
The resolver builds the default with ``build_default_conversion`` and only
parses the null-read literal (``assign_default_null``) once the default is kept.
"""

from __future__ import annotations

import inspect
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable

from rowbind.conversions import (
    BooleanConversion,
    Conversion,
    DateConversion,
    DecimalConversion,
    EnumConversion,
    FloatConversion,
    FormattedConversion,
    FormattedNumberConversion,
    IntegerConversion,
    LowerCaseConversion,
    NullStringConversion,
    RegexReplaceConversion,
    TrimConversion,
    UpperCaseConversion,
)
from rowbind.directives import (
    BooleanString,
    Convert,
    Directive,
    DirectiveKind,
    EnumOptions,
    Format,
    NullString,
    Replace,
    Trim,
)
from rowbind.exceptions import ConfigurationError, RuntimeTypeError
from rowbind.introspection import FieldInfo
from rowbind.properties import apply_format_settings

NOW = "now"


def _null_read(field: FieldInfo) -> str | None:
    parsed = field.parsed
    return parsed.default_null_read if parsed is not None else None


def _null_write(field: FieldInfo) -> str | None:
    parsed = field.parsed
    return parsed.default_null_write if parsed is not None else None


def _is_enum(field_type: Any) -> bool:
    return isinstance(field_type, type) and issubclass(field_type, Enum)


def _parse_bool(text: str | None) -> bool | None:
    if text is None:
        return None
    return text.strip().lower() == "true"


# ---------------------------------------------------------------------------
# Directive handlers
# ---------------------------------------------------------------------------


def _null_string(field: FieldInfo, directive: NullString) -> Conversion:
    return NullStringConversion(*directive.nulls)


def _enum_options(field: FieldInfo, directive: EnumOptions) -> Conversion:
    enum_type = field.field_type
    if not _is_enum(enum_type):
        raise ConfigurationError(
            f"Invalid EnumOptions directive on attribute {field.name} of type {field.type_name}. "
            "Attribute must be an enum type."
        )
    null_read = _null_read(field)
    null_value = enum_type[null_read] if null_read is not None else None
    element = directive.custom_element.strip() or None
    return EnumConversion(enum_type, null_value, _null_write(field), element, directive.selectors)


def _trim(field: FieldInfo, directive: Trim) -> Conversion:
    if directive.length == -1:
        return TrimConversion()
    return TrimConversion(directive.length)


def _lower_case(field: FieldInfo, directive: Directive) -> Conversion:
    return LowerCaseConversion()


def _upper_case(field: FieldInfo, directive: Directive) -> Conversion:
    return UpperCaseConversion()


def _replace(field: FieldInfo, directive: Replace) -> Conversion:
    return RegexReplaceConversion(directive.expression, directive.replacement)


def _boolean_string(field: FieldInfo, directive: BooleanString) -> Conversion:
    if field.field_type is not bool:
        raise RuntimeTypeError(f"Invalid directive: field {field.name} has type {field.type_name} instead of bool.")
    value_for_null = _parse_bool(_null_read(field))
    if value_for_null is None and not field.optional:
        value_for_null = False
    return BooleanConversion(directive.true_strings, directive.false_strings, value_for_null, _null_write(field))


def _format(field: FieldInfo, directive: Format) -> Conversion | None:
    field_type = field.field_type
    null_read = _null_read(field)
    formats = directive.formats

    conversion: Conversion | None = None
    if field_type in (Decimal, int, float):
        conversion = FormattedNumberConversion(formats, number_type=field_type, null_write=_null_write(field))
    elif field_type in (datetime, date):
        conversion = DateConversion(field_type, formats=formats, null_write=_null_write(field))

    if conversion is None:
        return None

    if directive.options:
        if not isinstance(conversion, FormattedConversion):
            raise ConfigurationError(
                f"Options {list(directive.options)} not supported by conversion of type "
                f"'{type(conversion).__name__}'. It must be a FormattedConversion"
            )
        for formatter in conversion.formatter_objects():
            apply_format_settings(formatter, directive.options)

    # Parsed after options so the null literal uses the configured separators and time zone.
    if null_read is not None:
        conversion.null_read = _format_null_read(field, conversion, null_read)
    return conversion


def _format_null_read(field: FieldInfo, conversion: Conversion, null_read: str) -> Any:
    if isinstance(conversion, DateConversion):
        if null_read.strip().lower() == NOW:
            return datetime.now() if field.field_type is datetime else date.today()
        if not conversion.formatters:
            raise ConfigurationError("No format defined")
    try:
        return conversion.execute(null_read)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid default value '{null_read}' for {field.describe()}") from exc


def _convert(field: FieldInfo, directive: Convert) -> Conversion:
    conversion_class = directive.conversion_class
    class_name = getattr(conversion_class, "__qualname__", repr(conversion_class))
    if not (isinstance(conversion_class, type) and issubclass(conversion_class, Conversion)):
        raise ConfigurationError(f"Not a valid conversion class: '{class_name}'")

    args = tuple(directive.args)
    try:
        inspect.signature(conversion_class).bind(args)
    except TypeError as exc:
        raise ConfigurationError(
            f"Could not find a constructor accepting a single tuple of string arguments "
            f"in custom conversion class '{class_name}'"
        ) from exc
    except ValueError:
        # No introspectable signature; let instantiation decide.
        pass

    try:
        return conversion_class(args)
    except Exception as exc:
        raise ConfigurationError(f"Unexpected error instantiating custom conversion class '{class_name}'") from exc


_HANDLERS: dict[DirectiveKind, Callable[[FieldInfo, Any], Conversion | None]] = {
    DirectiveKind.NULL_STRING: _null_string,
    DirectiveKind.ENUM_OPTIONS: _enum_options,
    DirectiveKind.TRIM: _trim,
    DirectiveKind.LOWER_CASE: _lower_case,
    DirectiveKind.UPPER_CASE: _upper_case,
    DirectiveKind.REPLACE: _replace,
    DirectiveKind.BOOLEAN_STRING: _boolean_string,
    DirectiveKind.FORMAT: _format,
    DirectiveKind.CONVERT: _convert,
}


def select_conversion(field: FieldInfo, directive: Directive) -> Conversion | None:
    """Return the conversion described by ``directive`` for ``field``, if any."""

    handler = _HANDLERS.get(directive.kind)
    if handler is None:
        return None
    return handler(field, directive)


# ---------------------------------------------------------------------------
# Type-driven defaults
# ---------------------------------------------------------------------------

def build_default_conversion(field: FieldInfo) -> Conversion | None:
    """Return the conversion implied by the field's type with no null-read value yet.

    ``None`` for strings and types without a default conversion.
    """

    field_type = field.field_type
    null_write = _null_write(field)
    if field_type is bool:
        return BooleanConversion(null_write=null_write)
    if field_type is int:
        return IntegerConversion(null_write=null_write)
    if field_type is float:
        return FloatConversion(null_write=null_write)
    if field_type is Decimal:
        return DecimalConversion(null_write=null_write)
    if _is_enum(field_type):
        return EnumConversion(field_type, null_write=null_write)
    if field_type in (datetime, date):
        return DateConversion(field_type, null_write=null_write)
    return None


def assign_default_null(field: FieldInfo, conversion: Conversion) -> Conversion:
    """Parse the field's ``default_null_read`` literal into ``conversion.null_read``."""

    null_read = _null_read(field)
    if null_read is None:
        return conversion
    field_type = field.field_type
    try:
        if field_type is bool:
            value = _parse_bool(null_read)
        elif _is_enum(field_type):
            value = field_type[null_read]
        elif field_type in (datetime, date):
            if null_read.strip().lower() == NOW:
                value = datetime.now() if field_type is datetime else date.today()
            else:
                value = field_type.fromisoformat(null_read)
        else:
            value = field_type(null_read)
    except (ValueError, KeyError, InvalidOperation) as exc:
        raise ConfigurationError(f"Invalid default value '{null_read}' for {field.describe()}") from exc
    conversion.null_read = value
    return conversion


def default_conversion(field: FieldInfo) -> Conversion | None:
    """Return the conversion implied by the field's type, or ``None`` for strings."""

    conversion = build_default_conversion(field)
    if conversion is None:
        return None
    return assign_default_null(field, conversion)


def should_apply_default(last: Conversion | None, default: Conversion | None) -> bool:
    """Whether ``default`` still needs to run after the last explicit conversion.

    The default is redundant when the last explicit conversion is of the same
    class or declares the same forward and backward value kinds.
    """

    if default is None:
        return False
    if last is None:
        return True
    if type(last) is type(default):
        return False
    return not (last.forward_kind == default.forward_kind and last.backward_kind == default.backward_kind)


__all__ = [
    "select_conversion",
    "build_default_conversion",
    "assign_default_null",
    "default_conversion",
    "should_apply_default",
]
