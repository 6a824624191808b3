"""Apply ``key=value`` option strings to formatter objects."""

from __future__ import annotations

import inspect
import typing
from typing import Any, ClassVar, Iterable

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from rowbind.exceptions import ConfigurationError

_ADAPTER_CONFIG = ConfigDict(arbitrary_types_allowed=True)


def parse_options(options: Iterable[str]) -> dict[str, str]:
    """Split ``key=value`` strings into a mapping, rejecting malformed entries."""

    options = list(options)
    values: dict[str, str] = {}
    for setting in options:
        if setting is None:
            raise ConfigurationError(f"Illegal format among: {options}")
        pair = setting.split("=")
        if len(pair) != 2 or not pair[0].strip():
            raise ConfigurationError(f"Illegal format setting '{setting}' among: {options}")
        values[pair[0].strip()] = pair[1]
    return values


def writable_properties(formatter: Any) -> dict[str, Any]:
    """Return writable property names of ``formatter`` with their declared types."""

    cls = type(formatter)
    if isinstance(formatter, BaseModel):
        if cls.model_config.get("frozen"):
            return {}
        return {name: info.annotation for name, info in cls.model_fields.items()}

    properties: dict[str, Any] = {}
    try:
        hints = typing.get_type_hints(cls, include_extras=True)
    except (NameError, TypeError):
        # Unresolvable forward references; fall back to property setters only.
        hints = {}
    for name, hint in hints.items():
        if name.startswith("_") or hint is ClassVar or typing.get_origin(hint) is ClassVar:
            continue
        properties[name] = hint

    for name, member in inspect.getmembers(cls, lambda item: isinstance(item, property)):
        if name.startswith("_") or member.fset is None:
            continue
        try:
            returns = typing.get_type_hints(member.fget, include_extras=True).get("return", Any)
        except (NameError, TypeError):
            returns = Any
        properties[name] = returns
    return properties


def _set_property(formatter: Any, name: str, annotation: Any, value: str) -> None:
    cls_name = type(formatter).__name__
    if isinstance(formatter, BaseModel):
        try:
            setattr(formatter, name, value)
        except ValidationError as exc:
            raise ConfigurationError(
                f"Cannot set property '{name}' of formatter '{cls_name}'. Cannot convert '{value}': {exc}"
            ) from exc
        return

    try:
        coerced = TypeAdapter(annotation, config=_ADAPTER_CONFIG).validate_python(value)
    except Exception as exc:
        raise ConfigurationError(
            f"Cannot set property '{name}' of formatter '{cls_name}'. Cannot convert '{value}' to {annotation}"
        ) from exc
    try:
        setattr(formatter, name, coerced)
    except Exception as exc:
        raise ConfigurationError(
            f"Error setting property '{name}' of formatter '{cls_name}' with '{coerced}' (converted from '{value}')"
        ) from exc


def apply_format_settings(formatter: Any, options: Iterable[str]) -> None:
    """Configure ``formatter`` from ``key=value`` strings.

    Every key must name a writable property; the value is coerced to the
    property's declared type.
    """

    values = parse_options(options)
    if not values:
        return

    properties = writable_properties(formatter)
    for name in list(values):
        if name not in properties:
            continue
        _set_property(formatter, name, properties[name], values.pop(name))

    if values:
        raise ConfigurationError(
            f"Cannot find properties in formatter of type '{type(formatter).__name__}': {values}"
        )


__all__ = ["apply_format_settings", "parse_options", "writable_properties"]
