"""Discovery of annotated attributes and class-level directives on target types."""

from __future__ import annotations

import inspect
import types
import typing
from dataclasses import dataclass
from typing import Any, Annotated, ClassVar, Union

from rowbind.directives import HEADERS_ATTRIBUTE, Directive, Headers, Parsed
from rowbind.exceptions import ConfigurationError, ConversionError

_UNSET = object()


@dataclass(frozen=True)
class FieldAccessor:
    """Reads and writes one attribute on instances of ``owner``."""

    name: str
    owner: type

    def get(self, instance: Any) -> Any:
        try:
            return getattr(instance, self.name)
        except AttributeError as exc:
            if self._is_unassigned(instance):
                return None
            if isinstance(instance, self.owner):
                raise ConversionError(f"Unable to get value from field '{self.name}': {exc}") from exc
            raise ConversionError(
                f"Unable to get value from field '{self.name}': "
                f"instance of {type(instance).__name__} is not a {self.owner.__name__}"
            ) from exc
        except Exception as exc:
            raise ConversionError(f"Unable to get value from field '{self.name}': {exc}") from exc

    def _is_unassigned(self, instance: Any) -> bool:
        """Declared on the class but never assigned on ``instance``."""

        if not isinstance(instance, self.owner):
            return False
        attribute = inspect.getattr_static(type(instance), self.name, _UNSET)
        return attribute is _UNSET or isinstance(attribute, types.MemberDescriptorType)

    def set(self, instance: Any, value: Any) -> None:
        try:
            setattr(instance, self.name, value)
        except Exception as exc:
            raise ConversionError(
                f"Unable to set value {value!r} to field '{self.name}' of {type(instance).__name__}: {exc}",
                value=value,
            ) from exc


@dataclass(frozen=True)
class FieldInfo:
    """An annotated attribute with its declared directives."""

    name: str
    owner: type
    field_type: Any
    optional: bool
    directives: tuple[Directive, ...]
    accessor: FieldAccessor

    @property
    def parsed(self) -> Parsed | None:
        for directive in self.directives:
            if isinstance(directive, Parsed):
                return directive
        return None

    @property
    def type_name(self) -> str:
        return getattr(self.field_type, "__name__", str(self.field_type))

    def describe(self) -> str:
        return f"field '{self.name}' ({self.type_name})"


def _unwrap_type(hint: Any) -> tuple[Any, bool, tuple[Directive, ...]]:
    directives: tuple[Directive, ...] = ()
    if typing.get_origin(hint) is Annotated:
        base, *metadata = typing.get_args(hint)
        directives = tuple(item for item in metadata if isinstance(item, Directive))
        hint = base

    optional = False
    origin = typing.get_origin(hint)
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in typing.get_args(hint) if arg is not type(None)]
        optional = len(args) != len(typing.get_args(hint))
        if len(args) == 1:
            hint = args[0]
    return hint, optional, directives


def _own_annotations(cls: type) -> dict[str, Any]:
    try:
        return inspect.get_annotations(cls, eval_str=True)
    except Exception as exc:
        raise ConfigurationError(f"Unable to read annotations of class {cls.__qualname__}: {exc}") from exc


def _is_class_var(hint: Any) -> bool:
    return hint is ClassVar or typing.get_origin(hint) is ClassVar


def get_all_fields(cls: type) -> dict[str, FieldInfo]:
    """Return annotated attributes of ``cls`` and its ancestors.

    The class's own attributes come first in declaration order, followed by
    ancestors along the MRO. An attribute redeclared lower in the hierarchy
    shadows the ancestor's declaration.
    """

    out: dict[str, FieldInfo] = {}
    for klass in cls.__mro__:
        if klass is object:
            continue
        for name, hint in _own_annotations(klass).items():
            if name in out or _is_class_var(hint):
                continue
            field_type, optional, directives = _unwrap_type(hint)
            out[name] = FieldInfo(
                name=name,
                owner=cls,
                field_type=field_type,
                optional=optional,
                directives=directives,
                accessor=FieldAccessor(name=name, owner=cls),
            )
    return out


def get_parsed_fields(cls: type) -> list[FieldInfo]:
    return [info for info in get_all_fields(cls).values() if info.parsed is not None]


def find_headers(cls: type) -> Headers | None:
    """Return the nearest :class:`Headers` directive in the hierarchy of ``cls``.

    The class itself is checked first, then its bases depth-first in the order
    they are declared.
    """

    own = cls.__dict__.get(HEADERS_ATTRIBUTE)
    if isinstance(own, Headers):
        return own
    for base in cls.__bases__:
        if base is object:
            continue
        found = find_headers(base)
        if found is not None:
            return found
    return None


def _all_fields_bound_by(cls: type, *, by_name: bool) -> bool:
    fields = get_parsed_fields(cls)
    if not fields:
        return False
    for info in fields:
        index_bound = info.parsed.index != -1
        if index_bound == by_name:
            return False
    return True


def all_fields_index_based(cls: type) -> bool:
    """Whether every bound attribute of ``cls`` is mapped to a column index."""
    return _all_fields_bound_by(cls, by_name=False)


def all_fields_name_based(cls: type) -> bool:
    """Whether every bound attribute of ``cls`` is mapped to a column name."""
    return _all_fields_bound_by(cls, by_name=True)


def get_selected_indexes(cls: type) -> list[int]:
    indexes: list[int] = []
    for info in get_parsed_fields(cls):
        index = info.parsed.index
        if index == -1:
            continue
        if index in indexes:
            raise ConfigurationError(
                f"Duplicate field index '{index}' found in attribute '{info.name}' of class {cls.__qualname__}"
            )
        indexes.append(index)
    return indexes


def derive_header_names(cls: type) -> tuple[str, ...]:
    """Derive column names from bound attributes, honouring declared indexes.

    Returns an empty tuple when an index points past the number of bound
    attributes, as no complete header row can be derived then.
    """

    fields = get_parsed_fields(cls)
    names: list[str | None] = [None] * len(fields)
    floating: list[str] = []
    for info in fields:
        parsed = info.parsed
        name = parsed.field or info.name
        if parsed.index == -1:
            floating.append(name)
            continue
        if parsed.index >= len(names):
            return ()
        if names[parsed.index] is not None:
            raise ConfigurationError(
                f"Duplicate field index found in attribute '{info.name}' of class {cls.__qualname__}"
            )
        names[parsed.index] = name

    remaining = iter(floating)
    return tuple(name if name is not None else next(remaining) for name in names)


__all__ = [
    "FieldAccessor",
    "FieldInfo",
    "get_all_fields",
    "get_parsed_fields",
    "find_headers",
    "all_fields_index_based",
    "all_fields_name_based",
    "get_selected_indexes",
    "derive_header_names",
]
