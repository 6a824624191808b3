"""Resolution of target-type attributes into column bindings.

A :class:`Binding` ties one attribute to either a column index or a column
name, together with the ordered chain of conversions applied to its values.
Bindings are resolved once per target type and validated for duplicates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterator, Sequence

from rowbind.conversions import Conversion
from rowbind.directives import Directive, DirectiveKind
from rowbind.exceptions import ConfigurationError, RuntimeTypeError
from rowbind.introspection import FieldAccessor, FieldInfo, get_all_fields
from rowbind.logging import NullLogger, RunLogger
from rowbind.selector import assign_default_null, build_default_conversion, select_conversion, should_apply_default


@dataclass(frozen=True)
class Binding:
    """One attribute bound to a column by ``index`` or by ``field_name``."""

    field: FieldInfo
    field_name: str
    index: int
    accessor: FieldAccessor
    conversions: tuple[Conversion, ...] = ()

    @property
    def is_index_bound(self) -> bool:
        return self.index >= 0

    @property
    def is_name_bound(self) -> bool:
        return self.index == -1

    def describe(self) -> str:
        return self.field.describe()


@dataclass(frozen=True)
class BindingSet:
    """Bindings of one target type, in declaration order."""

    target_type: type
    bindings: tuple[Binding, ...]

    def __iter__(self) -> Iterator[Binding]:
        return iter(self.bindings)

    def __len__(self) -> int:
        return len(self.bindings)

    @property
    def index_bound(self) -> tuple[Binding, ...]:
        return tuple(binding for binding in self.bindings if binding.is_index_bound)

    @property
    def name_bound(self) -> tuple[Binding, ...]:
        return tuple(binding for binding in self.bindings if binding.is_name_bound)

    @property
    def highest_index(self) -> int:
        return max((binding.index for binding in self.bindings), default=-1)

    def get(self, attribute: str) -> Binding | None:
        for binding in self.bindings:
            if binding.field.name == attribute:
                return binding
        return None


def _directive_name(directive: Any) -> str:
    return type(directive).__name__


class BindingResolver:
    """Builds the :class:`BindingSet` of ``target_type`` from its directives.

    Subclasses may override :meth:`include_binding` to drop attributes.
    """

    def __init__(self, target_type: type, *, logger: RunLogger | None = None) -> None:
        self.target_type = target_type
        self.logger = logger or NullLogger()

    def include_binding(self, binding: Binding) -> bool:
        return True

    def resolve(self) -> BindingSet:
        bindings: list[Binding] = []
        for info in get_all_fields(self.target_type).values():
            parsed = info.parsed
            if parsed is None:
                continue
            binding = Binding(
                field=info,
                field_name=parsed.field or info.name,
                index=parsed.index,
                accessor=info.accessor,
                conversions=self._conversions_for(info),
            )
            if self.include_binding(binding):
                bindings.append(binding)

        validate_bindings(self.target_type, bindings)
        binding_set = BindingSet(target_type=self.target_type, bindings=tuple(bindings))

        self.logger.event(
            "bindings.resolved",
            level=logging.DEBUG,
            message=f"Resolved {len(binding_set)} binding(s) for {self.target_type.__qualname__}",
            target=self.target_type.__qualname__,
            bindings=len(binding_set),
            index_bound=len(binding_set.index_bound),
            name_bound=len(binding_set.name_bound),
        )
        return binding_set

    def _conversions_for(self, info: FieldInfo) -> tuple[Conversion, ...]:
        conversions: list[Conversion] = []
        for directive in info.directives:
            if directive.kind is DirectiveKind.PARSED:
                continue
            conversion = self._run_directive(info, directive, lambda d=directive: select_conversion(info, d))
            if conversion is not None:
                conversions.append(conversion)

        parsed = info.parsed
        if parsed is not None and parsed.apply_default_conversion:
            default = build_default_conversion(info)
            last = conversions[-1] if conversions else None
            if should_apply_default(last, default):
                conversions.append(self._run_directive(info, parsed, lambda: assign_default_null(info, default)))
        return tuple(conversions)

    def _run_directive(self, info: FieldInfo, directive: Directive, action) -> Conversion | None:
        context = (
            f"Error processing directive '{_directive_name(directive)}' of "
            f"{info.describe()} in {self.target_type.__qualname__}"
        )
        try:
            return action()
        except (ConfigurationError, RuntimeTypeError) as exc:
            raise type(exc)(f"{context}: {exc}") from exc
        except Exception as exc:
            raise ConfigurationError(f"{context}: {exc}") from exc


def validate_bindings(target_type: type, bindings: Sequence[Binding]) -> None:
    """Reject bindings that share a column index or a column name."""

    by_index: dict[int, list[Binding]] = {}
    by_name: dict[str, list[Binding]] = {}
    for binding in bindings:
        if binding.is_index_bound:
            by_index.setdefault(binding.index, []).append(binding)
        elif binding.field_name:
            by_name.setdefault(binding.field_name, []).append(binding)

    conflicts: list[str] = []
    for index, group in by_index.items():
        if len(group) > 1:
            conflicts.extend(f"Index: '{index}' of {binding.describe()}" for binding in group)
    for name, group in by_name.items():
        if len(group) > 1:
            conflicts.extend(f"Name: '{name}' of {binding.describe()}" for binding in group)

    if conflicts:
        raise ConfigurationError(
            f"Conflicting field mappings found in class {target_type.__qualname__}:\n\t" + "\n\t".join(conflicts)
        )


def resolve_bindings(target_type: type, *, logger: RunLogger | None = None) -> BindingSet:
    return BindingResolver(target_type, logger=logger).resolve()


__all__ = ["Binding", "BindingSet", "BindingResolver", "validate_bindings", "resolve_bindings"]
