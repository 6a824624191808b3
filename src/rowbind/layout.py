"""Reconciliation of bindings against the column layout of the input.

Name-bound attributes can only be placed once the header row is known, and
the layout may be narrowed to a selection of columns or reordered. The
:class:`HeaderReconciler` turns a :class:`~rowbind.binding.BindingSet` and a
layout into a :class:`SlotTable`: one optional binding per row position.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, NamedTuple, Sequence

from rowbind.binding import Binding, BindingSet
from rowbind.exceptions import ConfigurationError
from rowbind.logging import NullLogger, RunLogger


@dataclass(frozen=True)
class ColumnLayout:
    headers: tuple[str | None, ...] | None = None
    selected_indexes: tuple[int, ...] | None = None
    columns_reordered: bool = False


@dataclass
class ParsingContext:
    """Layout of the input being processed plus the current record number."""

    headers: Sequence[str | None] | None = None
    selected_indexes: Sequence[int] | None = None
    columns_reordered: bool = False
    record_number: int = 0

    @property
    def layout(self) -> ColumnLayout:
        return ColumnLayout(
            headers=tuple(self.headers) if self.headers is not None else None,
            selected_indexes=tuple(self.selected_indexes) if self.selected_indexes is not None else None,
            columns_reordered=self.columns_reordered,
        )

    def header_at(self, position: int) -> str | None:
        if self.headers is None or not 0 <= position < len(self.headers):
            return None
        return self.headers[position]


class LayoutKey(NamedTuple):
    headers: tuple[str | None, ...] | None
    selected_indexes: tuple[int, ...] | None
    reordered: bool
    reading: bool


@dataclass(frozen=True)
class SlotTable:
    """Binding (or ``None``) per row position for one layout."""

    slots: tuple[Binding | None, ...]
    key: LayoutKey
    unresolved: tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.slots)

    def __getitem__(self, position: int) -> Binding | None:
        return self.slots[position]

    def bound(self, limit: int | None = None) -> Iterator[tuple[int, Binding]]:
        """Yield ``(position, binding)`` for bound positions below ``limit``."""

        end = len(self.slots) if limit is None else min(limit, len(self.slots))
        for position in range(end):
            binding = self.slots[position]
            if binding is not None:
                yield position, binding

    @property
    def bound_positions(self) -> int:
        return sum(1 for slot in self.slots if slot is not None)


class HeaderReconciler:
    """Computes and caches the :class:`SlotTable` for the current layout.

    A table is reused while the layout key stays the same and rows are no
    wider than the widest row seen. On the read path the table never shrinks.
    """

    def __init__(
        self,
        target_type: type,
        *,
        strict_header_validation: bool = False,
        logger: RunLogger | None = None,
    ) -> None:
        self.target_type = target_type
        self.strict_header_validation = strict_header_validation
        self.logger = logger or NullLogger()
        self.cache_hits = 0
        self._table: SlotTable | None = None
        self._width = 0

    @property
    def table(self) -> SlotTable | None:
        return self._table

    def reset(self) -> None:
        self._table = None
        self._width = 0

    def reconcile(
        self,
        bindings: BindingSet,
        row_width: int,
        headers: Sequence[str | None] | None = None,
        selected_indexes: Sequence[int] | None = None,
        reordered: bool = False,
        *,
        reading: bool = True,
    ) -> SlotTable:
        key = LayoutKey(
            headers=tuple(headers) if headers is not None else None,
            selected_indexes=tuple(selected_indexes) if selected_indexes is not None else None,
            reordered=bool(reordered),
            reading=reading,
        )
        if self._table is not None and self._table.key == key and row_width <= self._width:
            self.cache_hits += 1
            return self._table

        width = max(
            len(key.headers or ()),
            row_width,
            bindings.highest_index + 1,
            self._width if reading else 0,
        )
        slots: list[Binding | None] = [None] * width
        unresolved: set[str] = set()

        for binding in bindings:
            if binding.is_index_bound:
                position = binding.index
            else:
                position = self._locate(binding.field_name, key.headers)
                if position == -1:
                    unresolved.add(binding.field_name)
                    continue
            if slots[position] is None:
                slots[position] = binding

        missing = tuple(sorted(unresolved))
        if reading and missing:
            self._check_unresolved(missing, key.headers)

        if key.selected_indexes is not None:
            chosen = set(key.selected_indexes)
            slots = [slot if position in chosen else None for position, slot in enumerate(slots)]
            if key.reordered:
                slots = [slots[index] if 0 <= index < width else None for index in key.selected_indexes]

        self._table = SlotTable(slots=tuple(slots), key=key, unresolved=missing)
        self._width = width

        self.logger.event(
            "layout.reconciled",
            level=logging.DEBUG,
            target=self.target_type.__qualname__,
            width=len(self._table),
            bound_positions=self._table.bound_positions,
            unresolved=list(missing),
            reading=reading,
        )
        return self._table

    @staticmethod
    def _locate(name: str, headers: tuple[str | None, ...] | None) -> int:
        if not headers:
            return -1
        for position, header in enumerate(headers):
            if header == name:
                return position
        return -1

    def _check_unresolved(self, missing: tuple[str, ...], headers: tuple[str | None, ...] | None) -> None:
        if headers is None:
            raise ConfigurationError(
                f"Could not find fields {list(missing)} in input of {self.target_type.__qualname__}. "
                "Enable header extraction so that field names can be matched."
            )
        if not headers:
            raise ConfigurationError(
                f"Could not find fields {list(missing)} in input of {self.target_type.__qualname__}. "
                "The input header row is empty."
            )
        if self.strict_header_validation:
            raise ConfigurationError(
                f"Could not find fields {list(missing)} in input of {self.target_type.__qualname__}. "
                f"Names found: {list(headers)}"
            )
        self.logger.debug(
            "Fields %s of %s not found in input headers; leaving them unset",
            list(missing),
            self.target_type.__qualname__,
        )


__all__ = ["ColumnLayout", "ParsingContext", "LayoutKey", "SlotTable", "HeaderReconciler"]
