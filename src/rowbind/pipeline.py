"""Applies binding conversion chains to row values in either direction."""

from __future__ import annotations

from typing import Any, Sequence

from rowbind.binding import Binding
from rowbind.conversions import Conversion
from rowbind.exceptions import ConversionError
from rowbind.layout import ParsingContext, SlotTable


class ConversionPipeline:
    """Runs conversions of the bindings in ``table``.

    ``execute`` applies each chain in declaration order (read path);
    ``revert`` applies it in reverse (write path).
    """

    def __init__(self, table: SlotTable) -> None:
        self.table = table

    def execute(self, row: Sequence[Any], context: ParsingContext) -> list[tuple[int, Binding, Any]]:
        out: list[tuple[int, Binding, Any]] = []
        for position, binding in self.table.bound(len(row)):
            value = row[position]
            for conversion in binding.conversions:
                value = self._step(conversion.execute, conversion, binding, value, position, row, context)
            out.append((position, binding, value))
        return out

    def revert(self, row: list[Any], context: ParsingContext) -> list[Any]:
        """Convert attribute values in ``row`` back to column values, in place."""

        for position, binding in self.table.bound(len(row)):
            value = row[position]
            for conversion in reversed(binding.conversions):
                value = self._step(conversion.revert, conversion, binding, value, position, row, context)
            row[position] = value
        return row

    def _step(
        self,
        action,
        conversion: Conversion,
        binding: Binding,
        value: Any,
        position: int,
        row: Sequence[Any],
        context: ParsingContext,
    ) -> Any:
        try:
            return action(value)
        except ConversionError as exc:
            _fill_context(exc, position, row, context)
            raise
        except Exception as exc:
            raise ConversionError(
                f"Error converting value of {binding.describe()} using {conversion!r}: {exc}",
                row=row,
                column_index=position,
                column_name=context.header_at(position) or binding.field_name,
                value=value,
                record_number=context.record_number,
            ) from exc


def _fill_context(exc: ConversionError, position: int, row: Sequence[Any], context: ParsingContext) -> None:
    if exc.column_index is None:
        exc.column_index = position
    if exc.column_name is None:
        exc.column_name = context.header_at(position)
    if exc.row is None:
        exc.row = list(row)
    if exc.record_number is None:
        exc.record_number = context.record_number


__all__ = ["ConversionPipeline"]
