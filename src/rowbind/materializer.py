"""Conversion of rows into target-type instances and back.

A :class:`RecordMaterializer` resolves the bindings of its target type on
first use, reconciles them against the layout of each row it sees and runs
the conversion pipeline in the required direction.

Instances are not safe for concurrent use; create one materializer per
consumer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Sequence, TypeVar

from rowbind.binding import BindingResolver, BindingSet
from rowbind.exceptions import ConversionError, InstantiationError
from rowbind.layout import HeaderReconciler, ParsingContext, SlotTable
from rowbind.logging import NullLogger, RunLogger
from rowbind.pipeline import ConversionPipeline
from rowbind.settings import Settings

T = TypeVar("T")

ErrorHandler = Callable[[ConversionError, list[Any], ParsingContext], None]


@dataclass
class MaterializerState:
    initialized: bool = False
    bindings: BindingSet | None = None
    slot_table: SlotTable | None = None
    widest_row: int = 0
    output_row: list[Any] | None = None
    synthetic_headers: tuple[str | None, ...] | None = None
    records_written: int = 0


class RecordMaterializer(Generic[T]):
    def __init__(
        self,
        target_type: type[T],
        *,
        settings: Settings | None = None,
        error_handler: ErrorHandler | None = None,
        logger: RunLogger | None = None,
    ) -> None:
        self.target_type = target_type
        self.settings = settings or Settings()
        self.logger = logger or NullLogger()
        self.error_handler: ErrorHandler = error_handler or self._log_write_failure
        self.state = MaterializerState()
        self._strict_header_validation = self.settings.strict_header_validation
        self._reconciler = HeaderReconciler(
            target_type,
            strict_header_validation=self._strict_header_validation,
            logger=self.logger,
        )

    # ------------------------------------------------------------------ #
    # Configuration
    # ------------------------------------------------------------------ #

    @property
    def strict_header_validation(self) -> bool:
        return self._strict_header_validation

    @strict_header_validation.setter
    def strict_header_validation(self, value: bool) -> None:
        self._strict_header_validation = bool(value)
        self._reconciler.strict_header_validation = self._strict_header_validation
        self._reconciler.reset()

    @property
    def reconciler(self) -> HeaderReconciler:
        return self._reconciler

    @property
    def bindings(self) -> BindingSet:
        self._initialize()
        return self.state.bindings

    def create_resolver(self) -> BindingResolver:
        """Return the resolver used for the target type; override to filter attributes."""
        return BindingResolver(self.target_type, logger=self.logger)

    def _initialize(self) -> None:
        if self.state.initialized:
            return
        self.state.bindings = self.create_resolver().resolve()
        self.state.initialized = True

    # ------------------------------------------------------------------ #
    # Read path
    # ------------------------------------------------------------------ #

    def to_object(self, row: Sequence[Any], context: ParsingContext | None = None) -> T:
        """Build a ``target_type`` instance from ``row``.

        Raises :class:`ConversionError` when a value cannot be converted or
        assigned, and :class:`InstantiationError` when the target type cannot
        be created without arguments.
        """

        self._initialize()
        context = context or ParsingContext()
        values = list(row)

        table = self._reconciler.reconcile(
            self.state.bindings,
            len(values),
            context.headers,
            context.selected_indexes,
            context.columns_reordered,
            reading=True,
        )
        self.state.slot_table = table
        self.state.widest_row = max(self.state.widest_row, len(values))

        converted = ConversionPipeline(table).execute(values, context)
        instance = self._instantiate(values)
        for position, binding, value in converted:
            try:
                binding.accessor.set(instance, value)
            except ConversionError as exc:
                exc.row = values
                exc.column_index = position
                exc.column_name = context.header_at(position) or binding.field_name
                exc.record_number = context.record_number
                raise
        return instance

    def _instantiate(self, row: list[Any]) -> T:
        try:
            return self.target_type()
        except Exception as exc:
            raise InstantiationError(
                f"Unable to instantiate class '{self.target_type.__qualname__}'", row=row
            ) from exc

    # ------------------------------------------------------------------ #
    # Write path
    # ------------------------------------------------------------------ #

    def to_record(
        self,
        instance: Any,
        headers: Sequence[str | None] | None = None,
        indexes_to_write: Sequence[int] | None = None,
    ) -> list[Any] | None:
        """Convert ``instance`` into a row of column values.

        Returns ``None`` for a ``None`` instance, or when a value could not be
        read or converted; such errors go to the error handler instead of
        being raised.
        """

        if instance is None:
            return None
        self._initialize()

        names = tuple(headers) if headers is not None else self.synthetic_headers()
        if headers is not None:
            width = len(names)
        elif indexes_to_write is not None:
            width = max(max(indexes_to_write, default=-1) + 1, len(indexes_to_write))
        else:
            width = len(names)

        self.state.records_written += 1
        context = ParsingContext(
            headers=names,
            selected_indexes=indexes_to_write,
            record_number=self.state.records_written,
        )
        table = self._reconciler.reconcile(
            self.state.bindings,
            width,
            names,
            indexes_to_write,
            False,
            reading=False,
        )
        self.state.slot_table = table

        row = self._output_row(width)
        try:
            for position, binding in table.bound(width):
                try:
                    row[position] = binding.accessor.get(instance)
                except ConversionError as exc:
                    exc.column_index = position
                    exc.column_name = context.header_at(position) or binding.field_name
                    exc.record_number = context.record_number
                    raise
            ConversionPipeline(table).revert(row, context)
        except ConversionError as error:
            error.mark_as_non_fatal()
            payload = [instance] if not isinstance(instance, self.target_type) else list(row)
            self.error_handler(error, payload, context)
            return None
        return list(row)

    def _output_row(self, width: int) -> list[Any]:
        row = self.state.output_row
        if row is None or len(row) != width:
            row = [None] * width
            self.state.output_row = row
        else:
            row[:] = [None] * width
        return row

    def synthetic_headers(self) -> tuple[str | None, ...]:
        """Header names used on the write path when none are given.

        Positions not claimed by an index-bound attribute receive the names
        of name-bound attributes in declaration order; any remaining
        positions stay unnamed.
        """

        if self.state.synthetic_headers is None:
            bindings = self.bindings
            width = max(bindings.highest_index + 1, len(bindings))
            names: list[str | None] = [None] * width
            claimed = {binding.index for binding in bindings.index_bound}
            free = (position for position in range(width) if position not in claimed)
            for binding in bindings.name_bound:
                names[next(free)] = binding.field_name
            self.state.synthetic_headers = tuple(names)
        return self.state.synthetic_headers

    def _log_write_failure(self, error: ConversionError, payload: list[Any], context: ParsingContext) -> None:
        self.logger.event(
            "record.write_failed",
            level=logging.WARNING,
            message=f"Unable to write record {context.record_number} of {self.target_type.__qualname__}",
            target=self.target_type.__qualname__,
            error=error.message,
            column_index=error.column_index,
            column_name=error.column_name,
        )


__all__ = ["MaterializerState", "RecordMaterializer", "ErrorHandler"]
