"""Batch reading and writing of objects over row iterables."""

from __future__ import annotations

from typing import Any, Generic, Iterable, Iterator, Sequence, TypeVar

from rowbind.introspection import all_fields_index_based, derive_header_names, find_headers
from rowbind.layout import ParsingContext
from rowbind.logging import NullLogger, RunLogger
from rowbind.materializer import ErrorHandler, RecordMaterializer
from rowbind.settings import Settings

T = TypeVar("T")


def _header_text(value: Any) -> str:
    return "" if value is None else str(value).strip()


class ObjectReader(Generic[T]):
    """Reads ``target_type`` instances from rows.

    When no headers are given, the first row is taken as the header row if
    the class's ``headers`` directive asks for extraction (the default) or,
    without a directive, if any attribute is bound by name.
    """

    def __init__(
        self,
        target_type: type[T],
        *,
        settings: Settings | None = None,
        logger: RunLogger | None = None,
        materializer: RecordMaterializer[T] | None = None,
    ) -> None:
        self.target_type = target_type
        self.logger = logger or NullLogger()
        self.materializer = materializer or RecordMaterializer(target_type, settings=settings, logger=self.logger)

    def _extract_headers(self) -> bool:
        directive = find_headers(self.target_type)
        if directive is not None:
            return directive.extract
        return not all_fields_index_based(self.target_type)

    def read(
        self,
        rows: Iterable[Sequence[Any]],
        headers: Sequence[str] | None = None,
        selected_indexes: Sequence[int] | None = None,
        columns_reordered: bool = False,
    ) -> Iterator[T]:
        iterator = iter(rows)
        if headers is None:
            directive = find_headers(self.target_type)
            if self._extract_headers():
                first = next(iterator, None)
                if first is None:
                    return
                headers = [_header_text(value) for value in first]
            elif directive is not None and directive.sequence:
                headers = directive.sequence

        context = ParsingContext(
            headers=tuple(headers) if headers is not None else None,
            selected_indexes=selected_indexes,
            columns_reordered=columns_reordered,
        )
        for row in iterator:
            if not any(value is not None and value != "" for value in row):
                continue
            context.record_number += 1
            yield self.materializer.to_object(row, context)

        self.logger.event(
            "read.completed",
            message=f"Read {context.record_number} record(s) of {self.target_type.__qualname__}",
            target=self.target_type.__qualname__,
            records=context.record_number,
        )

    def read_all(self, rows: Iterable[Sequence[Any]], **kwargs: Any) -> list[T]:
        return list(self.read(rows, **kwargs))


class ObjectWriter(Generic[T]):
    """Writes ``target_type`` instances as rows.

    Records that fail to convert are passed to the materializer's error
    handler and skipped.
    """

    def __init__(
        self,
        target_type: type[T],
        *,
        headers: Sequence[str] | None = None,
        indexes_to_write: Sequence[int] | None = None,
        settings: Settings | None = None,
        error_handler: ErrorHandler | None = None,
        logger: RunLogger | None = None,
    ) -> None:
        self.target_type = target_type
        self.headers = tuple(headers) if headers is not None else None
        self.indexes_to_write = indexes_to_write
        self.logger = logger or NullLogger()
        self.materializer = RecordMaterializer(
            target_type,
            settings=settings,
            error_handler=error_handler,
            logger=self.logger,
        )

    def header_row(self) -> tuple[str, ...] | None:
        if self.headers is not None:
            return self.headers
        directive = find_headers(self.target_type)
        if directive is not None and not directive.write:
            return None
        if directive is not None and directive.sequence:
            return directive.sequence
        return derive_header_names(self.target_type) or None

    def write(self, instances: Iterable[Any]) -> Iterator[list[Any]]:
        headers = self.header_row()
        written = 0
        skipped = 0
        for instance in instances:
            row = self.materializer.to_record(instance, headers, self.indexes_to_write)
            if row is None:
                skipped += 1
                continue
            written += 1
            yield row

        self.logger.event(
            "write.completed",
            message=f"Wrote {written} record(s) of {self.target_type.__qualname__}",
            target=self.target_type.__qualname__,
            records=written,
            skipped=skipped,
        )

    def write_all(self, instances: Iterable[Any], *, include_headers: bool = True) -> list[list[Any]]:
        rows: list[list[Any]] = []
        headers = self.header_row()
        if include_headers and headers is not None:
            rows.append(list(headers))
        rows.extend(self.write(instances))
        return rows


__all__ = ["ObjectReader", "ObjectWriter"]
