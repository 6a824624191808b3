import logging
import uuid
from datetime import date
from decimal import Decimal

import pytest

from rowbind.exceptions import ConfigurationError, ConversionError, InstantiationError
from rowbind.layout import ParsingContext
from rowbind.logging import RunLogger
from rowbind.materializer import RecordMaterializer
from rowbind.settings import Settings

from sample_models import (
    Color,
    FaultyPerson,
    IndexedPerson,
    Invoice,
    Member,
    Mixed,
    NeedsArguments,
    Paint,
    Person,
    Scored,
    Triple,
    UnloadedPerson,
)


class _ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


def _capturing_logger() -> tuple[RunLogger, _ListHandler]:
    base = logging.getLogger(f"rowbind.test.{uuid.uuid4().hex}")
    base.setLevel(logging.DEBUG)
    base.propagate = False
    handler = _ListHandler()
    base.addHandler(handler)
    return RunLogger(base, run_id="test-run"), handler


def test_reads_named_columns_into_instance() -> None:
    materializer = RecordMaterializer(Person)

    person = materializer.to_object(["Alice", "30"], ParsingContext(headers=("name", "age")))

    assert isinstance(person, Person)
    assert person.name == "Alice"
    assert person.age == 30


def test_unbound_columns_are_left_unset() -> None:
    person = RecordMaterializer(Person).to_object(["Alice"], ParsingContext(headers=("name",)))

    assert person.name == "Alice"
    assert not hasattr(person, "age")


def test_strict_header_validation_from_settings_and_property() -> None:
    strict = RecordMaterializer(Person, settings=Settings(strict_header_validation=True))
    assert strict.strict_header_validation is True
    with pytest.raises(ConfigurationError, match="Could not find fields"):
        strict.to_object(["Alice"], ParsingContext(headers=("name",)))

    strict.strict_header_validation = False
    assert strict.to_object(["Alice"], ParsingContext(headers=("name",))).name == "Alice"


def test_read_conversion_errors_carry_context() -> None:
    context = ParsingContext(headers=("name", "age"), record_number=7)

    with pytest.raises(ConversionError) as excinfo:
        RecordMaterializer(Person).to_object(["Alice", "abc"], context)

    error = excinfo.value
    assert error.fatal is True
    assert error.column_index == 1
    assert error.column_name == "age"
    assert error.value == "abc"
    assert error.record_number == 7
    assert error.row == ["Alice", "abc"]


def test_target_type_must_be_constructible_without_arguments() -> None:
    with pytest.raises(InstantiationError, match="NeedsArguments"):
        RecordMaterializer(NeedsArguments).to_object(["x"])


def test_reordered_columns_are_bound_by_selection() -> None:
    context = ParsingContext(selected_indexes=[2, 0, 1], columns_reordered=True)

    triple = RecordMaterializer(Triple).to_object(["C", "A", "B"], context)

    assert (triple.a, triple.b, triple.c) == ("A", "B", "C")


def test_slot_table_is_reused_for_rows_of_the_same_layout() -> None:
    materializer = RecordMaterializer(IndexedPerson)

    materializer.to_object(["Ann", "1"])
    materializer.to_object(["Bob", "2"])
    materializer.to_object(["Cid", "3", "extra"])
    materializer.to_object(["Dee", "4"])

    assert materializer.reconciler.cache_hits == 2
    assert materializer.state.widest_row == 3
    assert materializer.state.initialized is True


def test_round_trip_through_formatted_conversions() -> None:
    materializer = RecordMaterializer(Invoice)
    context = ParsingContext(headers=("number", "amount", "issued", "paid"))

    invoice = materializer.to_object(["-", "1.234,50", "02/01/2020", "Y"], context)

    assert invoice.number is None
    assert invoice.amount == Decimal("1234.50")
    assert invoice.issued == date(2020, 1, 2)
    assert invoice.paid is True
    assert materializer.to_record(invoice, ("number", "amount", "issued", "paid")) == [
        "N/A",
        "1234,50",
        "02/01/2020",
        "yes",
    ]


def test_empty_amount_reads_default_null_value() -> None:
    context = ParsingContext(headers=("number", "amount", "issued", "paid"))

    invoice = RecordMaterializer(Invoice).to_object(["A1", "", "02/01/2020", "n"], context)

    assert invoice.amount == Decimal("0.00")
    assert invoice.paid is False


def test_enum_round_trip_with_custom_selector() -> None:
    materializer = RecordMaterializer(Paint)

    paint = materializer.to_object(["RED", "Green"])

    assert paint.color is Color.RED
    assert paint.shade is Color.GREEN
    assert materializer.to_record(paint) == ["RED", "Green"]


def test_custom_conversion_runs_both_ways() -> None:
    materializer = RecordMaterializer(Scored)

    scored = materializer.to_object(["4"], ParsingContext(headers=("score",)))

    assert scored.score == 12
    assert materializer.to_record(scored) == ["4"]


def test_none_instance_writes_nothing() -> None:
    assert RecordMaterializer(Person).to_record(None) is None


def test_synthetic_headers_fill_positions_not_claimed_by_indexes() -> None:
    materializer = RecordMaterializer(Mixed)
    mixed = Mixed()
    mixed.a, mixed.b, mixed.c = "x", "y", "z"

    assert materializer.synthetic_headers() == ("b", "c", None, None)
    assert materializer.to_record(mixed) == ["y", "z", None, "x"]


def test_synthetic_headers_cover_every_name_bound_field() -> None:
    materializer = RecordMaterializer(Person)
    person = Person()
    person.name, person.age = "Alice", 30

    assert materializer.synthetic_headers() == ("name", "age")
    assert materializer.to_record(person) == ["Alice", "30"]


def test_explicit_headers_and_indexes_shape_the_row() -> None:
    materializer = RecordMaterializer(Person)
    person = Person()
    person.name, person.age = "Alice", 30

    assert materializer.to_record(person, ["age", "other", "name"]) == ["30", None, "Alice"]
    assert materializer.to_record(person, indexes_to_write=[1]) == [None, "30"]


def test_write_errors_are_routed_to_handler() -> None:
    received = []
    materializer = RecordMaterializer(
        Person,
        error_handler=lambda error, payload, context: received.append((error, payload, context)),
    )

    result = materializer.to_record(FaultyPerson(), ("name", "age"))

    assert result is None
    error, payload, context = received[0]
    assert isinstance(error, ConversionError)
    assert error.fatal is False
    assert error.column_name == "age"
    assert payload == [None, None]
    assert context.record_number == 1


def test_foreign_instances_are_reported_as_payload() -> None:
    received = []
    materializer = RecordMaterializer(Person, error_handler=lambda e, payload, c: received.append(payload))
    stranger = object()

    assert materializer.to_record(stranger) is None
    assert received == [[stranger]]


def test_revert_failures_are_logged_by_default_handler() -> None:
    logger, handler = _capturing_logger()
    materializer = RecordMaterializer(Paint, logger=logger)
    paint = Paint()
    paint.color, paint.shade = "PURPLE", None

    assert materializer.to_record(paint) is None

    failures = [record for record in handler.records if record.event == "rowbind.record.write_failed"]
    assert len(failures) == 1
    assert failures[0].levelno == logging.WARNING
    assert failures[0].data["column_index"] == 0
    assert "PURPLE" in failures[0].data["error"]


def test_name_and_index_bound_fields_round_trip_with_headers() -> None:
    materializer = RecordMaterializer(Member)
    headers = ("name", "age")

    member = materializer.to_object(["Alice", "30"], ParsingContext(headers=headers))

    assert (member.name, member.age) == ("Alice", 30)
    assert materializer.to_record(member, headers) == ["Alice", "30"]


def test_index_bound_round_trip_without_headers() -> None:
    materializer = RecordMaterializer(Triple)
    original = Triple()
    original.a, original.b, original.c = "x", "y", "z"

    copy = materializer.to_object(materializer.to_record(original))

    assert (copy.a, copy.b, copy.c) == ("x", "y", "z")


def test_empty_header_row_does_not_bind_silently() -> None:
    with pytest.raises(ConfigurationError, match="header row is empty"):
        RecordMaterializer(Person).to_object(["Alice", "30"], ParsingContext(headers=()))


def test_attribute_errors_from_getters_are_routed_to_handler() -> None:
    received = []
    materializer = RecordMaterializer(Person, error_handler=lambda e, payload, c: received.append((e, payload)))

    assert materializer.to_record(UnloadedPerson(), ("name", "age")) is None

    error, payload = received[0]
    assert error.fatal is False
    assert error.column_name == "name"
    assert "name is not loaded" in str(error)
    assert payload == [None, None]
