import pytest

from rowbind.exceptions import ConversionError
from rowbind.processor import ObjectReader, ObjectWriter

from sample_models import FaultyPerson, HeadedPerson, IndexedPerson, Mixed, Person


def _person(name: str, age: int) -> Person:
    person = Person()
    person.name, person.age = name, age
    return person


def test_reader_extracts_headers_from_first_row() -> None:
    rows = [["age", "name"], ["30", "Alice"], [None, None], ["41", "Bob"]]

    people = ObjectReader(Person).read_all(rows)

    assert [(p.name, p.age) for p in people] == [("Alice", 30), ("Bob", 41)]


def test_reader_uses_declared_headers_without_extraction() -> None:
    people = ObjectReader(HeadedPerson).read_all([["Alice", "30"]])

    assert (people[0].name, people[0].age) == ("Alice", 30)


def test_reader_keeps_first_row_for_index_bound_types() -> None:
    people = ObjectReader(IndexedPerson).read_all([["Alice", "30"], ["Bob", "41"]])

    assert [p.name for p in people] == ["Alice", "Bob"]


def test_reader_reports_record_numbers() -> None:
    rows = [["name", "age"], ["Alice", "30"], ["Bob", "old"]]

    with pytest.raises(ConversionError) as excinfo:
        ObjectReader(Person).read_all(rows)

    assert excinfo.value.record_number == 2


def test_reader_on_empty_input_yields_nothing() -> None:
    assert ObjectReader(Person).read_all([]) == []


def test_writer_emits_header_row_and_skips_failures() -> None:
    failures = []
    writer = ObjectWriter(Person, error_handler=lambda error, payload, context: failures.append(error))

    rows = writer.write_all([_person("Alice", 30), None, FaultyPerson(), _person("Bob", 41)])

    assert rows == [["name", "age"], ["Alice", "30"], ["Bob", "41"]]
    assert len(failures) == 1


def test_writer_header_sources() -> None:
    assert ObjectWriter(Person, headers=["age", "name"]).header_row() == ("age", "name")
    assert ObjectWriter(HeadedPerson).header_row() == ("NAME", "AGE")
    assert ObjectWriter(Mixed).header_row() is None


def test_writer_respects_explicit_header_order() -> None:
    rows = list(ObjectWriter(Person, headers=["age", "name"]).write([_person("Alice", 30)]))

    assert rows == [["30", "Alice"]]
