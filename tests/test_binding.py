from decimal import Decimal
from typing import Annotated

import pytest

from rowbind.binding import Binding, BindingResolver, resolve_bindings, validate_bindings
from rowbind.conversions import (
    Conversion,
    FormattedNumberConversion,
    IntegerConversion,
    TrimConversion,
    UpperCaseConversion,
)
from rowbind.directives import BooleanString, Convert, Parsed
from rowbind.exceptions import ConfigurationError, RuntimeTypeError

from sample_models import CodedRecord, Invoice, Mixed, Multiplier, Person, Scored, TaggedRecord


class NotAConversion:
    def __init__(self, args):
        self.args = args


class NoArgConversion(Conversion):
    def __init__(self):
        pass


class ExplodingConversion(Conversion):
    def __init__(self, args):
        raise RuntimeError("cannot build")


class DuplicateIndex:
    a: Annotated[int, Parsed(index=1)]
    b: Annotated[str, Parsed(index=1)]


class DuplicateName:
    a: Annotated[int, Parsed(field="x")]
    b: Annotated[str, Parsed(field="x")]


class BadBoolean:
    flag: Annotated[int, Parsed(), BooleanString(("y",), ("n",))]


class BadConvert:
    value: Annotated[str, Parsed(), Convert(NotAConversion)]


class NoArgConvert:
    value: Annotated[str, Parsed(), Convert(NoArgConversion)]


class ExplodingConvert:
    value: Annotated[str, Parsed(), Convert(ExplodingConversion)]


class NoDefault:
    count: Annotated[int, Parsed(apply_default_conversion=False)]


def test_resolves_names_indexes_and_chains() -> None:
    bindings = resolve_bindings(Mixed)

    assert [binding.field_name for binding in bindings] == ["a", "b", "c"]
    assert [binding.index for binding in bindings] == [3, -1, -1]
    assert bindings.highest_index == 3
    assert [binding.field.name for binding in bindings.name_bound] == ["b", "c"]


def test_chain_follows_declaration_order() -> None:
    label = resolve_bindings(TaggedRecord).get("label")

    assert [type(conversion) for conversion in label.conversions] == [TrimConversion, UpperCaseConversion]


def test_default_conversion_appended_after_explicit_ones() -> None:
    bindings = resolve_bindings(Person)

    assert bindings.get("name").conversions == ()
    assert [type(c) for c in bindings.get("age").conversions] == [IntegerConversion]


def test_default_suppressed_when_custom_conversion_matches_kinds() -> None:
    score = resolve_bindings(Scored).get("score")

    assert len(score.conversions) == 1
    assert isinstance(score.conversions[0], Multiplier)
    assert score.conversions[0].factor == 3


def test_default_conversion_can_be_disabled() -> None:
    assert resolve_bindings(NoDefault).get("count").conversions == ()


def test_formatted_fields_keep_a_single_conversion() -> None:
    bindings = resolve_bindings(Invoice)

    assert {name: len(bindings.get(name).conversions) for name in ("number", "amount", "issued", "paid")} == {
        "number": 1,
        "amount": 1,
        "issued": 1,
        "paid": 1,
    }


def test_redeclared_field_uses_child_binding() -> None:
    bindings = resolve_bindings(CodedRecord)

    assert len(bindings) == 1
    assert bindings.get("id").field_name == "CODE"
    assert bindings.get("id").conversions == ()


def test_duplicate_indexes_are_reported() -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        resolve_bindings(DuplicateIndex)

    message = str(excinfo.value)
    assert "Index: '1' of field 'a' (int)" in message
    assert "Index: '1' of field 'b' (str)" in message


def test_duplicate_names_are_reported() -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        resolve_bindings(DuplicateName)

    assert "Name: 'x' of field 'a' (int)" in str(excinfo.value)
    assert "Name: 'x' of field 'b' (str)" in str(excinfo.value)


def test_validate_bindings_ignores_empty_names() -> None:
    bindings = list(resolve_bindings(Person))
    unnamed = [
        Binding(field=b.field, field_name="", index=-1, accessor=b.accessor, conversions=b.conversions)
        for b in bindings
    ]

    validate_bindings(Person, unnamed)


def test_directive_errors_name_directive_field_and_class() -> None:
    with pytest.raises(RuntimeTypeError) as excinfo:
        resolve_bindings(BadBoolean)

    assert "Error processing directive 'BooleanString' of field 'flag' (int) in BadBoolean" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, RuntimeTypeError)


def test_custom_conversion_must_subclass_conversion() -> None:
    with pytest.raises(ConfigurationError, match="Not a valid conversion class: 'NotAConversion'"):
        resolve_bindings(BadConvert)


def test_custom_conversion_must_accept_arguments() -> None:
    with pytest.raises(ConfigurationError, match="Could not find a constructor"):
        resolve_bindings(NoArgConvert)


def test_custom_conversion_instantiation_errors_are_wrapped() -> None:
    with pytest.raises(ConfigurationError, match="Unexpected error instantiating") as excinfo:
        resolve_bindings(ExplodingConvert)

    cause = excinfo.value.__cause__
    assert isinstance(cause, ConfigurationError)
    assert isinstance(cause.__cause__, RuntimeError)


def test_include_binding_hook_filters_fields() -> None:
    class NameOnly(BindingResolver):
        def include_binding(self, binding: Binding) -> bool:
            return binding.field.name == "name"

    bindings = NameOnly(Person).resolve()

    assert [binding.field.name for binding in bindings] == ["name"]


def test_formatted_decimal_null_literal_uses_format_separators() -> None:
    (amount,) = resolve_bindings(Invoice).get("amount").conversions

    assert isinstance(amount, FormattedNumberConversion)
    assert amount.execute(None) == Decimal("0.00")
