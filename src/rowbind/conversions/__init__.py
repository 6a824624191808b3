from rowbind.conversions.base import Conversion, FormattedConversion, NullableConversion, ValueKind
from rowbind.conversions.formatted import (
    Char,
    CurrencyCode,
    DateConversion,
    DateFormatter,
    DateSymbols,
    FormattedNumberConversion,
    LocaleSymbols,
    NumberFormatter,
    TimeZone,
)
from rowbind.conversions.objects import (
    BooleanConversion,
    DecimalConversion,
    EnumConversion,
    FloatConversion,
    IntegerConversion,
)
from rowbind.conversions.strings import (
    LowerCaseConversion,
    NullStringConversion,
    RegexReplaceConversion,
    TrimConversion,
    UpperCaseConversion,
)

__all__ = [
    "Conversion",
    "FormattedConversion",
    "NullableConversion",
    "ValueKind",
    "Char",
    "CurrencyCode",
    "TimeZone",
    "LocaleSymbols",
    "DateSymbols",
    "NumberFormatter",
    "DateFormatter",
    "DateConversion",
    "FormattedNumberConversion",
    "BooleanConversion",
    "DecimalConversion",
    "EnumConversion",
    "FloatConversion",
    "IntegerConversion",
    "LowerCaseConversion",
    "NullStringConversion",
    "RegexReplaceConversion",
    "TrimConversion",
    "UpperCaseConversion",
]
