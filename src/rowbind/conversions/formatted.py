"""Pattern-driven number and date conversions.

Each conversion owns one formatter object per pattern. Formatter objects are
pydantic models validated on assignment, so ``key=value`` options can be
applied to them after construction (see :mod:`rowbind.properties`).
"""

from __future__ import annotations

import calendar
import functools
import locale
import re
import threading
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, PlainValidator, StringConstraints

from rowbind.conversions.base import FormattedConversion, NullableConversion, ValueKind

_ENGLISH_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
_ENGLISH_WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
_LOCALE_LOCK = threading.Lock()


@dataclass(frozen=True)
class DateSymbols:
    """Month and weekday names used to parse and format dates for a locale."""

    locale_id: str
    months: tuple[str, ...]
    short_months: tuple[str, ...]
    weekdays: tuple[str, ...]
    short_weekdays: tuple[str, ...]

    @classmethod
    def english(cls) -> "DateSymbols":
        return cls(
            locale_id="en",
            months=_ENGLISH_MONTHS,
            short_months=tuple(name[:3] for name in _ENGLISH_MONTHS),
            weekdays=_ENGLISH_WEEKDAYS,
            short_weekdays=tuple(name[:3] for name in _ENGLISH_WEEKDAYS),
        )

    @classmethod
    @functools.lru_cache(maxsize=None)
    def for_locale(cls, locale_id: str) -> "DateSymbols":
        """Read localized names from the system locale database.

        Reading the names switches the process-wide ``LC_TIME`` category for the
        duration of the lookup. Lookups are serialized and cached per locale, so
        each locale is read once, but a thread calling ``strftime`` elsewhere
        during that first lookup can see the other locale's names.

        Raises ``ValueError`` when the locale is not installed.
        """

        if locale_id.split("_")[0] in {"", "C", "POSIX", "en"}:
            return cls.english()

        with _LOCALE_LOCK:
            return cls._read_locale(locale_id)

    @classmethod
    def _read_locale(cls, locale_id: str) -> "DateSymbols":
        saved = locale.setlocale(locale.LC_TIME)
        try:
            try:
                locale.setlocale(locale.LC_TIME, locale_id)
            except locale.Error as exc:
                raise ValueError(f"Locale '{locale_id}' is not available") from exc
            return cls(
                locale_id=locale_id,
                months=tuple(calendar.month_name[1:]),
                short_months=tuple(calendar.month_abbr[1:]),
                weekdays=tuple(calendar.day_name),
                short_weekdays=tuple(calendar.day_abbr),
            )
        finally:
            locale.setlocale(locale.LC_TIME, saved)

    def _pairs(self) -> list[tuple[str, str]]:
        english = DateSymbols.english()
        pairs = [
            *zip(english.months, self.months),
            *zip(english.weekdays, self.weekdays),
            *zip(english.short_months, self.short_months),
            *zip(english.short_weekdays, self.short_weekdays),
        ]
        # Full names are substituted before abbreviations.
        return sorted(pairs, key=lambda pair: -len(pair[0]))

    def localize(self, text: str) -> str:
        for english, local in self._pairs():
            text = re.sub(rf"\b{re.escape(english)}\b", local, text)
        return text

    def delocalize(self, text: str) -> str:
        for english, local in sorted(self._pairs(), key=lambda pair: -len(pair[1])):
            text = re.sub(rf"\b{re.escape(local)}\b", english, text, flags=re.IGNORECASE)
        return text


def _to_zone(value: Any) -> ZoneInfo:
    if isinstance(value, ZoneInfo):
        return value
    try:
        return ZoneInfo(str(value))
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown time zone '{value}'") from exc


def _to_symbols(value: Any) -> DateSymbols:
    if isinstance(value, DateSymbols):
        return value
    return DateSymbols.for_locale(str(value))


Char = Annotated[str, StringConstraints(min_length=1, max_length=1)]
CurrencyCode = Annotated[str, StringConstraints(pattern=r"^[A-Z]{3}$")]
TimeZone = Annotated[ZoneInfo, PlainValidator(_to_zone)]
LocaleSymbols = Annotated[DateSymbols, PlainValidator(_to_symbols)]


class _Formatter(BaseModel):
    model_config = ConfigDict(validate_assignment=True, extra="forbid", arbitrary_types_allowed=True)


class NumberFormatter(_Formatter):
    """Formats numbers with a ``format()`` spec such as ``",.2f"`` or ``".1%"``.

    Grouping and decimal separators are swapped in after formatting and
    stripped before parsing.
    """

    pattern: str = ""
    decimal_separator: Char = "."
    grouping_separator: Char = ","
    grouping_used: bool = True
    currency: CurrencyCode | None = None

    @property
    def is_percent(self) -> bool:
        return self.pattern.endswith("%")

    def format(self, value: Any) -> str:
        text = format(value, self.pattern) if self.pattern else str(value)
        grouping = self.grouping_separator if self.grouping_used else ""
        text = text.replace(",", "\0").replace(".", self.decimal_separator).replace("\0", grouping)
        if self.currency:
            text = f"{self.currency} {text}"
        return text

    def parse(self, text: str) -> Decimal:
        candidate = text.strip()
        if self.currency and candidate.startswith(self.currency):
            candidate = candidate[len(self.currency):].strip()
        percent = self.is_percent and candidate.endswith("%")
        if percent:
            candidate = candidate[:-1].strip()
        if self.grouping_separator != self.decimal_separator:
            candidate = candidate.replace(self.grouping_separator, "")
        candidate = candidate.replace(self.decimal_separator, ".")
        try:
            number = Decimal(candidate)
        except InvalidOperation as exc:
            raise ValueError(f"Cannot parse '{text}' using number pattern '{self.pattern}'") from exc
        if percent:
            number = number / 100
        return number


class DateFormatter(_Formatter):
    """Parses and formats dates with a ``strptime``/``strftime`` pattern."""

    pattern: str
    timezone: TimeZone | None = None
    symbols: LocaleSymbols | None = None

    def parse(self, text: str) -> datetime:
        candidate = text.strip()
        if self.symbols is not None:
            candidate = self.symbols.delocalize(candidate)
        parsed = datetime.strptime(candidate, self.pattern)
        if self.timezone is not None and parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=self.timezone)
        return parsed

    def format(self, value: date) -> str:
        if self.timezone is not None and isinstance(value, datetime) and value.tzinfo is not None:
            value = value.astimezone(self.timezone)
        text = value.strftime(self.pattern)
        if self.symbols is not None:
            text = self.symbols.localize(text)
        return text


_NUMBER_KINDS: dict[type, ValueKind] = {
    int: ValueKind.INTEGER,
    float: ValueKind.FLOAT,
    Decimal: ValueKind.DECIMAL,
}


class FormattedNumberConversion(NullableConversion, FormattedConversion):
    """Parses numbers with the first matching pattern; formats with the first pattern."""

    backward_kind = ValueKind.STRING

    def __init__(
        self,
        formats: Sequence[str] = (),
        *,
        number_type: type = Decimal,
        null_read: Any = None,
        null_write: str | None = None,
    ) -> None:
        super().__init__(null_read=null_read, null_write=null_write)
        if number_type not in _NUMBER_KINDS:
            raise ValueError(f"Unsupported number type: {number_type.__name__}")
        self.number_type = number_type
        self.forward_kind = _NUMBER_KINDS[number_type]
        self.formatters = [NumberFormatter(pattern=pattern) for pattern in formats] or [NumberFormatter()]

    def formatter_objects(self) -> tuple[NumberFormatter, ...]:
        return tuple(self.formatters)

    def _cast(self, number: Decimal) -> Any:
        if self.number_type is int:
            if number != number.to_integral_value():
                raise ValueError(f"'{number}' is not an integer")
            return int(number)
        if self.number_type is float:
            return float(number)
        return number

    def from_input(self, value: Any) -> Any:
        if isinstance(value, self.number_type) and not isinstance(value, bool):
            return value
        errors: list[str] = []
        for formatter in self.formatters:
            try:
                return self._cast(formatter.parse(str(value)))
            except ValueError as exc:
                errors.append(str(exc))
        raise ValueError(f"Cannot parse '{value}' as {self.number_type.__name__}: {'; '.join(errors)}")

    def to_output(self, value: Any) -> str:
        return self.formatters[0].format(value)

    def __repr__(self) -> str:
        patterns = [formatter.pattern for formatter in self.formatters]
        return f"FormattedNumberConversion({patterns!r}, number_type={self.number_type.__name__})"


class DateConversion(NullableConversion, FormattedConversion):
    """Converts between column strings and ``datetime``/``date`` values.

    Without patterns, ISO 8601 is used in both directions.
    """

    backward_kind = ValueKind.STRING

    def __init__(
        self,
        date_type: type = datetime,
        *,
        formats: Sequence[str] = (),
        null_read: date | None = None,
        null_write: str | None = None,
    ) -> None:
        super().__init__(null_read=null_read, null_write=null_write)
        if date_type not in (datetime, date):
            raise ValueError(f"Unsupported date type: {date_type.__name__}")
        self.date_type = date_type
        self.forward_kind = ValueKind.DATETIME if date_type is datetime else ValueKind.DATE
        self.formatters = [DateFormatter(pattern=pattern) for pattern in formats]

    def formatter_objects(self) -> tuple[DateFormatter, ...]:
        return tuple(self.formatters)

    def _coerce(self, value: datetime) -> date:
        if self.date_type is date and isinstance(value, datetime):
            return value.date()
        return value

    def from_input(self, value: Any) -> date:
        if isinstance(value, date):
            return self._coerce(value)
        text = str(value)
        if not self.formatters:
            return self.date_type.fromisoformat(text.strip())
        for formatter in self.formatters:
            try:
                return self._coerce(formatter.parse(text))
            except ValueError:
                continue
        patterns = ", ".join(formatter.pattern for formatter in self.formatters)
        raise ValueError(f"Cannot parse '{value}' as {self.date_type.__name__} using patterns: {patterns}")

    def to_output(self, value: Any) -> str:
        if not self.formatters:
            return value.isoformat()
        return self.formatters[0].format(value)

    def __repr__(self) -> str:
        patterns = [formatter.pattern for formatter in self.formatters]
        return f"DateConversion({self.date_type.__name__}, formats={patterns!r})"


__all__ = [
    "Char",
    "CurrencyCode",
    "TimeZone",
    "LocaleSymbols",
    "DateSymbols",
    "NumberFormatter",
    "DateFormatter",
    "FormattedNumberConversion",
    "DateConversion",
]
