"""
Field codecs for the URL wire representation.

Each FieldKind has a codec that converts a typed filter value to a single
query-parameter string and back. Codecs are stateless; serialize() returns
None when a value has no wire representation (the key is then omitted),
and both directions raise CodecError subclasses on malformed input.
"""

import enum
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, List, Optional, Sequence, Type, Union

from core.exceptions import InvalidFormatError, UnknownValueError

ARRAY_SEPARATOR = ','
DATE_SEPARATOR = '-'
TRUE_LITERAL = 'true'
FALSE_LITERAL = 'false'


class FieldKind(enum.Enum):
    """Kinds of filter fields understood by the codecs."""
    DATE = 'date'
    INTEGER = 'integer'
    BOOLEAN = 'boolean'
    STRING_ARRAY = 'string_array'
    ENUM = 'enum'
    TEXT = 'text'


class FieldCodec(ABC):
    """Abstract base class for a kind's serialize/deserialize pair"""

    kind: FieldKind

    @abstractmethod
    def serialize(self, value: Any) -> Optional[str]:
        """Convert a typed value to its wire string, or None to omit it"""
        pass

    @abstractmethod
    def deserialize(self, raw: str) -> Any:
        """Convert a wire string back to a typed value"""
        pass

    def equals(self, left: Any, right: Any) -> bool:
        """Equality under this kind's semantics"""
        return left == right

    def _invalid(self, message: str, raw: Any) -> InvalidFormatError:
        return InvalidFormatError(message, raw_value=raw, field_kind=self.kind.value)


class DateCodec(FieldCodec):
    """
    Calendar dates as YYYY-MM-DD.

    Values are encoded as local calendar dates rather than instants so a
    round trip through the URL never shifts the visible day.
    """

    kind = FieldKind.DATE

    @staticmethod
    def to_calendar_date(value: Any) -> Optional[date]:
        if value is None:
            return None
        if isinstance(value, datetime):
            if value.tzinfo is not None:
                value = value.astimezone()
            return value.date()
        if isinstance(value, date):
            return value
        return None

    def serialize(self, value: Any) -> Optional[str]:
        if value is None:
            return None
        day = self.to_calendar_date(value)
        if day is None:
            raise self._invalid(f"Expected a date, got {type(value).__name__}", value)
        return f"{day.year:04d}-{day.month:02d}-{day.day:02d}"

    def deserialize(self, raw: str) -> date:
        parts = raw.split(DATE_SEPARATOR)
        if len(parts) != 3:
            raise self._invalid("Date must have exactly three components", raw)
        if not all(part.isdigit() and part.isascii() for part in parts):
            raise self._invalid("Date components must be numeric", raw)

        year, month, day = (int(part) for part in parts)
        try:
            return date(year, month, day)
        except ValueError as e:
            raise self._invalid(f"Date out of calendar range: {e}", raw) from e

    def equals(self, left: Any, right: Any) -> bool:
        return self.to_calendar_date(left) == self.to_calendar_date(right)


class IntegerCodec(FieldCodec):
    """Base-10 integers"""

    kind = FieldKind.INTEGER

    def serialize(self, value: Any) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, int):
            raise self._invalid(f"Expected an integer, got {type(value).__name__}", value)
        return str(value)

    def deserialize(self, raw: str) -> int:
        digits = raw[1:] if raw.startswith('-') else raw
        if not digits or not (digits.isdigit() and digits.isascii()):
            raise self._invalid("Integer must be a base-10 whole number", raw)
        return int(raw)


class BooleanCodec(FieldCodec):
    """Booleans as the literals 'true' and 'false'"""

    kind = FieldKind.BOOLEAN

    def serialize(self, value: Any) -> Optional[str]:
        if value is None:
            return None
        if not isinstance(value, bool):
            raise self._invalid(f"Expected a boolean, got {type(value).__name__}", value)
        return TRUE_LITERAL if value else FALSE_LITERAL

    def deserialize(self, raw: str) -> bool:
        if raw == TRUE_LITERAL:
            return True
        if raw == FALSE_LITERAL:
            return False
        raise self._invalid(f"Boolean must be '{TRUE_LITERAL}' or '{FALSE_LITERAL}'", raw)


class StringArrayCodec(FieldCodec):
    """Lists of strings joined with commas; empty elements are dropped"""

    kind = FieldKind.STRING_ARRAY

    def serialize(self, value: Any) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, str) or not isinstance(value, (list, tuple)):
            raise self._invalid(f"Expected a list of strings, got {type(value).__name__}", value)

        elements = []
        for element in value:
            if not isinstance(element, str):
                raise self._invalid("Array elements must be strings", value)
            if ARRAY_SEPARATOR in element:
                raise self._invalid(f"Array element may not contain '{ARRAY_SEPARATOR}'", element)
            if element:
                elements.append(element)

        if not elements:
            return None
        return ARRAY_SEPARATOR.join(elements)

    def deserialize(self, raw: str) -> List[str]:
        return [element for element in raw.split(ARRAY_SEPARATOR) if element]

    def equals(self, left: Any, right: Any) -> bool:
        return list(left or []) == list(right or [])


class EnumCodec(FieldCodec):
    """
    One value out of a declared set.

    The declared values are either a sequence of strings or an enum.Enum
    subclass with string values; in the latter case deserialize() returns
    the member.
    """

    kind = FieldKind.ENUM

    def __init__(self, values: Union[Sequence[str], Type[enum.Enum]]):
        if isinstance(values, type) and issubclass(values, enum.Enum):
            self.enum_type: Optional[Type[enum.Enum]] = values
            self.values = tuple(str(member.value) for member in values)
        else:
            self.enum_type = None
            self.values = tuple(values)
        if not self.values:
            raise ValueError("Enum codec requires at least one declared value")

    def _unknown(self, raw: Any) -> UnknownValueError:
        return UnknownValueError(
            f"Value is not one of {list(self.values)}",
            raw_value=raw,
            field_kind=self.kind.value
        )

    def serialize(self, value: Any) -> Optional[str]:
        if value is None:
            return None
        literal = str(value.value) if isinstance(value, enum.Enum) else value
        if literal not in self.values:
            raise self._unknown(value)
        return literal

    def deserialize(self, raw: str) -> Any:
        if raw not in self.values:
            raise self._unknown(raw)
        if self.enum_type is not None:
            return next(member for member in self.enum_type if str(member.value) == raw)
        return raw


class TextCodec(FieldCodec):
    """Free text; percent-decoding is the transport's job"""

    kind = FieldKind.TEXT

    def serialize(self, value: Any) -> Optional[str]:
        if value is None or value == '':
            return None
        if not isinstance(value, str):
            raise self._invalid(f"Expected text, got {type(value).__name__}", value)
        return value

    def deserialize(self, raw: str) -> str:
        return raw


_SIMPLE_CODECS = {
    FieldKind.DATE: DateCodec,
    FieldKind.INTEGER: IntegerCodec,
    FieldKind.BOOLEAN: BooleanCodec,
    FieldKind.STRING_ARRAY: StringArrayCodec,
    FieldKind.TEXT: TextCodec,
}


def create_codec(kind: FieldKind, values: Optional[Union[Sequence[str], Type[enum.Enum]]] = None) -> FieldCodec:
    """
    Create the codec for a field kind.

    Args:
        kind: The field kind
        values: Declared values, required for FieldKind.ENUM

    Returns:
        A FieldCodec instance

    Raises:
        ValueError: If an enum kind has no declared values
    """
    if kind is FieldKind.ENUM:
        if values is None:
            raise ValueError("FieldKind.ENUM requires declared values")
        return EnumCodec(values)
    return _SIMPLE_CODECS[kind]()
