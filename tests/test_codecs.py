"""
Tests for the field codecs.

Covers the wire format of every FieldKind, the rejection rules of each
deserializer and the omission of values without a wire representation.
"""

import enum
from datetime import date, datetime, timedelta, timezone

import pytest

from core.exceptions import ErrorKind, InvalidFormatError, UnknownValueError
from filter_sync.codecs import (
    BooleanCodec,
    DateCodec,
    EnumCodec,
    FieldKind,
    IntegerCodec,
    StringArrayCodec,
    TextCodec,
    create_codec,
)


class Granularity(enum.Enum):
    DAY = 'day'
    WEEK = 'week'


class TestDateCodec:
    """Test calendar date encoding."""

    def setup_method(self):
        self.codec = DateCodec()

    def test_serialize_pads_components(self):
        assert self.codec.serialize(date(2024, 1, 5)) == '2024-01-05'

    def test_serialize_drops_time_of_day(self):
        assert self.codec.serialize(datetime(2024, 1, 31, 23, 59, 59)) == '2024-01-31'

    def test_round_trip_ignores_time_of_day(self):
        value = datetime(2024, 3, 10, 18, 30)
        restored = self.codec.deserialize(self.codec.serialize(value))
        assert restored == date(2024, 3, 10)
        assert self.codec.equals(value, restored)

    def test_aware_datetime_uses_local_calendar_day(self):
        value = datetime(2024, 6, 1, 12, 0, tzinfo=timezone(timedelta(hours=3)))
        assert self.codec.serialize(value) == value.astimezone().date().isoformat()

    def test_deserialize_valid(self):
        assert self.codec.deserialize('2024-02-29') == date(2024, 2, 29)

    @pytest.mark.parametrize('raw', [
        'not-a-date',
        '2024-01',
        '2024-01-01-01',
        '2024-0a-01',
        '2024-13-01',
        '2023-02-29',
        '',
        '2024/01/01',
    ])
    def test_deserialize_rejects_malformed(self, raw):
        with pytest.raises(InvalidFormatError) as exc_info:
            self.codec.deserialize(raw)
        assert exc_info.value.kind is ErrorKind.INVALID_FORMAT

    def test_serialize_rejects_non_dates(self):
        with pytest.raises(InvalidFormatError):
            self.codec.serialize('2024-01-01')

    def test_serialize_none_is_omitted(self):
        assert self.codec.serialize(None) is None


class TestIntegerCodec:
    """Test base-10 integer encoding."""

    def setup_method(self):
        self.codec = IntegerCodec()

    def test_round_trip(self):
        assert self.codec.serialize(123) == '123'
        assert self.codec.deserialize('123') == 123
        assert self.codec.deserialize('-7') == -7

    @pytest.mark.parametrize('raw', ['12.5', 'abc', '-', '1e3', ' 12', '+5'])
    def test_deserialize_rejects_non_integers(self, raw):
        with pytest.raises(InvalidFormatError):
            self.codec.deserialize(raw)

    def test_serialize_rejects_bool(self):
        with pytest.raises(InvalidFormatError):
            self.codec.serialize(True)


class TestBooleanCodec:
    """Test boolean literals."""

    def setup_method(self):
        self.codec = BooleanCodec()

    def test_literals(self):
        assert self.codec.serialize(True) == 'true'
        assert self.codec.serialize(False) == 'false'
        assert self.codec.deserialize('true') is True
        assert self.codec.deserialize('false') is False

    @pytest.mark.parametrize('raw', ['True', '1', 'yes', 'FALSE'])
    def test_deserialize_rejects_other_literals(self, raw):
        with pytest.raises(InvalidFormatError):
            self.codec.deserialize(raw)


class TestStringArrayCodec:
    """Test comma-joined string arrays."""

    def setup_method(self):
        self.codec = StringArrayCodec()

    def test_round_trip(self):
        assert self.codec.serialize(['error', 'warning']) == 'error,warning'
        assert self.codec.deserialize('error,warning') == ['error', 'warning']

    def test_empty_elements_dropped(self):
        assert self.codec.deserialize('error,,warning,') == ['error', 'warning']
        assert self.codec.serialize(['error', '', 'info']) == 'error,info'

    def test_empty_array_is_omitted(self):
        assert self.codec.serialize([]) is None
        assert self.codec.serialize(['']) is None

    def test_element_with_separator_rejected(self):
        with pytest.raises(InvalidFormatError):
            self.codec.serialize(['a,b'])

    def test_equality_treats_tuple_and_list_alike(self):
        assert self.codec.equals(('a', 'b'), ['a', 'b'])
        assert not self.codec.equals(['a', 'b'], ['b', 'a'])


class TestEnumCodec:
    """Test enumerated values."""

    def test_declared_strings(self):
        codec = EnumCodec(('day', 'week', 'month'))
        assert codec.serialize('week') == 'week'
        assert codec.deserialize('month') == 'month'

    def test_unknown_value_on_deserialize(self):
        codec = EnumCodec(('day', 'week'))
        with pytest.raises(UnknownValueError) as exc_info:
            codec.deserialize('year')
        assert exc_info.value.kind is ErrorKind.UNKNOWN_VALUE

    def test_unknown_value_on_serialize(self):
        with pytest.raises(UnknownValueError):
            EnumCodec(('day',)).serialize('week')

    def test_enum_class_returns_members(self):
        codec = EnumCodec(Granularity)
        assert codec.serialize(Granularity.WEEK) == 'week'
        assert codec.deserialize('day') is Granularity.DAY

    def test_requires_values(self):
        with pytest.raises(ValueError):
            EnumCodec(())


class TestTextCodec:
    """Test free text."""

    def test_passthrough(self):
        codec = TextCodec()
        assert codec.serialize('disk full') == 'disk full'
        assert codec.deserialize('a&b=c') == 'a&b=c'

    def test_empty_text_is_omitted(self):
        assert TextCodec().serialize('') is None


class TestCreateCodec:
    """Test the codec factory."""

    @pytest.mark.parametrize('kind,codec_type', [
        (FieldKind.DATE, DateCodec),
        (FieldKind.INTEGER, IntegerCodec),
        (FieldKind.BOOLEAN, BooleanCodec),
        (FieldKind.STRING_ARRAY, StringArrayCodec),
        (FieldKind.TEXT, TextCodec),
    ])
    def test_simple_kinds(self, kind, codec_type):
        codec = create_codec(kind)
        assert isinstance(codec, codec_type)
        assert codec.kind is kind

    def test_enum_requires_values(self):
        with pytest.raises(ValueError):
            create_codec(FieldKind.ENUM)
        assert isinstance(create_codec(FieldKind.ENUM, ('a', 'b')), EnumCodec)
